"""
Candidate-to-position matching.

Scores direct applicants and, optionally, every other processed candidate on
the team ("cross" matches), persisting one CandidateMatch per
(position, candidate, résumé).
"""
import json
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from cvtrack.core import prompts
from cvtrack.core.exceptions import NotFoundError
from cvtrack.models.application import Application
from cvtrack.models.candidate import Candidate
from cvtrack.models.job import JobPosition
from cvtrack.models.match import CandidateMatch, MatchType
from cvtrack.models.resume import Resume, ResumeStatus
from cvtrack.schemas.match import AIMatchAssessment, MatchOptions, MatchResult
from cvtrack.services.ai_orchestrator import AIOrchestrator, AIDomain
from cvtrack.services.base import BaseService
from cvtrack.services.cv_processor import CVProcessor

# Rubric bands used in the scoring prompt
SCORE_BANDS = (
    (0, 30, "does not meet basic requirements"),
    (31, 50, "partial fit"),
    (51, 70, "good fit"),
    (71, 85, "very good fit"),
    (86, 100, "ideal candidate"),
)

MATCH_CV_TEXT_CHARS = 6_000
MATCH_TEMPERATURE = 0.3


def sort_matches(results: List[MatchResult]) -> List[MatchResult]:
    """Direct matches first, then cross; highest score first within each group."""
    return sorted(results, key=lambda r: (r.match_type != MatchType.direct, -r.match_score))


def filter_matches(results: List[MatchResult], options: MatchOptions) -> List[MatchResult]:
    """Apply match type, ``min_score`` and ``max_results`` to already scored results."""
    kept = [r for r in results if r.match_score >= options.min_score]
    if options.match_type == "direct" or not options.include_cross:
        kept = [r for r in kept if r.match_type == MatchType.direct]
    if options.match_type == "cross":
        kept = [r for r in kept if r.match_type == MatchType.cross]
    return sort_matches(kept)[:options.max_results]


def score_band(score: int) -> str:
    for low, high, label in SCORE_BANDS:
        if low <= score <= high:
            return label
    raise ValueError(f"Score out of range: {score}")


def _as_json(value) -> str:
    return json.dumps(value or [], ensure_ascii=False)


def build_match_prompt(position: JobPosition, candidate: Candidate, resume: Resume) -> str:
    na = prompts.NOT_PROVIDED
    return prompts.get_prompt(
        prompts.CANDIDATE_MATCH_TEMPLATE,
        title=position.title,
        description=position.description or na,
        requirements=position.requirements or na,
        responsibilities=position.responsibilities or na,
        location=position.location or na,
        candidate_name=candidate.full_name,
        candidate_location=candidate.location or na,
        years_of_experience=candidate.years_of_experience if candidate.years_of_experience is not None else na,
        summary=candidate.summary or na,
        technical_skills=_as_json(candidate.technical_skills),
        soft_skills=_as_json(candidate.soft_skills),
        experience=_as_json(candidate.experience),
        education=_as_json(candidate.education),
        certifications=_as_json(candidate.certifications),
        languages=_as_json(candidate.languages),
        key_achievements=_as_json(candidate.key_achievements),
        cv_text=(resume.parsed_text or "")[:MATCH_CV_TEXT_CHARS],
    )


def assess_candidate(position: JobPosition, candidate: Candidate, resume: Resume) -> AIMatchAssessment:
    return AIOrchestrator.analyze_json(
        build_match_prompt(position, candidate, resume),
        AIMatchAssessment,
        temperature=MATCH_TEMPERATURE,
        domain=AIDomain.CANDIDATE_MATCHING,
    )


def _to_result(
    candidate: Candidate,
    resume_id: int,
    match_type: MatchType,
    score: int,
    ai_analysis: Optional[str],
    summary: Optional[str],
    strengths,
    weaknesses,
    application_id: Optional[int],
) -> MatchResult:
    return MatchResult(
        candidate_id=candidate.id,
        resume_id=resume_id,
        candidate_name=candidate.full_name,
        match_score=score,
        ai_analysis=ai_analysis or "",
        strengths=strengths or [],
        weaknesses=weaknesses or [],
        summary=summary or (ai_analysis or "")[:200],
        email=candidate.email,
        phone=candidate.phone,
        location=candidate.location,
        match_type=match_type,
        application_id=application_id,
    )


class CandidateMatcher(BaseService):
    def __init__(self, db: Session, processor: Optional[CVProcessor] = None):
        super().__init__(db)
        self.processor = processor or CVProcessor(db)

    def _get_position(self, position_id: int, team_id: int) -> JobPosition:
        position = self.db.query(JobPosition).filter(
            JobPosition.id == position_id,
            JobPosition.team_id == team_id,
        ).first()
        if not position:
            raise NotFoundError("Job position not found")
        return position

    def match_position(self, position_id: int, team_id: int, options: Optional[MatchOptions] = None) -> List[MatchResult]:
        options = options or MatchOptions()
        position = self._get_position(position_id, team_id)

        self.log_info(f"[Matching] Processing pending CVs for team {team_id}")
        processing = self.processor.process_all_pending(team_id)
        self.log_info(f"[Matching] Processed {processing.processed} CVs, {processing.errors} errors")

        results: List[MatchResult] = []

        if options.match_type in ("all", "direct"):
            direct = self._match_direct(position, team_id, options.min_score)
            self.log_info(f"[Matching] Found {len(direct)} direct applications")
            results.extend(direct)

        if options.match_type in ("all", "cross") and options.include_cross:
            cross = self._match_cross(position, team_id, options.min_score)
            self.log_info(f"[Matching] Found {len(cross)} cross-match candidates")
            results.extend(cross)

        return sort_matches(results)[:options.max_results]

    def _direct_rows(self, position: JobPosition, team_id: int) -> List[Tuple[Application, Resume, Candidate]]:
        return (
            self.db.query(Application, Resume, Candidate)
            .join(Resume, Application.resume_id == Resume.id)
            .join(Candidate, Resume.candidate_id == Candidate.id)
            .filter(
                Application.job_position_id == position.id,
                Resume.team_id == team_id,
                Resume.status == ResumeStatus.processed,
            )
            .order_by(Application.id)
            .all()
        )

    def _cross_rows(self, position: JobPosition, team_id: int) -> List[Tuple[Resume, Candidate]]:
        applied_resume_ids = {
            row.resume_id for row in self.db.query(Application.resume_id).filter(
                Application.job_position_id == position.id
            ).all()
        }
        rows = (
            self.db.query(Resume, Candidate)
            .join(Candidate, Resume.candidate_id == Candidate.id)
            .filter(
                Candidate.team_id == team_id,
                Resume.team_id == team_id,
                Resume.status == ResumeStatus.processed,
            )
            .order_by(Resume.id)
            .all()
        )
        return [(resume, candidate) for resume, candidate in rows if resume.id not in applied_resume_ids]

    def _match_direct(self, position: JobPosition, team_id: int, min_score: int) -> List[MatchResult]:
        results = []
        for application, resume, candidate in self._direct_rows(position, team_id):
            result = self._score(position, candidate, resume, MatchType.direct, application.id, min_score)
            if result:
                results.append(result)
        return results

    def _match_cross(self, position: JobPosition, team_id: int, min_score: int) -> List[MatchResult]:
        results = []
        for resume, candidate in self._cross_rows(position, team_id):
            result = self._score(position, candidate, resume, MatchType.cross, None, min_score)
            if result:
                results.append(result)
        return results

    def _score(
        self,
        position: JobPosition,
        candidate: Candidate,
        resume: Resume,
        match_type: MatchType,
        application_id: Optional[int],
        min_score: int,
    ) -> Optional[MatchResult]:
        if not resume.parsed_text:
            return None
        try:
            assessment = assess_candidate(position, candidate, resume)
        except Exception as e:
            self.log_error(f"Error matching {match_type.value} candidate {candidate.id} (resume {resume.id}): {e}")
            return None

        self.log_info(
            f"[Matching] {match_type.value} candidate {candidate.id}: {assessment.match_score} ({score_band(assessment.match_score)})"
        )
        if assessment.match_score < min_score:
            return None

        try:
            self._save_match(position.id, candidate.id, resume.id, match_type, application_id, assessment)
        except Exception as e:
            self.db.rollback()
            self.log_error(f"Error saving match for candidate {candidate.id}: {e}")

        return _to_result(
            candidate, resume.id, match_type, assessment.match_score, assessment.ai_analysis,
            assessment.summary, assessment.strengths, assessment.weaknesses, application_id,
        )

    def _save_match(
        self,
        position_id: int,
        candidate_id: int,
        resume_id: int,
        match_type: MatchType,
        application_id: Optional[int],
        assessment: AIMatchAssessment,
    ) -> CandidateMatch:
        """Upsert keyed on (position, candidate, résumé)."""
        match = self.db.query(CandidateMatch).filter(
            CandidateMatch.job_position_id == position_id,
            CandidateMatch.candidate_id == candidate_id,
            CandidateMatch.resume_id == resume_id,
        ).first()
        if match is None:
            match = CandidateMatch(job_position_id=position_id, candidate_id=candidate_id, resume_id=resume_id)
            self.db.add(match)

        match.match_type = match_type
        match.application_id = application_id
        match.match_score = assessment.match_score
        match.ai_analysis = assessment.ai_analysis
        match.summary = assessment.summary
        match.strengths = assessment.strengths
        match.weaknesses = assessment.weaknesses
        match.updated_at = datetime.now(timezone.utc)
        self.commit()
        return match

    def get_existing_matches(self, position_id: int, team_id: int) -> List[MatchResult]:
        position = self._get_position(position_id, team_id)
        rows = (
            self.db.query(CandidateMatch, Candidate)
            .join(Candidate, CandidateMatch.candidate_id == Candidate.id)
            .filter(CandidateMatch.job_position_id == position.id, Candidate.team_id == team_id)
            .all()
        )
        return sort_matches([
            _to_result(
                candidate, match.resume_id, match.match_type or MatchType.cross, match.match_score,
                match.ai_analysis, match.summary, match.strengths, match.weaknesses, match.application_id,
            )
            for match, candidate in rows
        ])

    def clear_matches(self, position_id: int, team_id: int) -> int:
        position = self._get_position(position_id, team_id)
        deleted = self.db.query(CandidateMatch).filter(
            CandidateMatch.job_position_id == position.id
        ).delete(synchronize_session=False)
        self.commit()
        self.log_info(f"Cleared {deleted} matches for position {position_id}")
        return deleted

    def rematch(self, position_id: int, team_id: int, options: Optional[MatchOptions] = None) -> List[MatchResult]:
        """Drop every stored match for the position and score from scratch."""
        self.clear_matches(position_id, team_id)
        return self.match_position(position_id, team_id, options)

    def find_or_match(self, position_id: int, team_id: int, options: Optional[MatchOptions] = None) -> List[MatchResult]:
        """Reuse stored matches when there are any, otherwise run matching."""
        options = options or MatchOptions()
        existing = self.get_existing_matches(position_id, team_id)
        if existing:
            return filter_matches(existing, options)
        return self.match_position(position_id, team_id, options)
