"""
Résumé classification and candidate extraction.

Drives each Resume through ``pending -> processing -> processed | rejected | error``.
"""
import io
from datetime import datetime, timezone
from typing import Optional

import PyPDF2
from sqlalchemy.orm import Session

from cvtrack.core import prompts
from cvtrack.core.exceptions import CVProcessingError
from cvtrack.models.application import Application
from cvtrack.models.candidate import Candidate
from cvtrack.models.match import CandidateMatch
from cvtrack.models.resume import Resume, ResumeStatus
from cvtrack.schemas.cv import (
    CVValidationResult, ExtractedCandidateData, CVProcessingOutcome, PendingProcessingResult
)
from cvtrack.services.ai_orchestrator import AIOrchestrator, AIDomain
from cvtrack.services.base import BaseService
from cvtrack.services.file_storage import FileStorage, get_storage

# Fixed policy: a document must be judged a CV with at least this confidence
CV_ACCEPTANCE_THRESHOLD = 60

MAX_PARSED_TEXT_CHARS = 100_000
VALIDATION_TEXT_CHARS = 8_000
EXTRACTION_TEXT_CHARS = 20_000

VALIDATION_TEMPERATURE = 0.1
EXTRACTION_TEMPERATURE = 0.2


def extract_text_from_pdf(data: bytes) -> str:
    try:
        reader = PyPDF2.PdfReader(io.BytesIO(data))
        text = "\n".join((page.extract_text() or "") for page in reader.pages)
    except Exception as e:
        raise CVProcessingError(f"Failed to extract text from PDF: {e}")
    return text.strip()[:MAX_PARSED_TEXT_CHARS]


def validate_cv(text: str) -> CVValidationResult:
    prompt = prompts.get_prompt(prompts.CV_VALIDATION_TEMPLATE, document_text=text[:VALIDATION_TEXT_CHARS])
    return AIOrchestrator.analyze_json(
        prompt, CVValidationResult, temperature=VALIDATION_TEMPERATURE, domain=AIDomain.CV_VALIDATION
    )


def is_accepted(validation: CVValidationResult) -> bool:
    return validation.is_cv and validation.confidence >= CV_ACCEPTANCE_THRESHOLD


def extract_candidate_data(text: str) -> ExtractedCandidateData:
    prompt = prompts.get_prompt(prompts.CV_EXTRACTION_TEMPLATE, cv_text=text[:EXTRACTION_TEXT_CHARS])
    return AIOrchestrator.analyze_json(
        prompt, ExtractedCandidateData, temperature=EXTRACTION_TEMPERATURE, domain=AIDomain.CV_EXTRACTION
    )


class CVProcessor(BaseService):
    def __init__(self, db: Session, storage: Optional[FileStorage] = None):
        super().__init__(db)
        self.storage = storage or get_storage()

    def process_cv_by_id(self, resume_id: int, team_id: int) -> CVProcessingOutcome:
        """
        Classify one pending résumé and, if accepted, extract a new Candidate.
        Never raises; failures leave the résumé in ``error``.
        """
        resume = self.db.query(Resume).filter(Resume.id == resume_id, Resume.team_id == team_id).first()
        if not resume:
            return CVProcessingOutcome(success=False, error="CV not found")
        if resume.status != ResumeStatus.pending:
            return CVProcessingOutcome(success=False, error=f"CV is not pending (status: {resume.status.value})")

        try:
            resume.status = ResumeStatus.processing
            self.commit()

            pdf_bytes = self.storage.read(resume.file_key)
            text = extract_text_from_pdf(pdf_bytes)

            resume.parsed_text = text
            self.commit()

            validation = validate_cv(text)
            resume.ai_validation_score = validation.confidence
            resume.ai_validation_reason = validation.reason
            self.commit()

            if not is_accepted(validation):
                resume.status = ResumeStatus.rejected
                resume.processed_at = datetime.now(timezone.utc)
                self.commit()
                self.log_info(
                    f"Resume {resume_id} rejected (isCV={validation.is_cv}, confidence={validation.confidence})"
                )
                return CVProcessingOutcome(
                    success=True, is_cv=False, error=f"Not recognized as CV: {validation.reason}"
                )

            extracted = extract_candidate_data(text)

            # One new Candidate per processed résumé; no merging across résumés
            candidate = Candidate(team_id=resume.team_id, **extracted.to_candidate_fields())
            self.db.add(candidate)
            self.db.flush()

            resume.candidate_id = candidate.id
            resume.status = ResumeStatus.processed
            resume.processed_at = datetime.now(timezone.utc)
            self.commit()

            self.log_info(f"Resume {resume_id} processed into candidate {candidate.id}")
            return CVProcessingOutcome(success=True, is_cv=True, candidate_id=candidate.id)

        except Exception as e:
            self._logger.exception(f"Error processing resume {resume_id}: {e}")
            self.db.rollback()
            self._mark_error(resume_id)
            return CVProcessingOutcome(success=False, error=str(e) or e.__class__.__name__)

    def _mark_error(self, resume_id: int):
        try:
            resume = self.db.get(Resume, resume_id)
            if resume is not None:
                resume.status = ResumeStatus.error
                self.commit()
        except Exception as e:
            self.log_error(f"Could not mark resume {resume_id} as error: {e}", exc_info=True)

    def process_all_pending(self, team_id: int) -> PendingProcessingResult:
        """Run every pending résumé of the team through classification, one at a time."""
        pending_ids = [
            row.id for row in self.db.query(Resume.id).filter(
                Resume.team_id == team_id,
                Resume.status == ResumeStatus.pending,
            ).order_by(Resume.id).all()
        ]

        result = PendingProcessingResult()
        for resume_id in pending_ids:
            outcome = self.process_cv_by_id(resume_id, team_id)
            if outcome.success:
                result.processed += 1
            else:
                result.errors += 1

        self.log_info(f"Processed {result.processed} pending CVs for team {team_id}, {result.errors} errors")
        return result

    def reset_errored_resumes(self, team_id: Optional[int] = None) -> int:
        """Move ``error`` résumés back to ``pending`` so the next run retries them."""
        query = self.db.query(Resume).filter(Resume.status == ResumeStatus.error)
        if team_id is not None:
            query = query.filter(Resume.team_id == team_id)

        count = query.update(
            {Resume.status: ResumeStatus.pending, Resume.processed_at: None},
            synchronize_session=False,
        )
        self.commit()
        self.log_info(f"Reset {count} errored CV(s) to pending")
        return count

    def delete_orphaned_resumes(self, team_id: int) -> int:
        """Remove résumé records whose stored file has gone missing, with their applications and matches."""
        orphaned_ids = [
            resume.id for resume in self.db.query(Resume).filter(Resume.team_id == team_id).all()
            if not self.storage.exists(resume.file_key)
        ]
        if not orphaned_ids:
            return 0

        self.db.query(CandidateMatch).filter(CandidateMatch.resume_id.in_(orphaned_ids)).delete(synchronize_session=False)
        self.db.query(Application).filter(Application.resume_id.in_(orphaned_ids)).delete(synchronize_session=False)
        self.db.query(Resume).filter(Resume.id.in_(orphaned_ids)).delete(synchronize_session=False)
        self.commit()
        self.log_info(f"Deleted {len(orphaned_ids)} orphaned CV record(s) for team {team_id}")
        return len(orphaned_ids)
