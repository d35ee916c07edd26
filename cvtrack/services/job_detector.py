import json
import logging

from sqlalchemy.orm import Session

from cvtrack.core import prompts
from cvtrack.models.application import ApplicationType
from cvtrack.models.job import JobPosition, JobPositionStatus
from cvtrack.schemas.detection import AIJobDetection, JobDetectionResult
from cvtrack.services.ai_orchestrator import AIOrchestrator, AIDomain

logger = logging.getLogger(__name__)

DESCRIPTION_SNIPPET_CHARS = 500
BODY_SNIPPET_CHARS = 1000
DETECTION_TEMPERATURE = 0.2


def detect_job_position(db: Session, team_id: int, subject: str, body: str) -> JobDetectionResult:
    """
    Work out which active posting (if any) an inbound e-mail applies to.
    Never raises: any failure degrades to a spontaneous application.
    """
    try:
        active_positions = db.query(JobPosition).filter(
            JobPosition.team_id == team_id,
            JobPosition.status == JobPositionStatus.active,
        ).all()

        if not active_positions:
            return JobDetectionResult.spontaneous(
                "No active job positions found. This is a spontaneous application.", confidence=100
            )

        positions_data = [
            {
                "id": p.id,
                "title": p.title,
                "description": (p.description or "")[:DESCRIPTION_SNIPPET_CHARS],
                "location": p.location,
            }
            for p in active_positions
        ]
        prompt = prompts.get_prompt(
            prompts.JOB_DETECTION_TEMPLATE,
            positions_json=json.dumps(positions_data, indent=2, ensure_ascii=False),
            subject=subject or "",
            body=(body or "")[:BODY_SNIPPET_CHARS],
        )

        detection = AIOrchestrator.analyze_json(
            prompt, AIJobDetection, temperature=DETECTION_TEMPERATURE, domain=AIDomain.JOB_DETECTION
        )
    except Exception as e:
        logger.error(f"Job detection failed for team {team_id}: {e}")
        return JobDetectionResult.spontaneous(
            "Error during AI detection. Defaulting to spontaneous application.", confidence=0
        )

    if detection.job_position_id is None:
        return JobDetectionResult.spontaneous(detection.reason, confidence=detection.confidence)

    if detection.job_position_id not in {p.id for p in active_positions}:
        logger.warning(
            f"AI picked position {detection.job_position_id} which is not active for team {team_id}"
        )
        return JobDetectionResult.spontaneous(
            "AI detected a position that does not exist among active postings. Marking as spontaneous.",
            confidence=100,
        )

    return JobDetectionResult(
        job_position_id=detection.job_position_id,
        confidence=detection.confidence,
        reason=detection.reason,
        application_type=ApplicationType.direct,
    )
