from cvtrack.core.exceptions import AIError
from cvtrack.models.application import ApplicationType
from cvtrack.models.job import JobPositionStatus
from cvtrack.services.ai_orchestrator import AIDomain
from cvtrack.services.job_detector import detect_job_position

from factories import OTHER_TEAM_ID, TEAM_ID


def test_no_active_positions_is_spontaneous_without_ai(db_session, fake_ai, make_position):
    make_position(status=JobPositionStatus.closed)
    make_position(team_id=OTHER_TEAM_ID)

    result = detect_job_position(db_session, TEAM_ID, "Application", "Hello")

    assert result.job_position_id is None
    assert result.application_type == ApplicationType.spontaneous
    assert result.confidence == 100
    assert fake_ai.calls == []


def test_valid_position_is_direct(db_session, fake_ai, make_position):
    position = make_position()
    make_position(title="Data Engineer")
    fake_ai.set(AIDomain.JOB_DETECTION, {
        "jobPositionId": position.id,
        "confidence": 85,
        "reason": "Subject names the role",
        "applicationType": "direct",
    })

    result = detect_job_position(db_session, TEAM_ID, "Python Developer application", "Please see attached")

    assert result.job_position_id == position.id
    assert result.application_type == ApplicationType.direct
    assert result.confidence == 85
    prompt = fake_ai.calls_for(AIDomain.JOB_DETECTION)[0]
    assert "Data Engineer" in prompt
    assert "Python Developer application" in prompt


def test_null_position_is_spontaneous(db_session, fake_ai, make_position):
    make_position()
    fake_ai.set(AIDomain.JOB_DETECTION, {"jobPositionId": None, "confidence": 70, "reason": "General enquiry"})

    result = detect_job_position(db_session, TEAM_ID, "Open application", "")

    assert result.job_position_id is None
    assert result.application_type == ApplicationType.spontaneous
    assert result.confidence == 70


def test_hallucinated_position_is_spontaneous(db_session, fake_ai, make_position):
    position = make_position()
    other_team_position = make_position(team_id=OTHER_TEAM_ID)
    fake_ai.set(AIDomain.JOB_DETECTION, {
        "jobPositionId": other_team_position.id + position.id + 100,
        "confidence": 95,
        "reason": "Matches",
        "applicationType": "direct",
    })

    result = detect_job_position(db_session, TEAM_ID, "Application", "")

    assert result.job_position_id is None
    assert result.application_type == ApplicationType.spontaneous
    assert result.confidence == 100


def test_other_team_position_is_not_accepted(db_session, fake_ai, make_position):
    make_position()
    foreign = make_position(team_id=OTHER_TEAM_ID)
    fake_ai.set(AIDomain.JOB_DETECTION, {"jobPositionId": foreign.id, "confidence": 90, "reason": "Matches"})

    result = detect_job_position(db_session, TEAM_ID, "Application", "")

    assert result.job_position_id is None


def test_ai_failure_degrades_to_spontaneous(db_session, fake_ai, make_position):
    make_position()
    fake_ai.set(AIDomain.JOB_DETECTION, AIError("AI service reached timeout limit."))

    result = detect_job_position(db_session, TEAM_ID, "Application", "")

    assert result.job_position_id is None
    assert result.application_type == ApplicationType.spontaneous
    assert result.confidence == 0


def test_malformed_reply_degrades_to_spontaneous(db_session, fake_ai, make_position):
    make_position()
    fake_ai.set(AIDomain.JOB_DETECTION, "I think it is the developer role")

    result = detect_job_position(db_session, TEAM_ID, "Application", "")

    assert result.job_position_id is None
    assert result.confidence == 0
