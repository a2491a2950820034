"""
Registration submission validator

Pure checks on a raw multipart submission. No storage or network access, so
everything here can be unit tested directly.
"""
import json
from typing import Any, List, Optional

from pydantic import ValidationError

from app.core.exceptions import (
    IncompleteParticipantError,
    InvalidTeamSizeError,
    MalformedParticipantsError,
    MissingAttachmentError,
    MissingFieldError,
    ParticipantCountMismatchError,
)
from app.models import Participant, ValidatedSubmission


MIN_TEAM_SIZE = 1
MAX_TEAM_SIZE = 3

# Fields that must be filled in for the first participant (team lead)
REQUIRED_LEAD_FIELDS = ("name", "email", "phone", "college", "departmentYear")
LINK_FIELDS = ("linkedin", "portfolio")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def parse_team_size(raw: Any) -> int:
    """
    Parse team size and check it is within [MIN_TEAM_SIZE, MAX_TEAM_SIZE]

    Raises:
        InvalidTeamSizeError: If not an integer or out of range
    """
    try:
        size = int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidTeamSizeError()

    if size < MIN_TEAM_SIZE or size > MAX_TEAM_SIZE:
        raise InvalidTeamSizeError()
    return size


def parse_participants(raw: Any) -> List[Any]:
    """Decode the participants JSON string (already-decoded lists pass through)"""
    if isinstance(raw, list):
        return raw
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        raise MalformedParticipantsError()


def check_lead_participant(lead: Any, require_links: bool = False) -> None:
    """
    Check that the first participant has every required field

    Args:
        lead: Raw participant object (index 0)
        require_links: Also require linkedin and portfolio links
    """
    if not isinstance(lead, dict):
        raise IncompleteParticipantError()

    required = REQUIRED_LEAD_FIELDS + (LINK_FIELDS if require_links else ())
    missing = [field for field in required if _is_blank(lead.get(field))]
    if missing:
        raise IncompleteParticipantError(error=f"Missing: {', '.join(missing)}")


def validate_submission(
    team_name: Optional[str],
    team_size: Any,
    participants_raw: Any,
    portfolio_url: Optional[str],
    uploaded_file: Any,
    require_participant_links: bool = False,
) -> ValidatedSubmission:
    """
    Validate a raw team registration submission

    Checks run in a fixed order and the first failure is raised:
        1. required fields present
        2. team size in range
        3. participants JSON parses
        4. participant count equals team size
        5. first participant complete
        6. payment file attached

    Participants after the first must be JSON objects but are not field-checked;
    they are stored exactly as sent.

    Returns:
        ValidatedSubmission with typed fields and the accepted file

    Raises:
        RegistrationValidationError subclass describing the first failure
    """
    if any(_is_blank(v) for v in (team_name, team_size, participants_raw, portfolio_url)):
        raise MissingFieldError()

    size = parse_team_size(team_size)

    participants = parse_participants(participants_raw)
    if not isinstance(participants, list) or len(participants) != size:
        raise ParticipantCountMismatchError()

    check_lead_participant(participants[0], require_participant_links)

    if uploaded_file is None:
        raise MissingAttachmentError()

    if not all(isinstance(p, dict) for p in participants):
        raise MalformedParticipantsError()
    try:
        lead = Participant.model_validate(participants[0])
    except ValidationError as e:
        raise MalformedParticipantsError(error=f"{e.error_count()} invalid field(s) on first participant")

    # Later participants are stored exactly as sent
    members = [lead.model_dump(by_alias=True, exclude_none=True)] + participants[1:]

    return ValidatedSubmission(
        team_name=team_name.strip(),
        team_size=size,
        participants=members,
        portfolio_url=portfolio_url.strip(),
        payment_file=uploaded_file,
    )
