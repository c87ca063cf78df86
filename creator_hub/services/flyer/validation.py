"""
Pre-flight checks for flyer requests. Pure, no I/O.
"""

from creator_hub.errors import ValidationError
from creator_hub.models.domain.flyer_domain import FlyerRequest

MAX_LABEL_LENGTH = 40


def _valid_label(value: str) -> bool:
    return bool(value and value.strip()) and len(value) <= MAX_LABEL_LENGTH


def validate_flyer_request(request: FlyerRequest) -> str | None:
    """Return the first failing reason, or None when the request is valid."""
    if not _valid_label(request.title):
        return f"Title must be 1-{MAX_LABEL_LENGTH} characters."
    if not _valid_label(request.creator_name):
        return f"Creator name must be 1-{MAX_LABEL_LENGTH} characters."
    if not _valid_label(request.opponent_name):
        return f"Opponent name must be 1-{MAX_LABEL_LENGTH} characters."
    if not (request.battle_date and request.battle_date.strip()):
        return "Battle date is required."
    if not request.image.uri:
        return "Face photo is required."
    return None


def ensure_valid(request: FlyerRequest) -> None:
    reason = validate_flyer_request(request)
    if reason is not None:
        raise ValidationError(reason)
