from creator_hub.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def format_to_12_hour(time_24: str) -> str:
    """
    Convert "HH:MM" 24-hour time to 12-hour AM/PM.

    "17:00" -> "5:00 PM", "00:15" -> "12:15 AM". Empty input gives an empty
    string; unparsable input is returned unchanged.
    """
    if not time_24:
        return ""

    hours_str, _, minutes = time_24.partition(":")
    try:
        hours = int(hours_str)
    except ValueError:
        logger.warning("Unable to convert time", time=time_24)
        return time_24

    period = "PM" if hours >= 12 else "AM"
    if hours == 0:
        hours = 12
    elif hours > 12:
        hours -= 12

    return f"{hours}:{minutes or '00'} {period}"
