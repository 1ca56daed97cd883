"""
Normalisation des dates de planification.

Une date seule (``2025-12-15``) vaut minuit UTC. Une date-heure doit porter
``Z`` ou un décalage ``±HH:MM``: une heure locale sans fuseau est refusée,
le serveur ne devine jamais le fuseau de l'appelant.
"""
import re
from datetime import datetime, time, timezone

from src.shipments.exceptions import InvalidScheduleDateException

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATETIME_WITH_TZ = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d{1,6})?)?(Z|[+-]\d{2}:\d{2})$")
_DATETIME_NO_TZ = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?$")


def is_date_only(value: str) -> bool:
    return _DATE_ONLY.match(value.strip()) is not None


def _parse_calendar_date(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        raise InvalidScheduleDateException(
            f"Invalid date '{value}': not a real calendar date",
            details={"value": value},
        ) from None


def parse_schedule_date(value: str) -> datetime:
    """Convertit la chaîne reçue en datetime UTC ou lève ``InvalidScheduleDateException``."""
    value = value.strip()

    if _DATE_ONLY.match(value):
        return _parse_calendar_date(value)

    if _DATETIME_WITH_TZ.match(value):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidScheduleDateException(
                f"Invalid date '{value}': not a real calendar date or time",
                details={"value": value},
            ) from None
        return parsed.astimezone(timezone.utc)

    if _DATETIME_NO_TZ.match(value):
        raise InvalidScheduleDateException(
            f"Ambiguous date '{value}': include a timezone (Z or ±HH:MM) or send a date-only value (YYYY-MM-DD)",
            details={"value": value},
        )

    raise InvalidScheduleDateException(
        f"Invalid date format '{value}': expected YYYY-MM-DD or an ISO 8601 date-time with timezone",
        details={"value": value},
    )


def normalize_range_start(value: str) -> datetime:
    """Début de plage: une date seule couvre la journée UTC depuis 00:00."""
    return parse_schedule_date(value)


def normalize_range_end(value: str) -> datetime:
    """Fin de plage (incluse): une date seule couvre la journée UTC jusqu'à 23:59:59.999999."""
    parsed = parse_schedule_date(value)
    if is_date_only(value):
        return datetime.combine(parsed.date(), time.max, tzinfo=timezone.utc)
    return parsed
