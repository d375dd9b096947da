"""Change detection between two snapshots of an order's meta bag.

Used to build the audit entry of a staff edit: one ``FieldChange`` per
tracked field whose normalized value differs, with both values formatted
for display.
"""

from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import date, datetime, time

from delivery.order import meta
from delivery.status.status import label, normalize


@dataclass(frozen=True)
class FieldChange:
    field: str
    label: str
    previous: str
    current: str

    def as_payload(self) -> dict:
        return asdict(self)


# Field kinds drive both comparison and display formatting.
_STATUS = "status"
_PROVIDER = "provider"
_TEXT = "text"
_FLAG = "flag"
_DATE = "date"
_TIME = "time"
_DATETIME = "datetime"

TRACKED_FIELDS = (
    (meta.STATUS, "Estado operacional", _STATUS),
    (meta.PROVIDER_ID, "Proveedor", _PROVIDER),
    (meta.REFERENCE, "Referencia", _TEXT),
    (meta.INTERNAL_COMMENT, "Comentario interno", _TEXT),
    (meta.LINGUISTIC_COMMENT, "Comentario lingüístico", _TEXT),
    (meta.PAPER_DELIVERY, "Envío en papel", _FLAG),
    (meta.SCHEDULED_DATE, "Fecha prevista de entrega", _DATE),
    (meta.SCHEDULED_TIME, "Hora prevista de entrega", _TIME),
    (meta.REAL_DELIVERY, "Fecha real de entrega (PDF)", _DATETIME),
)


def to_flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "si", "sí", "on")
    return bool(value)


def _parse_datetime(value) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def _parse_time(value) -> time | None:
    if isinstance(value, time):
        return value
    if isinstance(value, datetime):
        return value.time()
    text = str(value).strip()
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def format_date(value) -> str:
    """``dd/mm/YYYY`` for anything date-like, the raw text otherwise, "" for nothing."""
    if value in (None, ""):
        return ""
    parsed = _parse_datetime(value)
    return parsed.strftime("%d/%m/%Y") if parsed else str(value)


def format_time(value) -> str:
    if value in (None, ""):
        return ""
    parsed = _parse_time(value)
    return parsed.strftime("%H:%M") if parsed else str(value)


def format_datetime(value) -> str:
    if value in (None, ""):
        return ""
    parsed = _parse_datetime(value)
    return parsed.strftime("%d/%m/%Y %H:%M") if parsed else str(value)


def _comparable(kind: str, value):
    """Normalize a raw meta value so that equivalent spellings compare equal."""
    if kind == _FLAG:
        return to_flag(value) if value not in (None, "") else False
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if kind == _STATUS:
        return normalize(value).value
    if kind == _PROVIDER:
        text = str(value).strip()
        return None if text in ("0", "") else text
    if kind == _DATE:
        parsed = _parse_datetime(value)
        return parsed.date().isoformat() if parsed else str(value).strip()
    if kind == _TIME:
        parsed = _parse_time(value)
        return parsed.strftime("%H:%M") if parsed else str(value).strip()
    if kind == _DATETIME:
        parsed = _parse_datetime(value)
        return parsed.replace(tzinfo=None).isoformat(timespec="minutes") if parsed else str(value).strip()
    return str(value).strip()


def _display(kind: str, value, provider_name: Callable[[str], str | None] | None) -> str:
    if kind == _FLAG:
        return "Sí" if value else "No"
    if value is None:
        return "—"
    if kind == _STATUS:
        return label(value)
    if kind == _PROVIDER:
        name = provider_name(value) if provider_name else None
        return name or f"#{value}"
    if kind == _DATE:
        return format_date(value)
    if kind == _DATETIME:
        return format_datetime(value)
    return value


def describe_changes(
    before: dict,
    after: dict,
    provider_name: Callable[[str], str | None] | None = None,
) -> list[FieldChange]:
    """List the tracked fields that differ between two meta snapshots.

    Args:
        before: meta bag before the edit
        after: meta bag after the edit
        provider_name: resolves a provider id to its display name
    """
    before = before or {}
    after = after or {}
    changes = []

    for field, field_label, kind in TRACKED_FIELDS:
        previous = _comparable(kind, before.get(field))
        current = _comparable(kind, after.get(field))
        if previous == current:
            continue
        changes.append(
            FieldChange(
                field=field,
                label=field_label,
                previous=_display(kind, previous, provider_name),
                current=_display(kind, current, provider_name),
            )
        )

    return changes
