"""Operational status of a translation order.

The operational status is the fulfillment stage tracked by the office,
separate from the shop's payment status. Values are persisted in the order
meta bag under ``estado_operacional``.

Statuses (no enforced order, any key may follow any other):
    recibido → en_espera_tasacion → asignado_en_curso → traducido →
    en_espera_validacion_cliente → entregado

Normalization never fails: anything unrecognized becomes ``recibido``.
"""

import re
import unicodedata
from dataclasses import dataclass
from enum import Enum


class OperationalStatus(Enum):
    RECEIVED = "recibido"
    AWAITING_APPRAISAL = "en_espera_tasacion"
    ASSIGNED_IN_PROGRESS = "asignado_en_curso"
    TRANSLATED = "traducido"
    AWAITING_CLIENT_VALIDATION = "en_espera_validacion_cliente"
    DELIVERED = "entregado"


DEFAULT_STATUS = OperationalStatus.RECEIVED

_LABELS = {
    OperationalStatus.RECEIVED: "01-Recibido.",
    OperationalStatus.AWAITING_APPRAISAL: "02-En espera de tasación.",
    OperationalStatus.ASSIGNED_IN_PROGRESS: "03-Asignado y en curso.",
    OperationalStatus.TRANSLATED: "04-Traducido.",
    OperationalStatus.AWAITING_CLIENT_VALIDATION: "05-En espera validación cliente.",
    OperationalStatus.DELIVERED: "06-Entregado.",
}

# Legacy and English spellings seen in imported orders and old templates.
_SYNONYMS = {
    "received": OperationalStatus.RECEIVED,
    "nuevo": OperationalStatus.RECEIVED,
    "pendiente": OperationalStatus.RECEIVED,
    "awaiting_appraisal": OperationalStatus.AWAITING_APPRAISAL,
    "tasacion": OperationalStatus.AWAITING_APPRAISAL,
    "pendiente_tasacion": OperationalStatus.AWAITING_APPRAISAL,
    "assigned_in_progress": OperationalStatus.ASSIGNED_IN_PROGRESS,
    "asignado": OperationalStatus.ASSIGNED_IN_PROGRESS,
    "en_curso": OperationalStatus.ASSIGNED_IN_PROGRESS,
    "in_progress": OperationalStatus.ASSIGNED_IN_PROGRESS,
    "translated": OperationalStatus.TRANSLATED,
    "awaiting_client_validation": OperationalStatus.AWAITING_CLIENT_VALIDATION,
    "validacion_cliente": OperationalStatus.AWAITING_CLIENT_VALIDATION,
    "en_espera_validacion": OperationalStatus.AWAITING_CLIENT_VALIDATION,
    "delivered": OperationalStatus.DELIVERED,
    "completado": OperationalStatus.DELIVERED,
    "completed": OperationalStatus.DELIVERED,
}


def _slug(value) -> str:
    text = unicodedata.normalize("NFKD", str(value))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9]+", "_", text.lower())
    return text.strip("_")


def _build_lookup() -> dict[str, OperationalStatus]:
    lookup = dict(_SYNONYMS)
    for position, status in enumerate(OperationalStatus, start=1):
        lookup[status.value] = status
        lookup[_slug(_LABELS[status])] = status
        lookup[f"{position:02d}"] = status
        lookup[str(position)] = status
    return lookup


_LOOKUP = _build_lookup()


def normalize(raw) -> OperationalStatus:
    """Map any raw status value to its canonical status, defaulting to RECEIVED."""
    if isinstance(raw, OperationalStatus):
        return raw
    if raw is None:
        return DEFAULT_STATUS

    slug = _slug(raw)
    if slug in _LOOKUP:
        return _LOOKUP[slug]

    # "03_asignado_y_en_curso_extra" and similar: fall back to the numeric prefix
    prefix = re.match(r"^(\d{1,2})_", slug)
    if prefix and prefix.group(1).zfill(2) in _LOOKUP:
        return _LOOKUP[prefix.group(1).zfill(2)]

    return DEFAULT_STATUS


def label(key) -> str:
    """Human-readable label for a status key.

    Known keys get their office label; anything else is title-cased
    (``foo_bar`` → ``Foo Bar``) rather than silently relabelled.
    """
    if isinstance(key, OperationalStatus):
        return _LABELS[key]
    if key is None:
        return ""

    slug = _slug(key)
    if slug in _LOOKUP:
        return _LABELS[_LOOKUP[slug]]
    return str(key).replace("_", " ").replace("-", " ").strip().title()


def status_choices() -> list[tuple[str, str]]:
    """(key, label) pairs in lifecycle order, for forms and listings."""
    return [(status.value, _LABELS[status]) for status in OperationalStatus]


@dataclass(frozen=True)
class StatusTransition:
    previous: OperationalStatus
    current: OperationalStatus

    def as_payload(self) -> dict:
        return {
            "previous": self.previous.value,
            "current": self.current.value,
            "previous_label": label(self.previous),
            "current_label": label(self.current),
        }


def transition(current, target) -> StatusTransition | None:
    """Compute the previous→current pair, or None when nothing changes."""
    previous = normalize(current)
    new = normalize(target)
    if previous == new:
        return None
    return StatusTransition(previous=previous, current=new)
