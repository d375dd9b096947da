"""Provider aggregate — a translator or agency that produces translations.

Internal providers are the office's own staff: they confirm completion
through the delivery link instead of uploading files. External providers
upload the finished documents, which are then handed to the client.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String, Text

from delivery.domain import delivery


class ProviderStatus(Enum):
    ACTIVE = "activo"
    INACTIVE = "inactivo"


@delivery.aggregate
class Provider:
    name = String(required=True, max_length=190)
    contact_person = String(max_length=190)
    email = String(max_length=190)
    phone = String(max_length=50)
    is_internal = Boolean(default=False)
    pickup_address = Text()
    language_pairs = Text()  # JSON list of [source, target]
    status = String(max_length=30, choices=ProviderStatus, default=ProviderStatus.ACTIVE.value)
    created_at = DateTime()

    @classmethod
    def create(cls, name, language_pairs=None, **fields):
        pairs = [list(pair) for pair in (language_pairs or [])]
        for pair in pairs:
            if len(pair) != 2 or not all(str(lang).strip() for lang in pair):
                raise ValidationError({"language_pairs": [f"Invalid language pair: {pair}"]})

        return cls(
            name=name,
            language_pairs=json.dumps(pairs),
            created_at=datetime.now(UTC),
            **fields,
        )

    @property
    def pairs(self) -> list[tuple[str, str]]:
        raw = json.loads(self.language_pairs) if self.language_pairs else []
        return [(str(source), str(target)) for source, target in raw]

    def supports(self, source: str | None, target: str | None) -> bool:
        """Whether one of the provider's pairs matches (source, target), ignoring case."""
        if not source or not target:
            return False
        wanted = (source.strip().casefold(), target.strip().casefold())
        return any((s.strip().casefold(), t.strip().casefold()) == wanted for s, t in self.pairs)
