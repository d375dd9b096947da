"""Order aggregate (CQRS) — the commercial record of a translation order.

Orders are created by the shop at purchase time and imported here as-is.
This context never deletes them; it only mutates the meta bag (operational
status, assigned provider, comments, dates, Drive folders) through
``update_meta`` and ``change_operational_status``.
"""

import json
from datetime import UTC, datetime

from protean.fields import DateTime, Float, String, Text

from delivery.domain import delivery
from delivery.order import meta
from delivery.status.status import DEFAULT_STATUS, StatusTransition, normalize, transition


@delivery.aggregate
class Order:
    # Billing
    billing_first_name = String(max_length=100)
    billing_last_name = String(max_length=100)
    billing_company = String(max_length=190)
    billing_email = String(max_length=254)
    billing_phone = String(max_length=50)
    billing_address_1 = String(max_length=255)
    billing_address_2 = String(max_length=255)
    billing_city = String(max_length=100)
    billing_state = String(max_length=100)
    billing_postcode = String(max_length=20)
    billing_country = String(max_length=2)

    # Shipping (paper copies)
    shipping_first_name = String(max_length=100)
    shipping_last_name = String(max_length=100)
    shipping_company = String(max_length=190)
    shipping_address_1 = String(max_length=255)
    shipping_address_2 = String(max_length=255)
    shipping_city = String(max_length=100)
    shipping_state = String(max_length=100)
    shipping_postcode = String(max_length=20)
    shipping_country = String(max_length=2)
    shipping_method = String(max_length=190)

    customer_note = Text()
    total = Float(default=0.0)
    currency = String(max_length=3, default="EUR")

    line_items = Text()  # JSON list of {"name", "quantity", "attributes": {label: value}}
    meta_bag = Text()  # JSON key/value meta bag, keys in delivery.order.meta

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, line_items=None, meta_values=None, **fields):
        """Import an order from the shop with an initial meta bag."""
        now = datetime.now(UTC)
        values = {meta.STATUS: DEFAULT_STATUS.value}
        values.update(meta_values or {})
        values[meta.STATUS] = normalize(values[meta.STATUS]).value

        return cls(
            line_items=json.dumps(line_items or []),
            meta_bag=json.dumps(values),
            created_at=now,
            updated_at=now,
            **fields,
        )

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def meta_values(self) -> dict:
        return json.loads(self.meta_bag) if self.meta_bag else {}

    @property
    def items(self) -> list[dict]:
        return json.loads(self.line_items) if self.line_items else []

    @property
    def operational_status(self):
        return normalize(self.meta_values.get(meta.STATUS))

    @property
    def customer_name(self) -> str:
        return " ".join(part for part in (self.billing_first_name, self.billing_last_name) if part)

    @property
    def shipping_address(self) -> str:
        """Single-line postal address for paper copies, falling back to billing."""
        prefix = "shipping" if self.shipping_address_1 else "billing"
        name = " ".join(
            part
            for part in (getattr(self, f"{prefix}_first_name"), getattr(self, f"{prefix}_last_name"))
            if part
        )
        parts = [
            name,
            getattr(self, f"{prefix}_company"),
            getattr(self, f"{prefix}_address_1"),
            getattr(self, f"{prefix}_address_2"),
            " ".join(p for p in (getattr(self, f"{prefix}_postcode"), getattr(self, f"{prefix}_city")) if p),
            getattr(self, f"{prefix}_state"),
            getattr(self, f"{prefix}_country"),
        ]
        return ", ".join(part for part in parts if part)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def update_meta(self, changes: dict) -> tuple[dict, dict]:
        """Merge ``changes`` into the meta bag. Returns (before, after) snapshots."""
        before = self.meta_values
        after = dict(before)
        after.update(changes)
        if meta.STATUS in after:
            after[meta.STATUS] = normalize(after[meta.STATUS]).value

        self.meta_bag = json.dumps(after)
        self.updated_at = datetime.now(UTC)
        return before, after

    def change_operational_status(self, target) -> StatusTransition | None:
        """Move to ``target``; returns the transition, or None if already there."""
        change = transition(self.meta_values.get(meta.STATUS), target)
        if change is None:
            return None
        self.update_meta({meta.STATUS: change.current.value})
        return change
