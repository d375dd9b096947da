"""Shared BDD fixtures and step definitions for the Delivery domain."""

import pytest
from pytest_bdd import given, parsers, then

from delivery.audit.audit import AuditEventType, AuditLog
from delivery.errors import DeliveryError
from delivery.order import meta
from delivery.order.store import OrderStore
from delivery.status.status import label, normalize
from delivery.token.store import UploadTokenStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured delivery errors."""
    return {"exc": None}


@pytest.fixture()
def submitted():
    """Files the provider will submit, by name."""
    return []


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("an internal provider", target_fixture="provider")
def _internal_provider(make_provider):
    return make_provider(name="Oficina Tradutema", is_internal=True)


@given(parsers.cfparse('an external provider named "{name}"'), target_fixture="provider")
def _external_provider(make_provider, name):
    return make_provider(name=name)


@given("an order assigned to the provider for digital delivery", target_fixture="order")
def _digital_order(make_order, provider):
    return make_order(provider=provider, paper=False)


@given("an order assigned to the provider with paper delivery", target_fixture="order")
def _paper_order(make_order, provider):
    return make_order(provider=provider, paper=True)


@given(parsers.cfparse('the order is in status "{status}"'), target_fixture="order")
def _order_in_status(order, status):
    OrderStore().update_meta(order.id, {meta.STATUS: status})
    return OrderStore().get(order.id)


@given("an upload link was issued for the order", target_fixture="token")
def _upload_link(issue_token, order):
    return issue_token(order)


@given("the upload link was already used")
def _used_link(token):
    UploadTokenStore().mark_used(token, ["previa.pdf"])


@given(parsers.cfparse('the provider selects the file "{name}"'))
def _select_file(submitted, name):
    submitted.append(name)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _order_status(order, reload_order, status):
    assert reload_order(order).operational_status == normalize(status)


@then("the upload link is consumed")
def _link_consumed(token):
    assert UploadTokenStore().resolve(token).used is True


@then("the upload link is still usable")
def _link_usable(token):
    record = UploadTokenStore().resolve(token)
    assert record.used is False
    assert record.claimed_at is None


@then(parsers.cfparse('the redemption fails with "{error_name}"'))
def _redemption_fails(error, error_name):
    assert isinstance(error["exc"], DeliveryError), "Expected a delivery error but none was raised"
    assert type(error["exc"]).__name__ == error_name


@then(parsers.cfparse('the status change from "{previous}" to "{current}" is audited'))
def _status_change_audited(order, previous, current):
    entries = AuditLog().for_order(order.id, AuditEventType.OPERATIONAL_STATUS)
    assert [entry.data["previous_label"] for entry in entries] == [label(previous)]
    assert [entry.data["current_label"] for entry in entries] == [label(current)]


@then("no status change is audited")
def _no_status_change(order):
    assert AuditLog().for_order(order.id, AuditEventType.OPERATIONAL_STATUS) == []


@then(parsers.cfparse('an email is sent to "{address}"'))
def _email_sent(mailer, address):
    assert mailer.sent_to(address), f"No email sent to {address}"


@then("no email is sent")
def _no_email(mailer):
    assert mailer.sent == []
