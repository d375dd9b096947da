import json

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from delivery.config import DeliverySettings, reset_settings, set_settings
from delivery.mail import reset_transport, set_transport
from delivery.mail.fake_transport import FakeMailTransport
from delivery.order import meta
from delivery.order.order import Order
from delivery.provider.provider import Provider
from delivery.storage import reset_storage, set_credentials, set_drive_api
from delivery.storage.credentials import FakeCredentialProvider
from delivery.storage.fake_adapter import FakeDriveApi
from delivery.token.store import UploadTokenStore

TO_CLIENT_FOLDER = "fld_to_client_123"

TEST_SETTINGS = DeliverySettings(
    site_url="https://tradutema.test",
    admin_email="admin@tradutema.test",
    bcc_address="copias@tradutema.test",
    mail_from="Tradutema <pedidos@tradutema.test>",
    dashboard_url="https://tradutema.test/wp-admin/admin.php?page=tradutema-crm",
    max_upload_bytes=1024,
)


@pytest.fixture(scope="session")
def delivery_bed():
    from delivery.domain import delivery

    bed = DomainFixture(delivery)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(delivery_bed):
    with delivery_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()


@pytest.fixture(autouse=True)
def settings():
    set_settings(TEST_SETTINGS)
    yield TEST_SETTINGS
    reset_settings()


@pytest.fixture(autouse=True)
def drive():
    api = FakeDriveApi()
    api.add_folder(TO_CLIENT_FOLDER)
    set_drive_api(api)
    set_credentials(FakeCredentialProvider())
    yield api
    reset_storage()


@pytest.fixture(autouse=True)
def mailer():
    transport = FakeMailTransport()
    set_transport(transport)
    yield transport
    reset_transport()


# ---------------------------------------------------------------------------
# Record builders, exposed as fixtures below
# ---------------------------------------------------------------------------
def _make_provider(name="Traducciones Norte", is_internal=False, **fields):
    provider = Provider.create(
        name=name,
        email=fields.pop("email", "norte@proveedores.test"),
        is_internal=is_internal,
        language_pairs=fields.pop("language_pairs", [["Inglés", "Español"]]),
        **fields,
    )
    current_domain.repository_for(Provider).add(provider)
    return provider


def _make_order(provider=None, paper=False, to_client=TO_CLIENT_FOLDER, **meta_overrides):
    values = {
        meta.STATUS: "asignado_en_curso",
        meta.PAPER_DELIVERY: "1" if paper else "0",
        meta.SOURCE_LANGUAGE: "Inglés",
        meta.TARGET_LANGUAGE: "Español",
    }
    if provider is not None:
        values[meta.PROVIDER_ID] = str(provider.id)
    if to_client:
        values[meta.DRIVE_SUBFOLDERS] = json.dumps(
            {
                "01-Source": "fld_source",
                "04-ToClient": {"id": to_client, "url": f"https://drive.google.com/drive/folders/{to_client}"},
            }
        )
    values.update(meta_overrides)

    order = Order.create(
        billing_first_name="Lucía",
        billing_last_name="García",
        billing_email="lucia@cliente.test",
        billing_address_1="Calle Mayor 1",
        billing_city="Madrid",
        billing_postcode="28013",
        billing_country="ES",
        total=120.0,
        meta_values=values,
    )
    current_domain.repository_for(Order).add(order)
    return order


def _issue_token(order) -> str:
    return UploadTokenStore().issue(order.id)


def _reload_order(order) -> Order:
    return current_domain.repository_for(Order).get(order.id)


@pytest.fixture
def make_provider():
    return _make_provider


@pytest.fixture
def make_order():
    return _make_order


@pytest.fixture
def issue_token():
    return _issue_token


@pytest.fixture
def reload_order():
    return _reload_order
