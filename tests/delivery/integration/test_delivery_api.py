"""Integration tests for the public delivery endpoint."""

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from delivery.api.routes import delivery_router
from delivery.redemption import DeliveryWorkflow
from delivery.status.status import OperationalStatus
from delivery.token.store import UploadTokenStore


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(delivery_router)
    return TestClient(app)


def _pdf(name="traduccion.pdf", content=b"%PDF-1.4 translated"):
    return ("files", (name, content, "application/pdf"))


class TestDeliveryPage:
    def test_unknown_token_returns_404(self, client):
        response = client.get("/", params={"token": "x" * 43})
        assert response.status_code == 404
        assert "no es válido" in response.text

    def test_missing_token_returns_404(self, client):
        assert client.get("/").status_code == 404

    def test_external_provider_sees_upload_form(self, client, make_order, make_provider, issue_token):
        order = make_order(provider=make_provider(name="Lingua Sur"))
        token = issue_token(order)

        response = client.get("/", params={"token": token})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert 'name="files"' in response.text
        assert 'enctype="multipart/form-data"' in response.text
        assert "Lingua Sur" in response.text
        assert f"#{order.id}" in response.text

    def test_internal_provider_sees_confirmation(self, client, make_order, make_provider, issue_token):
        order = make_order(provider=make_provider(is_internal=True))

        response = client.get("/", params={"token": issue_token(order)})

        assert "Confirmar traducción finalizada" in response.text
        assert 'name="files"' not in response.text

    def test_used_token_returns_409(self, client, make_order, issue_token):
        token = issue_token(make_order())
        UploadTokenStore().mark_used(token, [])

        response = client.get("/", params={"token": token})

        assert response.status_code == 409
        assert "Enlace ya utilizado" in response.text


class TestRedeem:
    def test_upload_completes_delivery(self, client, make_order, make_provider, issue_token, reload_order, drive):
        order = make_order(provider=make_provider())
        token = issue_token(order)

        response = client.post("/", params={"token": token}, files=[_pdf("a.pdf"), _pdf("b.pdf")])

        assert response.status_code == 200
        assert "Entrega completada" in response.text
        assert "a.pdf" in response.text
        assert [upload["name"] for upload in drive.uploads] == ["a.pdf", "b.pdf"]
        assert reload_order(order).operational_status == OperationalStatus.DELIVERED

    def test_second_submission_returns_409(self, client, make_order, make_provider, issue_token, drive):
        token = issue_token(make_order(provider=make_provider()))
        client.post("/", params={"token": token}, files=[_pdf()])

        response = client.post("/", params={"token": token}, files=[_pdf()])

        assert response.status_code == 409
        assert len(drive.uploads) == 1

    def test_no_files_redisplays_form(self, client, make_order, make_provider, issue_token):
        token = issue_token(make_order(provider=make_provider()))

        response = client.post("/", params={"token": token}, data={"comment": "nada"})

        assert response.status_code == 400
        assert "Selecciona al menos un archivo" in response.text
        assert 'name="files"' in response.text
        assert UploadTokenStore().resolve(token).used is False

    def test_oversized_file_is_rejected(self, client, make_order, make_provider, issue_token, drive):
        token = issue_token(make_order(provider=make_provider()))

        response = client.post("/", params={"token": token}, files=[_pdf("big.pdf", b"x" * 4096)])

        assert response.status_code == 400
        assert "big.pdf" in response.text
        assert drive.uploads == []

    def test_storage_failure_keeps_link_valid(self, client, make_order, make_provider, issue_token, drive):
        token = issue_token(make_order(provider=make_provider()))
        drive.configure(should_succeed=False, failure_reason="Backend Error")

        response = client.post("/", params={"token": token}, files=[_pdf()])

        assert response.status_code == 502
        assert "el enlace sigue siendo válido" in response.text
        assert "Backend Error" not in response.text
        assert UploadTokenStore().resolve(token).claimed_at is None

    def test_internal_confirmation(self, client, make_order, make_provider, issue_token, reload_order, mailer):
        order = make_order(provider=make_provider(is_internal=True))

        response = client.post("/", params={"token": issue_token(order)}, data={})

        assert response.status_code == 200
        assert "la traducción está terminada" in response.text
        assert reload_order(order).operational_status == OperationalStatus.TRANSLATED
        assert mailer.sent_to("admin@tradutema.test")

    def test_unexpected_error_shows_generic_page(self, client, make_order, make_provider, issue_token, monkeypatch):
        token = issue_token(make_order(provider=make_provider()))

        def _explode(*args, **kwargs):
            raise RuntimeError("database is gone")

        monkeypatch.setattr(UploadTokenStore, "claim", _explode)

        response = client.post("/", params={"token": token}, files=[_pdf()])

        assert response.status_code == 500
        assert "database is gone" not in response.text
        assert "error inesperado" in response.text


class TestBlockingWork:
    @staticmethod
    def _on_event_loop() -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    def test_redemption_runs_off_the_event_loop(self, client, make_order, make_provider, issue_token, monkeypatch):
        seen = []
        original = DeliveryWorkflow.redeem

        def _redeem(workflow, token, files=None):
            seen.append(self._on_event_loop())
            return original(workflow, token, files)

        monkeypatch.setattr(DeliveryWorkflow, "redeem", _redeem)
        token = issue_token(make_order(provider=make_provider()))

        response = client.post("/", params={"token": token}, files=[_pdf()])

        assert response.status_code == 200
        assert seen == [False]

    def test_page_lookup_runs_off_the_event_loop(self, client, make_order, issue_token, monkeypatch):
        seen = []
        original = DeliveryWorkflow.inspect

        def _inspect(workflow, token):
            seen.append(self._on_event_loop())
            return original(workflow, token)

        monkeypatch.setattr(DeliveryWorkflow, "inspect", _inspect)

        response = client.get("/", params={"token": issue_token(make_order())})

        assert response.status_code == 200
        assert seen == [False]
