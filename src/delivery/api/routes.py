"""FastAPI routes for the Delivery domain — the public upload link.

``GET /?token=...`` shows the upload (or confirmation) page and
``POST /?token=...`` redeems the link. Both always answer with a full HTML
page; typed delivery errors become friendly pages with a matching status
code and anything unexpected is logged and shown as a generic error.

The workflow talks to Drive and SMTP with blocking clients, so it runs in
the threadpool; the domain context follows through the copied contextvars.
"""

import os
import tempfile
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from delivery.config import get_settings
from delivery.errors import (
    DeliveryError,
    StorageUnavailable,
    TokenAlreadyUsed,
    UploadValidation,
)
from delivery.redemption import IncomingFile, build_workflow
from delivery.redemption import views
from delivery.utils.logging import mask_token

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 1024 * 1024
GENERIC_ERROR = "Se ha producido un error inesperado. Inténtalo de nuevo más tarde."

delivery_router = APIRouter(tags=["delivery"])


def _token(request: Request) -> str | None:
    return request.query_params.get(get_settings().token_param)


def _action(token: str | None) -> str:
    return "/?" + urlencode({get_settings().token_param: token or ""})


def _error_page(exc: DeliveryError) -> HTMLResponse:
    if isinstance(exc, TokenAlreadyUsed):
        return HTMLResponse(views.already_used(), status_code=exc.http_status)
    return HTMLResponse(views.error(exc.user_message), status_code=exc.http_status)


async def _spool(upload: UploadFile, directory: str, index: int, max_bytes: int) -> IncomingFile:
    """Copy one uploaded part to disk, stopping as soon as it exceeds ``max_bytes``."""
    name = os.path.basename((upload.filename or "").replace("\\", "/")).strip()
    path = os.path.join(directory, f"{index:03d}")
    size = 0
    error = None

    with open(path, "wb") as handle:
        while chunk := await upload.read(CHUNK_SIZE):
            size += len(chunk)
            if size > max_bytes:
                error = UploadValidation.SIZE_EXCEEDED
                break
            handle.write(chunk)
    await upload.close()

    return IncomingFile(name=name, path=path, size=size, content_type=upload.content_type, error=error)


@delivery_router.get("/", response_class=HTMLResponse)
async def delivery_page(request: Request) -> HTMLResponse:
    token = _token(request)
    try:
        context = await run_in_threadpool(build_workflow().inspect, token)
    except DeliveryError as exc:
        logger.info("Delivery page refused", token=mask_token(token), reason=type(exc).__name__)
        return _error_page(exc)

    return HTMLResponse(views.upload_form(context, _action(token)))


@delivery_router.post("/", response_class=HTMLResponse)
async def redeem_delivery(request: Request) -> HTMLResponse:
    token = _token(request)
    workflow = build_workflow()
    max_bytes = get_settings().max_upload_bytes

    try:
        with tempfile.TemporaryDirectory(prefix="delivery-") as directory:
            form = await request.form()
            uploads = [part for part in form.getlist("files") if isinstance(part, UploadFile)]
            files = [await _spool(upload, directory, index, max_bytes) for index, upload in enumerate(uploads)]
            outcome = await run_in_threadpool(workflow.redeem, token, files)
    except (UploadValidation, StorageUnavailable) as exc:
        logger.warning("Delivery not completed", token=mask_token(token), error=str(exc))
        try:
            context = await run_in_threadpool(workflow.inspect, token)
        except DeliveryError as inner:
            return _error_page(inner)
        return HTMLResponse(
            views.upload_form(context, _action(token), error=exc.user_message),
            status_code=exc.http_status,
        )
    except DeliveryError as exc:
        logger.info("Delivery refused", token=mask_token(token), reason=type(exc).__name__)
        return _error_page(exc)
    except Exception:
        logger.exception("Delivery failed unexpectedly", token=mask_token(token))
        return HTMLResponse(views.error(GENERIC_ERROR), status_code=500)

    return HTMLResponse(views.success(outcome))
