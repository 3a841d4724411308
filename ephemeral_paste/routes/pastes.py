"""
Paste API routes.
Handles create and fetch (consume) operations.
"""
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from ephemeral_paste.clock import current_time_ms
from ephemeral_paste.config import settings
from ephemeral_paste.database import PasteStore, get_store
from ephemeral_paste.errors import PasteNotFoundError, ValidationError
from ephemeral_paste.models import ErrorResponse, PasteCreated, PasteView
from ephemeral_paste.service import consume_paste, create_paste, validate_create_input

router = APIRouter()
logger = logging.getLogger(__name__)


def _share_url(request: Request, paste_id: str) -> str:
    base_url = settings.APP_DOMAIN or str(request.base_url)
    return f"{base_url.rstrip('/')}/p/{paste_id}"


def _payload_too_large() -> JSONResponse:
    return JSONResponse(status_code=413, content={"error": "payload_too_large"})


@router.post(
    "/api/pastes",
    response_model=PasteCreated,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_paste_endpoint(
    request: Request,
    store: PasteStore = Depends(get_store),
    x_test_now_ms: Optional[str] = Header(None),
):
    """
    Create a new paste.

    The body is decoded by hand rather than through a pydantic body model so
    that every malformed payload gets the same {"error": ...} shape.

    Raises:
        ValidationError: If the body is not a valid paste (400)
        StorageError: If the paste cannot be saved (500)
    """
    declared_length = request.headers.get("content-length", "")
    if declared_length.isdigit() and int(declared_length) > settings.MAX_BODY_BYTES:
        return _payload_too_large()

    # Chunked uploads carry no Content-Length
    body = await request.body()
    if len(body) > settings.MAX_BODY_BYTES:
        return _payload_too_large()

    try:
        raw = json.loads(body) if body else None
    except ValueError:
        raise ValidationError("Body must be a JSON object") from None

    validated = validate_create_input(raw)
    now_ms = current_time_ms(x_test_now_ms)
    paste_id = await run_in_threadpool(create_paste, store, validated, now_ms)

    return PasteCreated(id=paste_id, url=_share_url(request, paste_id))


@router.get(
    "/api/pastes/{paste_id}",
    response_model=PasteView,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def fetch_paste(
    paste_id: str,
    store: PasteStore = Depends(get_store),
    x_test_now_ms: Optional[str] = Header(None),
) -> PasteView:
    """
    Fetch a paste (API endpoint).
    Each fetch consumes one view of a view-limited paste.

    Raises:
        PasteNotFoundError: If paste not found, expired, or view limit exceeded (404)
    """
    now_ms = current_time_ms(x_test_now_ms)
    paste = await run_in_threadpool(consume_paste, store, paste_id, now_ms)

    if paste is None:
        raise PasteNotFoundError(paste_id)

    return paste
