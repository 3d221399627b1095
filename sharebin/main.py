"""
FastAPI application for short-lived text and file sharing.
"""
import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from sharebin.cleanup import ExpiryReaper
from sharebin.config import Settings, load_settings
from sharebin.database import ShareStore, utcnow
from sharebin.exceptions import PayloadTooLarge, ShareUnavailable, StorageError, ValidationError
from sharebin.models import HealthResponse, ShareResponse, StatsResponse, share_view
from sharebin.retrieval import handle_retrieve
from sharebin.security import log_security_event, sanitize_filename, sanitize_mimetype
from sharebin.share import FilePayload, Payload, TextPayload
from sharebin.utils.code_generator import is_valid_share_id

logger = logging.getLogger(__name__)

NOT_FOUND_DETAIL = "Share not found or expired"

MAX_EXPIRATION_HOURS = 24 * 365 * 10  # ten years

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def configure_logging(debug: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def parse_expiration(expiration: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Turn the `expiration` form field (hours) into an expiry timestamp.

    Absent, zero, negative or non-numeric values mean the share never expires.

    Raises:
        ValidationError: more than MAX_EXPIRATION_HOURS
    """
    if not expiration:
        return None
    match = _LEADING_INT.match(expiration)
    if not match:
        return None
    sign, digits = match.group(1)[:1], match.group(1).lstrip("+-").lstrip("0")
    if sign == "-" or not digits:
        return None
    # length check first: int() refuses very long digit strings
    if len(digits) > len(str(MAX_EXPIRATION_HOURS)) or int(digits) > MAX_EXPIRATION_HOURS:
        raise ValidationError(f"Expiration must be at most {MAX_EXPIRATION_HOURS} hours")
    return (now or utcnow()) + timedelta(hours=int(digits))


async def read_upload(file: Optional[UploadFile], max_size: int) -> Optional[FilePayload]:
    """Read an uploaded file, rejecting it before it reaches the store if too big."""
    if file is None:
        return None
    data = await file.read(max_size + 1)
    if not file.filename and not data:
        return None
    if len(data) > max_size:
        limit = f"{max_size // (1024 * 1024)}MB" if max_size >= 1024 * 1024 else f"{max_size} bytes"
        raise PayloadTooLarge(f"File too large (max {limit})")
    return FilePayload(
        filename=sanitize_filename(file.filename),
        mimetype=sanitize_mimetype(file.content_type),
        data=data,
    )


def get_store(request: Request) -> ShareStore:
    return request.app.state.store


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        # Prevent content type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.debug)

    @asynccontextmanager
    async def lifespan(app):
        """Open the store and start the cleanup worker; tear both down on exit."""
        store = ShareStore(settings.database_path)
        await store.open()
        reaper = ExpiryReaper(store, interval=settings.cleanup_interval)
        reaper.start()
        app.state.store = store
        app.state.reaper = reaper
        logger.info("ShareBin started successfully")
        try:
            yield
        finally:
            logger.info("ShareBin shutting down")
            await reaper.stop()
            await store.close()

    app = FastAPI(title="ShareBin", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    @app.post("/upload")
    async def create_share(
        text: Optional[str] = Form(None),
        expiration: Optional[str] = Form(None),
        file: Optional[UploadFile] = File(None),
        store: ShareStore = Depends(get_store),
    ):
        """Create a new text or file share."""
        try:
            payload: Optional[Payload] = await read_upload(file, settings.max_file_size)
        except PayloadTooLarge as e:
            raise HTTPException(status_code=413, detail=str(e))
        if payload is None and text:
            payload = TextPayload(content=text)
        if payload is None:
            raise HTTPException(status_code=400, detail="No content provided")

        try:
            expires_at = parse_expiration(expiration)
            share_id = await store.create(payload, expires_at=expires_at)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except StorageError:
            logger.exception("Upload error")
            raise HTTPException(status_code=500, detail="Upload failed")

        kind = "file" if isinstance(payload, FilePayload) else "text"
        logger.info(f"Created {kind} share {share_id} (expires {expires_at or 'never'})")
        response = ShareResponse(id=share_id, url=settings.share_url(share_id), expires_at=expires_at)
        return JSONResponse(response.model_dump(mode="json", by_alias=True))

    @app.get("/v/{share_id}")
    async def get_share(share_id: str, store: ShareStore = Depends(get_store)):
        """Retrieve a share, counting one view."""
        if not is_valid_share_id(share_id):
            log_security_event("invalid_share_id", {"id": share_id[:16]})
            raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
        try:
            share = await handle_retrieve(store, share_id)
        except ShareUnavailable as e:
            # Same answer for every reason so expiry state cannot be probed
            logger.debug(f"Denied share {share_id}: {e.reason.value}")
            raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
        except StorageError:
            logger.exception("Retrieve error")
            raise HTTPException(status_code=500, detail="Failed to retrieve share")
        return JSONResponse(share_view(share).model_dump(mode="json", by_alias=True))

    @app.get("/stats")
    async def get_stats(store: ShareStore = Depends(get_store)):
        try:
            stats = await store.stats()
        except StorageError:
            logger.exception("Stats error")
            raise HTTPException(status_code=500, detail="Failed to get stats")
        return JSONResponse(StatsResponse.from_stats(stats).model_dump())

    @app.get("/health")
    async def health_check():
        return JSONResponse(HealthResponse().model_dump())

    return app


def run():
    import uvicorn
    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
