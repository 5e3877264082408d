"""HTTP server: SDK token endpoint, health probe and the customer/agent pages."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

from cobrowse_demo.config import Config, load_config
from cobrowse_demo.errors import CobrowseError, ConfigurationMissing, ErrorCode, ErrorResponse
from cobrowse_demo.logging_setup import bind_request
from cobrowse_demo.token_codec import Role, encode_token

logger = logging.getLogger("cobrowse_demo.server")

MIME_TYPES: dict[str, str] = {
    ".html": "text/html",
    ".js": "application/javascript",
    ".css": "text/css",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".map": "application/json",
}

_PAGE_ROUTES: dict[str, tuple[str, ...]] = {
    "/": ("customer", "index.html"),
    "/customer": ("customer", "index.html"),
    "/customer/": ("customer", "index.html"),
    "/agent": ("agent", "index.html"),
    "/agent/": ("agent", "index.html"),
}


# --- Request/Response Models ---


class TokenRequest(BaseModel):
    """Body sent by the pages' token fetch. Other fields (sdkKey) are ignored."""
    role: Optional[int] = None


class TokenResponse(BaseModel):
    token: str
    role: int
    expiresIn: int  # noqa: N815 (wire name read by the pages)
    domain: str


# --- Middleware ---


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind the request to the logging context, log the request line, echo X-Correlation-ID."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        cid = bind_request(request.method, request.url.path, request.headers.get("X-Correlation-ID"))
        logger.info("%s %s", request.method, request.url.path)
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid
        return response


# --- Static files ---


def content_type_for(path: Path) -> str:
    return MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")


def resolve_static_path(root: Path, pathname: str) -> Path | None:
    """Map a request path to a file under ``root``. None if it escapes root or is unresolvable."""
    root = root.resolve()
    parts = _PAGE_ROUTES.get(pathname)
    if parts is not None:
        return root.joinpath(*parts)
    try:
        candidate = (root / pathname.lstrip("/")).resolve()
    except (OSError, ValueError):
        return None
    if candidate != root and root not in candidate.parents:
        return None
    return candidate


# --- App Factory ---


def create_app(config: Config | None = None) -> FastAPI:
    """Create the FastAPI app. Config is read once here, not per request."""
    _cfg: Config = config if config is not None else load_config()
    static_root = Path(_cfg.static.root)
    cache_control = f"public, max-age={_cfg.static.cache_max_age}"

    app = FastAPI(title="cobrowse-demo", description="Cobrowse SDK demo token and page server")
    app.add_middleware(CorrelationIdMiddleware)

    # --- Exception handlers ---

    @app.exception_handler(CobrowseError)
    async def cobrowse_error_handler(request: Request, exc: CobrowseError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse.from_cobrowse_error(exc).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        err = CobrowseError(
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            details={"errors": jsonable_encoder(exc.errors())},
        )
        return JSONResponse(
            status_code=err.status_code,
            content=ErrorResponse.from_cobrowse_error(err).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(status_code=500, content=ErrorResponse.internal().model_dump())

    def _issue_token(role: int) -> dict[str, Any]:
        sdk = _cfg.sdk
        if not sdk.is_configured:
            logger.warning("Token requested but SDK credentials are not configured")
            raise ConfigurationMissing()
        token = encode_token(sdk.key, sdk.secret, role, sdk.token_expiry)
        logger.info("Token generated for role: %s", role, extra={"role": role})
        return TokenResponse(
            token=token,
            role=role,
            expiresIn=sdk.token_expiry,
            domain=sdk.domain,
        ).model_dump()

    # --- Routes ---

    @app.options("/{path:path}")
    async def preflight(path: str) -> Response:
        return Response(status_code=204)

    @app.get("/health")
    async def health():
        """Liveness probe."""
        return {"status": "ok"}

    @app.get("/token")
    async def token_get(role: Optional[int] = None):
        return _issue_token(int(role or Role.CUSTOMER))

    @app.post("/token")
    async def token_post(body: Optional[TokenRequest] = None):
        # A missing or zero role falls back to customer, as the pages expect.
        role = body.role if body is not None else None
        return _issue_token(int(role or Role.CUSTOMER))

    @app.api_route("/", methods=["GET", "HEAD"])
    @app.api_route("/{path:path}", methods=["GET", "HEAD"])
    async def static_file(path: str = "") -> Response:
        file_path = resolve_static_path(static_root, "/" + path)
        if file_path is None:
            logger.warning("Rejected path outside static root: /%s", path)
            return PlainTextResponse("403 Forbidden", status_code=403)
        if file_path.is_dir():
            file_path = file_path / "index.html"
        if not file_path.is_file():
            return PlainTextResponse("404 Not Found", status_code=404)
        return FileResponse(
            file_path,
            media_type=content_type_for(file_path),
            headers={"Cache-Control": cache_control},
        )

    return app


def run_server(config: Config | None = None) -> None:
    """Run the HTTP server with uvicorn."""
    if config is None:
        config = load_config()
    state = "configured" if config.sdk.is_configured else "(not set)"
    logger.info("SDK credentials: %s", state)
    app = create_app(config)
    uvicorn.run(app, host=config.serve.host, port=config.serve.port, log_config=None)
