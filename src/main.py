"""Entry point for the WebRTC to Voice API bridge."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse

from api.dependencies import close_conference
from api.routes import router as api_router
from conference.errors import BridgeError, ConfigurationError, FanoutError
from config.settings import get_settings

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    missing = settings.missing_credentials()
    if missing:
        raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")
    LOGGER.info("WebRTC bridge starting (env=%s)", settings.environment)
    yield
    await close_conference()


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="WebRTC Voice Bridge",
    description="Connects a browser microphone to an inbound phone call through a hosted WebRTC service.",
    lifespan=lifespan,
)
app.include_router(api_router)


@app.exception_handler(BridgeError)
async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    content: dict = {"detail": exc.detail}
    if isinstance(exc, FanoutError):
        content["failures"] = [
            {"subscriberId": f.subscriber_id, "streamId": f.stream_id, "reason": f.reason}
            for f in exc.failures
        ]
    return JSONResponse(status_code=exc.status_code, content=content)


@app.get("/{full_path:path}", include_in_schema=False)
async def single_page_app(full_path: str) -> FileResponse:
    """Serve the browser client; unknown paths fall back to its index.html."""

    root = get_settings().frontend_dir.resolve()
    index = root / "index.html"
    if not index.is_file():
        raise HTTPException(status_code=404, detail="Frontend build not found")

    candidate = (root / full_path).resolve()
    if full_path and candidate.is_file() and candidate.is_relative_to(root):
        return FileResponse(candidate)
    return FileResponse(index)


def run() -> None:
    import uvicorn

    missing = settings.missing_credentials()
    if missing:
        print(
            f"ERROR! Please set the {', '.join(missing)} environment variables before running this app",
            file=sys.stderr,
        )
        sys.exit(1)

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
