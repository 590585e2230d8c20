"""FastAPI application for the payment router."""

import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from payrouter import __version__
from payrouter.api.endpoints import router
from payrouter.log_config import configure_logging

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("PAYROUTER_HOST", "0.0.0.0")
PORT = int(os.environ.get("PAYROUTER_PORT", "8000"))
DEBUG = os.environ.get("PAYROUTER_DEBUG", "false").lower() in ("true", "1", "yes")

# Payment intents are small; anything larger is not a quote request
MAX_REQUEST_SIZE = 64 * 1024

app = FastAPI(
    title="Payment Router",
    description="Cross-chain payment routing into the settlement token",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length is not None and not content_length.isdigit():
        return JSONResponse(status_code=400, content={"detail": "Invalid Content-Length"})
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the payment router API server.

    Configuration via environment variables:
    - PAYROUTER_HOST: Host to bind to (default: 0.0.0.0)
    - PAYROUTER_PORT: Port to bind to (default: 8000)
    - PAYROUTER_DEBUG: Enable debug logging and reload mode (default: false)
    """
    configure_logging("DEBUG" if DEBUG else "INFO")
    uvicorn.run(
        "payrouter.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
