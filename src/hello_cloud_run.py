"""
Greeting service for Cloud Run.
Serves a single plain-text greeting on GET /hello.
"""
import logging
import os

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

GREETING = "Hello from Spring Boot on Cloud Run!"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080

logger = logging.getLogger(__name__)

app = FastAPI(title="Hello Cloud Run", version="1.0.0")


@app.get("/hello", response_class=PlainTextResponse)
async def hello():
    """Return the greeting as plain text."""
    return GREETING


def get_host(environ=None) -> str:
    """Listen address from HOST, defaulting to all interfaces."""
    environ = os.environ if environ is None else environ
    return environ.get("HOST", DEFAULT_HOST)


def get_port(environ=None) -> int:
    """Listen port from PORT, as injected by Cloud Run."""
    environ = os.environ if environ is None else environ
    raw = environ.get("PORT", str(DEFAULT_PORT))
    if not (raw.isascii() and raw.isdigit()):
        raise ValueError(f"PORT must be an integer, got {raw!r}")
    port = int(raw)
    if not 0 < port < 65536:
        raise ValueError(f"PORT must be between 1 and 65535, got {port}")
    return port


def main() -> None:
    """Start the greeting service and block until it is stopped."""
    logging.basicConfig(level=logging.INFO)
    try:
        port = get_port()
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        raise SystemExit(1) from exc
    host = get_host()

    logger.info("Starting greeting service on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    # Run the app when called as a module
    main()
