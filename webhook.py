import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
import uvicorn

from config import (
    LINE_CHANNEL_ACCESS_TOKEN,
    LINE_CHANNEL_SECRET,
    GEMINI_MODEL_NAME,
    GEMINI_DETECTION_MODEL_NAME,
    LANGUAGE_DEFAULT,
    LANGUAGE_POLICIES,
    LANGUAGE_TTL_SECONDS,
    REDIS_URL,
    DISPATCH_MODE,
    logger,
    validate_config,
)
from constants import LINE_CONSTANTS
from errors import BatchParseError
from events import parse_events
from handlers import (
    ConfirmationComposer,
    DispatchDeps,
    LanguageDetector,
    LanguageRecorder,
    LanguageResolver,
    VisionAnalyzer,
    build_dispatch_deps,
    build_policies,
    dispatch_events,
)
from language_store import LanguageStore, create_language_store
from line_client import LineClient
import strings as S
from utils import verify_signature

# Collaborators are created on first use so the app can be imported without
# credentials (tests, tooling) and shared across requests afterwards.
_line_client: LineClient | None = None
_language_store: LanguageStore | None = None
_dispatch_deps: DispatchDeps | None = None


def get_line_client() -> LineClient:
    global _line_client
    if _line_client is None:
        _line_client = LineClient(LINE_CHANNEL_ACCESS_TOKEN or "")
    return _line_client


def get_language_store() -> LanguageStore:
    global _language_store
    if _language_store is None:
        _language_store = create_language_store(REDIS_URL, LANGUAGE_TTL_SECONDS)
    return _language_store


def get_dispatch_deps() -> DispatchDeps:
    """Wire the dispatcher's collaborators from configuration."""
    global _dispatch_deps
    if _dispatch_deps is None:
        line_client = get_line_client()
        store = get_language_store()
        resolver = LanguageResolver(
            build_policies(LANGUAGE_POLICIES, store, line_client),
            default_language=LANGUAGE_DEFAULT,
        )
        logger.info(
            f"Language policies: {' > '.join(resolver.policy_names + ['default'])} "
            f"(default {resolver.default_language!r}), dispatch mode: {DISPATCH_MODE}"
        )
        _dispatch_deps = build_dispatch_deps(
            line_client=line_client,
            recorder=LanguageRecorder(store, LanguageDetector(GEMINI_DETECTION_MODEL_NAME)),
            resolver=resolver,
            analyzer=VisionAnalyzer(GEMINI_MODEL_NAME),
            composer=ConfirmationComposer(GEMINI_MODEL_NAME),
        )
    return _dispatch_deps


async def _close_collaborators() -> None:
    global _line_client, _language_store, _dispatch_deps
    if _line_client is not None:
        await _line_client.aclose()
        logger.info("LINE client closed")
    if _language_store is not None:
        await _language_store.close()
    _line_client = None
    _language_store = None
    _dispatch_deps = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    try:
        if not validate_config():
            raise RuntimeError("Configuration validation failed")
        get_dispatch_deps()
        logger.info("Guidebot webhook ready")
        yield
    except Exception as e:
        logger.critical(f"Startup failed: {e}")
        raise
    finally:
        try:
            await _close_collaborators()
        except Exception as e:
            logger.error(f"Error in shutdown: {e}")


app = FastAPI(lifespan=lifespan)


@app.get("/")
async def root():
    """Root endpoint for health checks."""
    return {"status": "running", "message": S.SERVICE_RUNNING}


@app.get("/health")
async def health_check():
    """
    Health check endpoint.
    Checks the language preference store and returns system status.
    """
    health_status = {
        "status": "healthy",
        "service": "guidebot",
        "checks": {},
    }

    try:
        store_ok = await get_language_store().ping()
        health_status["checks"]["language_store"] = "ok" if store_ok else "unreachable"
        if not store_ok:
            health_status["status"] = "degraded"
    except Exception as e:
        health_status["checks"]["language_store"] = f"error: {str(e)[:50]}"
        health_status["status"] = "degraded"

    if health_status["status"] == "healthy":
        return health_status
    return JSONResponse(status_code=503, content=health_status)


@app.get("/webhook")
async def webhook_alive():
    """Static acknowledgment for liveness probes on the webhook path."""
    return {"status": "ok"}


@app.post("/webhook")
async def webhook(request: Request):
    """Handle a batch of events from the LINE platform.

    Per-event failures never change the response: LINE redelivers batches
    answered with an error status, which would duplicate replies. Only an
    unreadable batch is answered with 500.
    """
    body = await request.body()

    # Validate webhook signature (required for security)
    client_host = request.client.host if request.client else "unknown"
    if not LINE_CHANNEL_SECRET:
        logger.error("LINE_CHANNEL_SECRET is missing; refusing webhook request.")
        return Response(status_code=503)
    signature = request.headers.get(LINE_CONSTANTS.SIGNATURE_HEADER)
    if not verify_signature(LINE_CHANNEL_SECRET, body, signature):
        logger.warning(f"Webhook request with invalid signature from {client_host}")
        return Response(status_code=403)

    try:
        events = parse_events(body)
        await dispatch_events(events, get_dispatch_deps(), mode=DISPATCH_MODE)
    except BatchParseError as e:
        logger.error(f"Malformed webhook batch: {e}")
        return JSONResponse(status_code=500, content={"status": "error"})
    except Exception as e:
        logger.error(f"Error in webhook: {type(e).__name__}: {e}", exc_info=e)
        return JSONResponse(status_code=500, content={"status": "error"})

    return {"status": "ok"}


if __name__ == "__main__":
    # Get the port from the environment variable, default to 8080
    port = int(os.environ.get("PORT", 8080))
    uvicorn.run(app, host="0.0.0.0", port=port)
