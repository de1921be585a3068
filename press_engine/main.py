"""FastAPI application entry point."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from press_engine.api import router as api_router
from press_engine.core.errors import PressEngineError, RateLimitExceededError
from press_engine.core.logging import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Press Engine",
    description="LLM orchestration for press release generation, retrieval and usage limits",
    version="0.1.0",
)


@app.exception_handler(PressEngineError)
async def press_engine_error_handler(request: Request, exc: PressEngineError) -> JSONResponse:
    """Render orchestration errors as {"error": {type, message, details|meta}}."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_type} on {request.method} {request.url.path}: {exc.message}")

    headers = {}
    if isinstance(exc, RateLimitExceededError):
        headers["Retry-After"] = str(exc.retry_after_s)

    return JSONResponse(content={"error": exc.to_dict()}, status_code=exc.status_code, headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"path": ".".join(str(part) for part in err.get("loc", ())), "reason": err.get("msg", "invalid")}
        for err in exc.errors()
    ]
    return JSONResponse(
        content={"error": {"type": "ValidationError", "message": "Invalid request", "details": details}},
        status_code=400,
    )


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


# Include v1 API router
app.include_router(api_router, prefix="/v1", tags=["v1"])
