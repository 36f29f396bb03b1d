from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging
import time

from api_hierarchy import router as hierarchy_router
from api_health import router as health_router
from config import CORS_ORIGINS, HOST, LOG_LEVEL, PORT, load_hierarchy_settings, parse_number
from db_neo4j import create_driver
from errors import HierarchyError
from request_logging import get_client_ip, get_request_id, structured_log_line

# Configure logging
logging.basicConfig(level=LOG_LEVEL, format="%(message)s")
logger = logging.getLogger("hierarchy_api")

FETCH_ERROR_PAYLOAD = {"error": "Failed to fetch data"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the Neo4j driver before serving and close it on shutdown.

    A ConnectionFailure here aborts startup, so no endpoint is ever served
    without a verified connection.
    """
    app.state.hierarchy_settings = load_hierarchy_settings()
    try:
        app.state.neo4j_driver = create_driver()
    except HierarchyError as e:
        logger.error(f"Connection error\n{e}\nCause: {e.__cause__}")
        raise

    logger.info(structured_log_line({
        "event": "startup",
        "orphan_policy": app.state.hierarchy_settings.orphan_policy,
        "port": PORT,
    }))

    yield  # App runs here

    app.state.neo4j_driver.close()
    app.state.neo4j_driver = None
    logger.info("Neo4j driver closed")


app = FastAPI(
    title="Hierarchy API",
    description="Serves the entities stored in Neo4j as a forest of nested nodes.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(hierarchy_router)
app.include_router(health_router)


@app.middleware("http")
async def request_observability(request: Request, call_next):
    start = time.perf_counter()
    request_id = get_request_id(request)
    request.state.request_id = request_id

    response = None
    try:
        response = await call_next(request)
    finally:
        latency_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            structured_log_line(
                {
                    "event": "request",
                    "request_id": request_id,
                    "route": request.url.path,
                    "method": request.method,
                    "status": response.status_code if response is not None else 500,
                    "latency_ms": latency_ms,
                    "client_ip": get_client_ip(request),
                }
            )
        )

    response.headers["x-request-id"] = request_id
    return response


# Centralized error handling
@app.exception_handler(HierarchyError)
async def hierarchy_exception_handler(request: Request, exc: HierarchyError):
    """
    Fetch or build failures for a request.
    The cause is logged here; the client only ever sees the fixed payload.
    """
    logger.error(
        f"Hierarchy request failed on {request.method} {request.url.path}: {exc}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "exception_type": type(exc).__name__,
        },
        exc_info=exc.__cause__ is not None,
    )
    return JSONResponse(status_code=500, content=FETCH_ERROR_PAYLOAD)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handle HTTP exceptions (4xx, 5xx).
    Logs 4xx at WARNING and 5xx at ERROR.
    """
    if exc.status_code >= 500:
        logger.error(
            f"HTTP {exc.status_code} error on {request.method} {request.url.path}",
            extra={
                "status_code": exc.status_code,
                "method": request.method,
                "path": request.url.path,
                "detail": exc.detail,
            },
        )
    else:
        logger.warning(
            f"HTTP {exc.status_code} error on {request.method} {request.url.path}: {exc.detail}",
            extra={
                "status_code": exc.status_code,
                "method": request.method,
                "path": request.url.path,
                "detail": exc.detail,
            },
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle request validation errors (422).
    These are client errors, so log at WARNING level.
    """
    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "errors": exc.errors(),
        },
    )
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors()},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unhandled exceptions.
    Logs full stack trace but returns sanitized error message to client.
    """
    logger.exception(
        f"Unhandled exception on {request.method} {request.url.path}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
    )

    # Return sanitized error message (don't leak internal details)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


@app.get("/")
def read_root():
    return {"status": "ok", "message": "Hierarchy API is running"}


if __name__ == "__main__":
    import uvicorn

    port = parse_number("PORT", PORT, int)
    logger.info(f"Starting server on {HOST}:{port}")
    uvicorn.run(app, host=HOST, port=port)
