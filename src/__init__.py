import time
from contextlib import asynccontextmanager
from datetime import date
from os import environ as env

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id
from fastapi import FastAPI, Request, Response
from fastapi.responses import ORJSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from uvicorn.protocols.utils import get_path_with_query_string

from src import routers
from src.constants.env import CORS_ALLOWED_ORIGINS, DEVELOPMENT
from src.models.database import Database
from src.services.llm_service import llm_service
from src.tasks.taskiq_setup import broker
from src.utils.exceptions import DocumentAnalyzerError, Unauthorized
from src.utils.logger import log_error, logger, setup_logging


class ErrorMonitoringMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except Exception as e:
            log_error(
                logger,
                f"Error in endpoint {request.url.path}",
                e,
                endpoint=request.url.path,
                method=request.method,
                request_type="http",
            )
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting up the application", date=date.today())
    await Database().create_tables()
    if not broker.is_worker_process:
        await broker.startup()
    yield
    # Shutdown
    logger.info("Shutting down the application")

    if not broker.is_worker_process:
        await broker.shutdown()
    logger.info("Task broker stopped")

    await llm_service.aclose()

    await Database().close_all_connections()
    logger.info("Database connections closed")


app = FastAPI(
    debug=False,
    title="Legal Document Analyzer API",
    description="Upload legal documents and get summaries, structured analysis and key points",
    version=env.get("APP_VERSION", "1.0.0"),
    docs_url="/docs" if DEVELOPMENT else None,
    redoc_url="/redoc" if DEVELOPMENT else None,
    middleware=[],
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

setup_logging()


@app.exception_handler(DocumentAnalyzerError)
async def document_analyzer_error_handler(request: Request, exc: DocumentAnalyzerError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            path=request.url.path,
            error=exc.message,
            error_type=type(exc).__name__,
        )
    return ORJSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


app.add_middleware(ErrorMonitoringMiddleware)


@app.middleware("http")
async def logging_middleware(request: Request, call_next) -> Response:
    structlog.contextvars.clear_contextvars()

    request_id = correlation_id.get()
    structlog.contextvars.bind_contextvars(
        web_trace_id=request_id,
    )

    response = Response(status_code=500)
    start_time = time.perf_counter_ns()
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(
            "Logging middleware caught an exception",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise
    finally:
        process_time = time.perf_counter_ns() - start_time
        status_code = response.status_code
        url = get_path_with_query_string(request.scope)
        client_host = request.client.host if request.client else None
        client_port = request.client.port if request.client else None
        http_method = request.method
        http_version = request.scope.get("http_version", "1.1")
        logger.info(
            f"""{client_host}:{client_port} - "{http_method} {url} HTTP/{http_version}" {status_code}""",
            http={
                "url": str(request.url),
                "status_code": status_code,
                "method": http_method,
                "request_id": request_id,
                "version": http_version,
            },
            network={"client": {"ip": client_host, "port": client_port}},
            duration=process_time,
        )
        if request_id:
            response.headers["X-Correlation-ID"] = request_id
        response.headers["X-Process-Time"] = str(process_time / 10**9)


@app.middleware("http")
async def api_prefix_alias(request: Request, call_next):
    """Accept both `/path` and `/api/path` for frontend compatibility."""
    if request.scope.get("path", "").startswith("/api/"):
        request.scope["path"] = request.scope["path"][4:]
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials="*" not in CORS_ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

for router in routers.__all__:
    app.include_router(**getattr(routers, router).__dict__)


@app.get("/")
def index():
    return f"Legal Document Analyzer API v{env.get('APP_VERSION', '1.0.0')}"


@app.get("/health")
async def health():
    return {"status": "ok"}
