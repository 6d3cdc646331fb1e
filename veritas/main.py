"""Veritas — FastAPI application entry point."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import (
    Depends,
    FastAPI,
    HTTPException,
    Query,
    Request,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from veritas.config import settings
from veritas.db.database import Database
from veritas.errors import ConfigurationError, GenerationError
from veritas.orchestrator.pipeline import ReportPipeline, build_pipeline

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

db = Database(settings.database_path)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await db.connect()
    yield
    await db.close()


app = FastAPI(
    title="Veritas",
    description="Investigative report generator",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Request / Response models ---


class GenerateRequest(BaseModel):
    topic: str

    @field_validator("topic")
    @classmethod
    def topic_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("topic must not be empty")
        return value


class BlockResponse(BaseModel):
    kind: str
    payload: str
    visual_prompt: str | None = None


class CitationResponse(BaseModel):
    title: str
    url: str


class ReportResponse(BaseModel):
    identifier: str
    topic: str
    title: str
    blocks: list[BlockResponse]
    citations: list[CitationResponse]
    created_at: str


class ReportSummary(BaseModel):
    identifier: str
    topic: str
    title: str
    created_at: str


# --- Dependencies ---

PipelineFactory = Callable[[], ReportPipeline]


def get_pipeline_factory() -> PipelineFactory:
    """Deferred pipeline construction, for callers that report config errors themselves."""
    return build_pipeline


def get_pipeline(factory: PipelineFactory = Depends(get_pipeline_factory)) -> ReportPipeline:
    return factory()


def get_database() -> Database:
    return db


# --- Middleware / error handlers ---


@app.middleware("http")
async def log_requests(request: Request, call_next):
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = (time.monotonic() - t0) * 1000
    if request.url.path != "/health":
        logger.info(
            "%s %s -> %d (%.2f ms)",
            request.method, request.url.path, response.status_code, elapsed_ms,
        )
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(ConfigurationError)
async def configuration_exception_handler(request: Request, exc: ConfigurationError):
    logger.error("Configuration error: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Server API key not configured"},
    )


@app.exception_handler(GenerationError)
async def generation_exception_handler(request: Request, exc: GenerationError):
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": "Failed to generate report", "details": exc.user_message},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method, request.url.path, exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# --- Routes ---


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/generate", response_model=ReportResponse)
async def generate(
    req: GenerateRequest,
    pipeline: ReportPipeline = Depends(get_pipeline),
    store: Database = Depends(get_database),
):
    """Generate an illustrated report for a topic and store it in history."""
    report = await pipeline.generate_report(
        req.topic, lambda message: logger.info("[%s] %s", req.topic, message)
    )
    await store.save_report(report)
    return report.to_dict()


@app.get("/api/reports", response_model=list[ReportSummary])
async def list_reports(
    limit: int = Query(50, ge=1, le=200),
    store: Database = Depends(get_database),
):
    """Report history, newest first."""
    return await store.list_reports(limit)


@app.get("/api/reports/{identifier}", response_model=ReportResponse)
async def get_report(identifier: str, store: Database = Depends(get_database)):
    report = await store.get_report(identifier)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


# --- WebSocket ---


async def _stream_report(
    websocket: WebSocket, build: PipelineFactory, store: Database
) -> None:
    payload = await websocket.receive_json()
    try:
        req = GenerateRequest.model_validate(payload)
    except ValidationError as exc:
        await websocket.send_json({
            "type": "error",
            "error": "Invalid request",
            "details": jsonable_encoder(exc.errors(include_context=False)),
        })
        return

    async def _progress(message: str) -> None:
        await websocket.send_json({"type": "status", "detail": message})

    pipeline = build()
    report = await pipeline.generate_report(req.topic, _progress)
    await store.save_report(report)
    await websocket.send_json({"type": "report", "report": report.to_dict()})


@app.websocket("/ws/generate")
async def generate_ws(
    websocket: WebSocket,
    build: PipelineFactory = Depends(get_pipeline_factory),
    store: Database = Depends(get_database),
):
    """Generate a report while streaming progress messages.

    The client sends ``{"topic": ...}``; the server replies with ``status``
    messages, then one ``report`` or ``error`` message, and closes. The
    pipeline is built after the handshake so a missing API key still reaches
    the client as an error message.
    """
    await websocket.accept()
    try:
        await _stream_report(websocket, build, store)
    except WebSocketDisconnect:
        logger.info("Client disconnected before the report was delivered")
        return
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        await websocket.send_json({"type": "error", "error": "Server API key not configured"})
    except GenerationError as exc:
        await websocket.send_json({
            "type": "error",
            "error": "Failed to generate report",
            "details": exc.user_message,
        })
    except Exception as exc:
        logger.error("Unhandled exception on %s: %s", websocket.url.path, exc, exc_info=True)
        await websocket.send_json({"type": "error", "error": "Internal server error"})
    await websocket.close()


def run() -> None:
    import uvicorn

    uvicorn.run(
        "veritas.main:app",
        host=settings.host,
        port=settings.port,
        log_level="info",
    )
