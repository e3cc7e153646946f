"""
Skill Test AI API — Main Application
FastAPI application for AI-assisted employer skill tests.
Generates MCQ banks from uploaded documents, stores employer-approved
snapshots, and delivers shuffled question sets per candidate attempt.

Run:
    uvicorn skilltest_api:app --port 3001
"""

from dotenv import load_dotenv
load_dotenv()

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from database.database import create_db_engine, create_session_factory, get_database_url, init_db
from generation import gpt_client
from routers import attempts, mcq_generation, snapshots

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(name)s: %(message)s")
log = logging.getLogger("skilltest_api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: connect to the database (fail fast) + create tables."""
    engine = None
    database_url = get_database_url()
    if database_url:
        engine = create_db_engine(database_url)
        init_db(engine)
        app.state.session_factory = create_session_factory(engine)
    else:
        log.warning("DATABASE_URL is not set; snapshot and attempt endpoints will answer 500")
        app.state.session_factory = None

    if not gpt_client.is_configured():
        log.warning("OPENAI_API_KEY is not set; /api/generate-mcqs will answer 500")

    yield

    if engine is not None:
        engine.dispose()


def _validation_message(exc: RequestValidationError) -> str:
    """First validation problem as one short sentence."""
    errors = exc.errors()
    if not errors:
        return "Invalid request body."
    first = errors[0]
    ctx_error = (first.get("ctx") or {}).get("error")
    if ctx_error:
        return str(ctx_error)
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


def create_app() -> FastAPI:
    app = FastAPI(
        title="Skill Test AI API",
        description="MCQ generation from documents, test snapshots, and shuffled attempt delivery",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─── Error bodies: {"error": "<short message>"} ────────────────────────────

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request, exc: RequestValidationError):
        message = _validation_message(exc)
        log.info(f"[VALIDATION] {request.method} {request.url.path}: {message}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

    # ─── Routers ───────────────────────────────────────────────────────────────

    app.include_router(mcq_generation.router, prefix="/api")   # /api/generate-mcqs
    app.include_router(snapshots.router, prefix="/api")        # /api/tests/{testId}/snapshot
    app.include_router(attempts.router, prefix="/api")         # /api/attempts/start

    @app.get("/api/health")
    def health():
        return {"ok": True}

    return app


app = create_app()
