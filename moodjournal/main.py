# Load .env file FIRST before any other imports that use os.getenv
from dotenv import load_dotenv
load_dotenv()

import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from moodjournal.api.deps import get_analysis_runner
from moodjournal.api.routes.entries import router as entries_router
from moodjournal.api.routes.users import router as users_router
from moodjournal.core.config import settings
from moodjournal.db.database import ENGINE_INIT_ERROR_MSG, engine, init_db
from moodjournal.services.analysis_tasks import AnalysisTaskRunner

app = FastAPI(title=settings.APP_NAME)

logging.basicConfig(level=logging.INFO)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(entries_router, prefix="/api", tags=["entries"])
app.include_router(users_router, prefix="/api", tags=["users"])


@app.on_event("startup")
def _init_database() -> None:
    if ENGINE_INIT_ERROR_MSG:
        logging.error(f"[startup] database engine failed to initialize: {ENGINE_INIT_ERROR_MSG}")
        return
    init_db()
    logging.info("[startup] database ready")


@app.on_event("shutdown")
async def _drain_analysis_tasks() -> None:
    runner = get_analysis_runner()
    if runner.pending:
        logging.info(f"[shutdown] waiting for {runner.pending} analysis task(s)")
        await runner.drain()


@app.get("/api/health")
def health(runner: AnalysisTaskRunner = Depends(get_analysis_runner)):
    """Database connectivity plus background analysis counters."""
    if ENGINE_INIT_ERROR_MSG:
        db_status = f"error: {ENGINE_INIT_ERROR_MSG}"
        db_ok = False
    else:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            db_status = "connected"
            db_ok = True
        except Exception as exc:
            db_status = f"error: {exc.__class__.__name__}"
            db_ok = False

    body = {
        "status": "ok" if db_ok else "degraded",
        "env": settings.ENV,
        "database": db_status,
        "analysis": runner.snapshot(),
    }
    if db_ok:
        return body
    raise HTTPException(status_code=503, detail=body)
