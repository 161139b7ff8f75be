"""
TrueNorth — FastAPI Backend
Organizational management dashboard: organizations, business units, teams,
stakeholders, goals, KPIs, costs, headcount and operations reviews.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.exceptions import HTTPException

import config
from access import Forbidden, NotFound
from db import init_db
from routers import (
    business_units,
    financial,
    goals,
    initiatives,
    kpis,
    ops_reviews,
    organizations,
    reports,
    requests,
    stakeholders,
    tasks,
    teams,
    users,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("truenorth")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="TrueNorth API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (
    users,
    organizations,
    business_units,
    stakeholders,
    goals,
    teams,
    initiatives,
    kpis,
    ops_reviews,
    financial,
    tasks,
    reports,
    requests,
):
    app.include_router(module.router)


# ── Error envelopes ─────────────────────────────────────────────────────────

def _issues(errors: list[dict]) -> list[dict]:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": "Validation error", "details": _issues(exc.errors())}, status_code=400)


@app.exception_handler(ValidationError)
async def model_validation_handler(request: Request, exc: ValidationError):
    return JSONResponse({"error": "Validation error", "details": _issues(exc.errors())}, status_code=400)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse({"error": exc.detail}, status_code=404)


@app.exception_handler(Forbidden)
async def forbidden_handler(request: Request, exc: Forbidden):
    return JSONResponse({"error": exc.detail}, status_code=403)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s %s: %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


@app.get("/api/health")
def health():
    return {"status": "ok"}


# ── Serve React frontend (must be last) ────────────────────────────────────

if config.FRONTEND_DIST.exists():
    app.mount("/assets", StaticFiles(directory=config.FRONTEND_DIST / "assets"), name="assets")

    @app.get("/{full_path:path}")
    async def serve_spa(full_path: str):
        """Serve React SPA — return index.html for all non-API routes."""
        return FileResponse(config.FRONTEND_DIST / "index.html")
