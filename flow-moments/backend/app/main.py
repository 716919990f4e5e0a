# backend/app/main.py
"""
App FastAPI: CORS, lifespan (startup/shutdown), webhook de notificaciones + middleware de trazas.
"""
import logging, time

# carga backend/.env ANTES de importar config/routers
from dotenv import load_dotenv, find_dotenv
load_dotenv(find_dotenv(), override=False)

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .db.mongo import connect_to_mongo, disconnect_from_mongo
from .core.config import settings
from .core.errors import InputError, NotifyError, WebhookAuthError
from .services.factory import build_dispatcher, build_minter
from .telemetry.logging import setup_logging
from .routes import notifications

setup_logging()
http_logger = logging.getLogger("app.http")
log = logging.getLogger("app")

@asynccontextmanager
async def lifespan(app: FastAPI):
    # config incompleta = error de arranque, no por invocación
    settings.require_push()
    connect_to_mongo()
    app.state.http = httpx.AsyncClient(timeout=settings.FCM_TIMEOUT_SECONDS)
    app.state.minter = build_minter(settings, app.state.http)
    app.state.dispatcher = build_dispatcher(settings, app.state.http)
    yield
    await app.state.http.aclose()
    disconnect_from_mongo()

app = FastAPI(title="FLOW Moments Notify API", version="0.1.0", lifespan=lifespan)

# ---------------- CORS ----------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------- Middleware de trazas ----------------
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
        dur = round(time.time() - start, 4)
        http_logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {dur}s")
        return response
    except Exception as e:
        dur = round(time.time() - start, 4)
        http_logger.exception(f"{request.method} {request.url.path} EXC after {dur}s: {e}")
        raise

# ---------------- Errores -> {error} ----------------
@app.exception_handler(NotifyError)
async def notify_error_handler(request: Request, exc: NotifyError):
    if isinstance(exc, InputError):
        status_code = 400
    elif isinstance(exc, WebhookAuthError):
        status_code = 401
    else:
        status_code = 500
        log.error(f"{request.url.path} abortado: {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=status_code, content={"error": str(exc)})

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    # cualquier otro fallo también sale como {error}, nunca como texto plano
    log.exception(f"{request.url.path} error inesperado: {type(exc).__name__}")
    return JSONResponse(status_code=500, content={"error": str(exc) or type(exc).__name__})

# ---------------- Healthcheck ----------------
@app.get("/health", tags=["misc"])
async def health():
    return {"ok": True}

# ---------------- Routers ----------------
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
