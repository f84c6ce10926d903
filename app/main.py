"""
Main FastAPI Application
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import settings
from app.core.database import init_db
from app.core.errors import DomainError
from app.core.logging import setup_logging
from app.routers import auth, admin, player, moderation, websocket

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SessionMiddleware,
                   secret_key=settings.SECRET_KEY,
                   session_cookie=settings.SESSION_COOKIE_NAME,
                   max_age=settings.COOKIE_EXPIRY,
                   same_site=settings.COOKIE_SAME_SITE,
                   https_only=settings.COOKIE_SECURE)

# Routers
app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(player.router)
app.include_router(moderation.router)
app.include_router(websocket.router)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error(f"[API] {request.method} {request.url.path}: {exc}")
    else:
        logger.info(f"[API] {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code.value},
    )


# Startup event
@app.on_event("startup")
async def startup():
    """Configure logging and create database tables"""
    setup_logging()
    init_db()
    logger.info(f"[STARTUP] {settings.APP_NAME} ready (dev_mode={settings.DEV_MODE})")


@app.get("/")
async def root():
    return {"message": settings.APP_NAME, "status": "running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
