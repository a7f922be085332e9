# app/main.py
import asyncio
import contextlib
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Your configuration and DB
from app.config import settings
from app.core.db import init_db, close_db
from app.core.exceptions import AccountError, InternalError

from app.api.v1.routers import auth, admin

from app.core.bootstrap import ensure_default_admin
from app.services.account_service import build_account_service

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_body(msg: str, error: dict) -> dict:
    return {"success": False, "msg": msg, "error": error}


@app.exception_handler(AccountError)
async def account_error_handler(request: Request, exc: AccountError):
    if isinstance(exc, InternalError):
        # Details stay in the log
        logger.error("[error] %s %s -> %s", request.method, request.url.path, exc.message,
                     exc_info=exc.__cause__ or exc)
        generic = InternalError()
        return JSONResponse(status_code=generic.status_code, content=_error_body(generic.message, generic.to_dict()))
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.to_dict()))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("[error] unhandled exception on %s %s", request.method, request.url.path)
    generic = InternalError()
    return JSONResponse(status_code=generic.status_code, content=_error_body(generic.message, generic.to_dict()))


@app.on_event("startup")
async def on_startup():
    await init_db(generate_schemas=settings.db_generate_schemas)
    # Ensure there's a default admin account on first run
    await ensure_default_admin()
    app.state.accounts = build_account_service(settings)
    # Remove abandoned verification codes in the background
    app.state.purge_task = asyncio.create_task(
        app.state.accounts.ledger.run_purge_loop(settings.verification_purge_interval_seconds)
    )

@app.on_event("shutdown")
async def on_shutdown():
    task = getattr(app.state, "purge_task", None)
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
    await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")

@app.get("/healthz")
def healthz():
    return {"ok": True}
