# Filename: treedrive/main.py
import logging
from typing import List

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routers import auth as auth_router, files as files_router
from .config import settings
from .db import init_db
from .errors import (
    BrokenChain,
    CyclicMove,
    InvalidName,
    InvalidTarget,
    IOFailure,
    NameCollision,
    NotFound,
    TooLarge,
    TreeError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidTarget: status.HTTP_400_BAD_REQUEST,
    CyclicMove: status.HTTP_400_BAD_REQUEST,
    InvalidName: status.HTTP_400_BAD_REQUEST,
    NameCollision: status.HTTP_409_CONFLICT,
    TooLarge: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    IOFailure: status.HTTP_500_INTERNAL_SERVER_ERROR,
    BrokenChain: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug)

def _csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_csv(settings.cors_allow_origins),
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=_csv(settings.cors_allow_methods),
    allow_headers=_csv(settings.cors_allow_headers),
)

app.include_router(auth_router.router)
app.include_router(files_router.router)


@app.exception_handler(TreeError)
async def tree_error_handler(request: Request, exc: TreeError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc, exc_info=exc.cause or exc)
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "error": type(exc).__name__})


@app.get("/", tags=["health"])
def health():
    return {"service": settings.app_name, "version": settings.app_version, "status": "ok"}


@app.on_event("startup")
def on_startup():
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    init_db()
