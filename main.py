import uvicorn

from treedrive.config import settings


def run_backend():
    uvicorn.run(
        "treedrive.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run_backend()
