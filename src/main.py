from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

load_dotenv()

from src.api.fastapi import FastAPIApp
from src.core.config import get_settings
from src.services.review.command_runner import check_script_health
from src.utils.logging import configure_logging, get_logger

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
logger = get_logger("server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting CodeReview API Server",
        extra={
            "version": settings.VERSION,
            "port": settings.PORT,
            "host": settings.HOST,
            "environment": settings.ENV,
            "script_path": settings.SCRIPT_PATH,
            "log_level": settings.LOG_LEVEL,
        },
    )
    script = check_script_health(settings.SCRIPT_PATH)
    if not (script.exists and script.executable):
        logger.warning(
            "Review script is not runnable",
            extra={"script_path": settings.SCRIPT_PATH, "reason": script.error or "not executable"},
        )

    yield

    logger.info("Shutting down CodeReview API Server")


app_instance = FastAPIApp(settings=settings, lifespan=lifespan)
app = app_instance.get_app()


def run():
    logger.info(f"CodeReview API Server listening on http://{settings.HOST}:{settings.PORT}")
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level="warning" if settings.LOG_LEVEL == "warn" else settings.LOG_LEVEL,
    )


if __name__ == "__main__":
    run()
