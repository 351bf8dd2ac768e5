"""
FastAPI 애플리케이션 진입점.
"""
import logging

from fastapi import FastAPI

from app.core.config import get_settings
from app.infrastructure.consistency.router import router as consistency_router


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    application = FastAPI(title="Habit Consistency API")
    application.include_router(consistency_router, prefix="/consistency", tags=["consistency"])

    @application.get("/health")
    def health():
        return {"status": "ok"}

    return application


app = create_app()
