from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from app.web import router as web_router
from logging_config import configure_logging
from services.station import build_default_station
from settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    station = build_default_station()
    if get_settings().station_autostart:
        station.start()
    try:
        yield
    finally:
        station.shutdown()
        build_default_station.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Weather Station",
        description="Simulated sensor streams with windowed derived-metric calculations.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    app.include_router(web_router)
    return app

app = create_app()
