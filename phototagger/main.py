from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import make_asgi_app

from phototagger.config import Settings
from phototagger.db import init_db
from phototagger.logger import setup_logging
from phototagger.controllers import classifications

settings = Settings()
setup_logging(logging.DEBUG if settings.debug else logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await asyncio.to_thread(init_db, settings)
    yield


app = FastAPI(
    title="Photo Tagger Internal API",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(classifications.router)
app.mount("/metrics", make_asgi_app())
