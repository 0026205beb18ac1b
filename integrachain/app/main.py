"""FastAPI application bootstrap for IntegraChain."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .infra.db import init_db
from .infra.logger import get_logger
from .routers import events, records, verify

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log.info("registry database ready")
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="IntegraChain Registry API", version="0.1.0", lifespan=lifespan)

    app.include_router(records.router, prefix="/records", tags=["records"])
    app.include_router(events.router, prefix="/events", tags=["events"])
    app.include_router(verify.router, prefix="/verify", tags=["verify"])

    return app


app = create_app()
