# app/main.py
from contextlib import asynccontextmanager
import logging
import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient

from app.core.config import settings
from app.database.mongo_assignment import MongoAssignmentRepository
from app.routers.v1 import health
from app.routers.v1 import assignment

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s :: %(message)s",
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)

def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = AsyncIOMotorClient(settings.mongo_uri, tz_aware=True)
        db = client[settings.mongo_db_name]
        repo = MongoAssignmentRepository(db)
        await repo.ensure_indexes()
        app.state.assignment_repo = repo   # repo disponibile alle routes
        logger.info("Connesso a MongoDB (db=%s, env=%s)", settings.mongo_db_name, settings.env)

        try:
            yield
        finally:
            client.close()

    app = FastAPI(
        title="Assignment Lifecycle Service",
        description="Gestione degli assignment: creazione, pubblicazione, consegne degli studenti",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins, allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"], allow_headers=["*"],
    )

    app.include_router(health.router,     prefix="/api/v1", tags=["health"])
    app.include_router(assignment.router, prefix="/api/v1", tags=["assignments"])
    return app

app = create_app()
