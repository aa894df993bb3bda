"""
ShipTrack - Shipment Sign-off, Training & Manufacturing Records
FastAPI Application Entry Point
"""
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from shiptrack import __version__
from shiptrack.core import settings, engine, test_engine, SessionLocal, Base
from shiptrack.api import api_router, register_exception_handlers
from shiptrack.services.user_service import UserService

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


# Lifespan for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Create tables if not exist, on the live and the test database
    Base.metadata.create_all(bind=engine)
    Base.metadata.create_all(bind=test_engine)

    db = SessionLocal()
    try:
        UserService.seed_roles(db)
    finally:
        db.close()

    logger.info(f"{settings.APP_NAME} starting on port {settings.APP_PORT}")
    yield
    logger.info(f"{settings.APP_NAME} shutting down")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Shipment sign-off, SOP training and manufacturing batch records",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.PORTAL_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(api_router, prefix="/api")


# Health check
@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.APP_NAME}


def run():
    uvicorn.run(
        "shiptrack.main:app",
        host="0.0.0.0",
        port=settings.APP_PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
