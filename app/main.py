from fastapi import FastAPI
import logging

from app.api.analytics import router as analytics_router
from app.api.channels import router as channels_router
from app.api.health import router as health_router
from core.logging import setup_json_logging

# Setup logging
setup_json_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Social Pulse API", version="0.1.0")

# Include routers
app.include_router(health_router)  # Health at root level
app.include_router(analytics_router, prefix="/api/v1")
app.include_router(channels_router, prefix="/api/v1")
