"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rental_contracts import __version__
from rental_contracts.api.routes.chat import router as chat_router
from rental_contracts.api.routes.contract import router as contract_router
from rental_contracts.api.schemas import HealthResponse
from rental_contracts.utils.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    settings = get_settings()
    logger.info(f"Contract view service started, backend at {settings.api_base_url}")
    yield
    logger.info("Contract view service stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Rental Contracts View API",
        description="Contract cards with status badge and permitted actions for the calling user",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=__version__, backend=get_settings().api_base_url)

    app.include_router(contract_router)
    app.include_router(chat_router)

    return app
