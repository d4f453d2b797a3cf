# ============================================================================
# ONBOARDING ENGINE - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - FastAPI application entry point
# PURPOSE: Wire backends, orchestrator and routes
# CREATED: 15 OCT 2026
# ============================================================================
"""
Onboarding Engine Main Application

FastAPI application that:
1. Selects status store, config provider and notifier backends
2. Builds the module registry and onboarding orchestrator
3. Serves the onboarding HTTP API

Backends are chosen by environment (see core.config.BackendDefaults):
    STATUS_STORE_BACKEND=postgres|memory
    PLATFORM_CONFIG_SOURCE=postgres|file|memory
    PLATFORM_CONFIG_FILE=./platforms.yaml
    STATUS_NOTIFIER=postgres|log

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from psycopg_pool import AsyncConnectionPool

from __version__ import __version__, BUILD_DATE, EPOCH
from core.config import ConfigSource, Defaults, NotifierBackend, StoreBackend, get_defaults
from orchestrator import OnboardingOrchestrator
from repositories import (
    ConfigProvider,
    FileConfigProvider,
    InMemoryConfigProvider,
    InMemoryStatusStore,
    PostgresConfigProvider,
    PostgresStatusStore,
    StatusStore,
    bootstrap_schema,
    close_pool,
    init_pool,
)
from services import LoggingNotifier, ModuleRegistry, Notifier, PostgresNotifier
from api.routes import router, set_services

# Configure logging using our structured logging system
from core.logging import configure_logging, get_logger

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)


# ============================================================================
# SERVICE WIRING
# ============================================================================

@dataclass
class Services:
    """Everything the API needs, built once per process."""
    store: StatusStore
    provider: ConfigProvider
    notifier: Notifier
    registry: ModuleRegistry
    orchestrator: OnboardingOrchestrator


def needs_database(defaults: Defaults) -> bool:
    backends = defaults.backends
    return (
        backends.store_backend == StoreBackend.POSTGRES
        or backends.config_source == ConfigSource.POSTGRES
        or backends.notifier == NotifierBackend.POSTGRES
    )


def build_services(defaults: Defaults, pool: Optional[AsyncConnectionPool] = None) -> Services:
    """
    Build backends, registry and orchestrator from defaults.

    Args:
        defaults: Backend selection and tuning
        pool: Required when any backend is postgres

    Raises:
        ValueError: postgres backend selected without a pool, or file
            config source without a file
    """
    backends = defaults.backends
    if needs_database(defaults) and pool is None:
        raise ValueError("A database pool is required for postgres backends")

    if backends.store_backend == StoreBackend.POSTGRES:
        store = PostgresStatusStore(pool)
    else:
        store = InMemoryStatusStore()

    if backends.config_source == ConfigSource.POSTGRES:
        provider = PostgresConfigProvider(pool)
    elif backends.config_source == ConfigSource.FILE:
        if not backends.config_file:
            raise ValueError("PLATFORM_CONFIG_FILE is required when PLATFORM_CONFIG_SOURCE=file")
        provider = FileConfigProvider(backends.config_file)
    else:
        provider = InMemoryConfigProvider()

    if backends.notifier == NotifierBackend.POSTGRES:
        notifier = PostgresNotifier(pool)
    else:
        notifier = LoggingNotifier()

    registry = ModuleRegistry(provider, http_defaults=defaults.http)
    orchestrator = OnboardingOrchestrator(
        store=store,
        registry=registry,
        notifier=notifier,
        defaults=defaults.orchestrator,
    )

    logger.info(
        f"Backends: store={backends.store_backend.value}, "
        f"config={backends.config_source.value}, notifier={backends.notifier.value}"
    )
    return Services(store, provider, notifier, registry, orchestrator)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Initializes services on startup, cleans up on shutdown.
    """
    logger.info(f"Starting Onboarding Engine v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    defaults = get_defaults()
    pool = None
    if needs_database(defaults):
        pool = await init_pool()
        logger.info("Database pool initialized")

        # Optional: Bootstrap schema on startup (for development)
        if os.environ.get("AUTO_BOOTSTRAP_SCHEMA", "").lower() == "true":
            logger.info("Auto-bootstrap enabled, deploying schema...")
            await bootstrap_schema(pool)

    services = build_services(defaults, pool)
    set_services(orchestrator=services.orchestrator, registry=services.registry)
    app.state.services = services
    logger.info(f"Platforms available: {services.registry.known_platforms()}")

    yield

    # Shutdown
    logger.info("Shutting down Onboarding Engine...")
    if pool is not None:
        await close_pool()
    logger.info("Onboarding Engine stopped")


# Create FastAPI app
app = FastAPI(
    title="Onboarding Engine",
    description=f"Epoch {EPOCH} multi-platform freelancer onboarding",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router, prefix="/api/v1")


@app.get("/health", tags=["Health"])
async def health():
    """Liveness check."""
    return {"status": "ok", "version": __version__}


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Onboarding Engine",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
