import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from domo_relay.api import datasets, domo, sessions
from domo_relay.core.config import Settings, settings
from domo_relay.core.exceptions import RelayError, register_exception_handlers
from domo_relay.core.middleware import BodySizeLimitMiddleware, CorrelationIdMiddleware
from domo_relay.core.utils.logging_config import init_application_logging
from domo_relay.core.utils.session_store import SessionStore
from domo_relay.providers.domo.client import DomoClient
from domo_relay.providers.domo.services.dataset_relay import DatasetRelay
from domo_relay.providers.domo.services.token_manager import TokenManager

logger = logging.getLogger("domo_relay.main")


def build_services(app: FastAPI, app_settings: Settings, http_client: httpx.AsyncClient) -> None:
    """Create the relay's service objects and attach them to ``app.state``."""
    client = DomoClient(
        http_client,
        api_base=app_settings.DOMO_API_BASE,
        timeout_seconds=app_settings.UPSTREAM_TIMEOUT,
    )
    token_manager = TokenManager(
        client,
        client_id=app_settings.DOMO_CLIENT_ID,
        client_secret=app_settings.DOMO_CLIENT_SECRET,
        scope=app_settings.DOMO_TOKEN_SCOPE,
    )
    app.state.settings = app_settings
    app.state.domo_client = client
    app.state.token_manager = token_manager
    app.state.dataset_relay = DatasetRelay(
        client,
        token_manager,
        write_timeout=app_settings.DATASET_WRITE_TIMEOUT,
    )
    app.state.session_store = SessionStore(
        ttl_seconds=app_settings.SESSION_TTL_SECONDS,
        sweep_interval_seconds=app_settings.SESSION_SWEEP_INTERVAL_SECONDS,
        default_user_id=app_settings.DEFAULT_USER_ID,
        default_user_name=app_settings.DEFAULT_USER_NAME,
    )


def create_app(
    app_settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        app_settings: Settings to use instead of the environment-loaded ones
        transport: Optional httpx transport for upstream calls (tests pass a mock)

    Returns:
        Configured FastAPI app; services are created when the lifespan starts
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(transport=transport) as http_client:
            build_services(app, app_settings, http_client)
            store: SessionStore = app.state.session_store
            store.start()

            if app_settings.ACQUIRE_TOKEN_ON_STARTUP and app_settings.has_client_credentials():
                try:
                    await app.state.token_manager.ensure_token()
                except RelayError as e:
                    logger.warning(f"Initial Domo token acquisition failed: {e.details or e.message}")

            logger.info(f"{app_settings.APP_NAME} started on port {app_settings.PORT}")
            try:
                yield
            finally:
                await store.stop()
                logger.info(f"{app_settings.APP_NAME} shutting down")

    app = FastAPI(
        title=app_settings.APP_NAME,
        description="Relay between the front end and the Domo platform API",
        version=app_settings.VERSION,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=app_settings.MAX_BODY_BYTES)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(sessions.router)
    app.include_router(datasets.router)
    app.include_router(domo.router)

    @app.get("/", response_class=PlainTextResponse, tags=["System"])
    def root():
        """Liveness check."""
        return f"{app_settings.APP_NAME} is running"

    return app


# Initialize structured logging
init_application_logging()

app = create_app()
