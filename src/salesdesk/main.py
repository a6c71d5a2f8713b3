"""FastAPI backend for the SalesDesk admin dashboard.

This module is a thin **presentation layer**.  The proxy logic lives in the
``application.use_cases`` package so it can be tested and reused
independently of any HTTP framework.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from salesdesk import __version__
from salesdesk.application.use_cases import (
    AgentProxy,
    DatabaseProxy,
    ImageProxy,
    MessagingProxy,
    WorkflowProxy,
)
from salesdesk.config import Settings, get_settings
from salesdesk.infrastructure.catalog_store import SqlCatalogStore
from salesdesk.infrastructure.http import build_http_client
from salesdesk.infrastructure.image_host import CloudinaryImageHost
from salesdesk.infrastructure.llm_gateway import OpenAIGateway
from salesdesk.infrastructure.messaging_gateway import WhatsAppGateway
from salesdesk.infrastructure.workflow_gateway import N8nWorkflowGateway
from salesdesk.logging_config import setup_logging
from salesdesk.presentation.routes import agent, auth, database, images, messaging, misc, workflow
from salesdesk.telemetry import setup_telemetry


def create_app(
    settings: Settings | None = None, http_client: httpx.AsyncClient | None = None
) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use; defaults to the cached ``get_settings()``.
        http_client: Outbound client shared by the HTTP gateways.  When
            omitted one is created at startup and closed at shutdown.
    """
    settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Lifespan: initialise shared resources once at startup
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_http = http_client is None
        http = http_client or build_http_client(settings)

        store = SqlCatalogStore(settings.database_url, settings.database_create_schema)
        store.connect()

        llm = OpenAIGateway(
            base_url=settings.llm_gateway_url,
            api_key=settings.llm_gateway_api_key,
            model=settings.llm_model,
        )

        app.state.settings = settings
        app.state.workflow_proxy = WorkflowProxy(N8nWorkflowGateway(settings.n8n_webhook_url, http))
        app.state.image_proxy = ImageProxy(
            CloudinaryImageHost(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
                http=http,
                base_url=settings.cloudinary_api_base_url,
            ),
            default_folder=settings.cloudinary_folder,
        )
        app.state.database_proxy = DatabaseProxy(store)
        app.state.messaging_proxy = MessagingProxy(
            WhatsAppGateway(
                base_url=settings.whatsapp_api_base_url,
                api_token=settings.whatsapp_api_token,
                vendor_uid=settings.whatsapp_vendor_uid,
                http=http,
            )
        )
        app.state.agent_proxy = AgentProxy(
            llm, store=store, low_stock_threshold=settings.low_stock_threshold
        )

        logger.info("Application startup complete")
        yield

        await llm.close()
        store.close()
        if owns_http:
            await http.aclose()
        logger.info("Application shutdown complete")

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    app = FastAPI(
        title="SalesDesk",
        description="Proxy functions behind the WhatsApp AI sales-agent dashboard.",
        version=__version__,
        lifespan=lifespan,
    )
    # Settings are also readable before startup (dependencies, tests)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for module in (misc, auth, workflow, images, database, messaging, agent):
        app.include_router(module.router)

    # Instrument FastAPI with observability (no-op when OBSERVABILITY=off)
    setup_telemetry(app, settings)
    return app


# Configure loguru before anything else
_settings = get_settings()
setup_logging(level=_settings.log_level, json=_settings.log_json)

app = create_app(_settings)


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("salesdesk.main:app", host="0.0.0.0", port=8000, reload=True)
