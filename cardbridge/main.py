"""
Main FastAPI application for the card bridge.
Serves the top-up API, the client push channel, health, ledger audit and metrics,
and runs the MQTT broker link for the lifetime of the app.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from cardbridge.core.config import Settings, settings as default_settings
from cardbridge.core.logging import configure_logging
from cardbridge.core.topics import Topics
from cardbridge.api.routes import health, ledger, realtime, topup
from cardbridge.services.broker.link import BrokerLink
from cardbridge.services.fanout.hub import ClientHub
from cardbridge.services.reconciliation.engine import ReconciliationEngine
from cardbridge.utils.metrics import router as metrics_router


logger = logging.getLogger("cardbridge")


def create_app(settings: Settings | None = None, broker=None) -> FastAPI:
    """
    Build the app. `broker` defaults to a BrokerLink for the configured
    endpoint; anything with start/stop/publish/set_handler/connected works.
    """
    settings = settings or default_settings
    topics = Topics.from_settings(settings)
    if broker is None:
        broker = BrokerLink.from_settings(settings, topics)
    hub = ClientHub()
    engine = ReconciliationEngine(topics, publisher=broker, broadcaster=hub)
    broker.set_handler(engine.handle_message)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.mqtt_enabled:
            await broker.start()
            logger.info("bridge_started", extra={"topic": topics.namespace})
        else:
            logger.warning("broker_disabled")
        try:
            yield
        finally:
            await broker.stop()

    app = FastAPI(
        title="Card Bridge API",
        description="RFID card event bridge and top-up service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.topics = topics
    app.state.broker = broker
    app.state.hub = hub
    app.state.engine = engine

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(health.router, tags=["health"])
    app.include_router(topup.router)
    app.include_router(realtime.router)
    app.include_router(ledger.router)
    app.include_router(metrics_router)

    # Browser client (static). Mounted last so API routes win.
    frontend = Path(settings.frontend_dir)
    if frontend.is_dir():
        app.mount("/", StaticFiles(directory=frontend, html=True), name="frontend")

    return app


configure_logging()
app = create_app()


def run() -> None:
    uvicorn.run(app, host=default_settings.http_host, port=default_settings.http_port)


if __name__ == "__main__":
    run()
