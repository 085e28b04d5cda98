"""
Entry point.

    python main.py                          # resolve config, then serve
    uvicorn --factory main:create_app       # resolve inside the lifespan
"""

import sys
from contextlib import asynccontextmanager
from typing import Optional, Union

import uvicorn
from fastapi import Depends, FastAPI

from fibonatix_queue.config import AppConfig, get_config
from fibonatix_queue.dependencies import get_queue_service, get_service_settings
from fibonatix_queue.errors import StartupError
from fibonatix_queue.queue.strategies import QueueStrategy
from fibonatix_queue.registry import ServiceRegistry
from fibonatix_queue.security.models import PlainSettings, SecureSettings
from fibonatix_queue.startup import bootstrap


def create_app(
    config: Optional[AppConfig] = None,
    credential=None,
    registry: Optional[ServiceRegistry] = None
) -> FastAPI:
    """
    Create the FastAPI app.

    A registry built beforehand is published as-is; otherwise services are
    resolved when the lifespan starts. Either way it is shut down on exit.
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = registry
        if services is None:
            try:
                services = bootstrap(config, credential)
            except StartupError as e:
                print(f"❌ Startup failed: {e}")
                raise
        app.state.registry = services
        try:
            yield
        finally:
            services.shutdown()
            print("✅ Services shut down")

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description="Message queue gateway backed by Redis or MongoDB",
        debug=config.debug,
        lifespan=lifespan
    )

    @app.get("/health")
    def health_check(
        settings: Union[PlainSettings, SecureSettings] = Depends(get_service_settings),
        queue: QueueStrategy = Depends(get_queue_service)
    ):
        """Health check endpoint"""
        return {
            "status": "healthy",
            "environment": config.environment,
            "service": queue.name,
            "security": settings.kind,
        }

    return app


def run(config: Optional[AppConfig] = None) -> None:
    """
    Resolve services, then serve.

    A startup error is reported on one line and the process exits 1
    before the server starts.
    """
    config = config or get_config()
    try:
        registry = bootstrap(config)
    except StartupError as e:
        print(f"❌ Startup failed: {e}")
        sys.exit(1)

    uvicorn.run(create_app(config, registry=registry), host=config.host, port=config.port)


if __name__ == "__main__":
    run()
