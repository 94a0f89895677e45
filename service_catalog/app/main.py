"""
Catalog service for FluxFlix.
"""

from typing import Optional

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config

from .movies.repository import MovieRepository, create_repository
from .movies.service import CatalogService
from .events.stream_generator import EventStreamGenerator
from .security.directory import UserDirectory, DEFAULT_USERS
from .security.engine import default_engine
from .gateway import RequestGateway, build_routes
from .handlers import MovieHandler
from .seeding import MovieDataSeeder


class CatalogServiceApp(BaseService):
    """Catalog service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        repository: Optional[MovieRepository] = None,
        directory: Optional[UserDirectory] = None
    ):
        super().__init__("catalog", 8080, config=config)

        self.repository = repository if repository is not None else create_repository(self.config)
        self.generator = EventStreamGenerator(
            interval_seconds=self.config.stream_interval_seconds,
            metrics=self.metrics
        )
        self.catalog = CatalogService(self.repository, self.generator)

        if directory is None:
            directory = UserDirectory(DEFAULT_USERS, password=self.config.default_password)
        self.directory = directory
        self.engine = default_engine(self.config.required_role, self.config.access_pattern)
        self.gateway = RequestGateway(self.directory, self.engine, metrics=self.metrics)

        self.handlers = MovieHandler(self.catalog)
        self.routes = build_routes(self.handlers)

        @self.app.on_event("startup")
        async def _startup():
            await self.start()

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.stop()

        self._setup_catalog_routes()
        self.app.state.catalog_service = self

    def _setup_catalog_routes(self):
        """Set up the root endpoint and the guarded dispatch table."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "catalog",
                "message": "FluxFlix - Catalog Service",
                "version": "1.0.0",
                "routes": [
                    {"method": route.method, "path": route.path, "media_type": route.media_type}
                    for route in self.routes
                ]
            }

        for route in self.routes:
            self.app.add_api_route(
                route.path,
                self.gateway.guard(route),
                methods=[route.method],
                name=route.name
            )

    async def _check_dependencies(self):
        healthy = await self.repository.health_check()
        return {"repository": "ok" if healthy else "error"}

    async def start(self):
        """Open the repository and load startup data."""
        await self.repository.start()

        if self.config.seed_on_startup:
            seeder = MovieDataSeeder(self.repository, self.config.seed_titles)
            movies = await seeder.seed()
            self.metrics.record_business_event("catalog_seeded")
            self.logger.info("Catalog seeded", count=len(movies))

        self.logger.info("Catalog service components started")

    async def stop(self):
        """Release the repository."""
        await self.repository.stop()
        self.logger.info("Catalog service components stopped")


def create_app(
    config: Optional[ServiceConfig] = None,
    repository: Optional[MovieRepository] = None
):
    """Create catalog service application."""
    service = CatalogServiceApp(config=config, repository=repository)
    return service.app


if __name__ == "__main__":
    service = CatalogServiceApp(config=get_config("catalog", 8080))
    service.run()
