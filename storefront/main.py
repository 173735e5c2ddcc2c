# storefront/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI

from storefront.application.store_settings import StoreSettingsService
from storefront.config import settings
from storefront.database import AsyncSessionLocal, create_tables
from storefront.infrastructure.http_clients import HTTPCatalogClient, HTTPIdentityClient
from storefront.infrastructure.unit_of_work import UnitOfWork
from storefront.presentation.api import router
from storefront.presentation.dependencies import ServiceContainer

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_container() -> ServiceContainer:
    uow = UnitOfWork(AsyncSessionLocal)
    return ServiceContainer(
        unit_of_work=uow,
        catalog_service=HTTPCatalogClient(settings.CATALOG_BASE_URL, settings.API_TOKEN),
        identity_service=HTTPIdentityClient(settings.IDENTITY_BASE_URL, settings.API_TOKEN),
        settings_service=StoreSettingsService(
            uow, settings.default_store_settings(), ttl=settings.SETTINGS_CACHE_TTL
        ),
        code_prefix=settings.ORDER_CODE_PREFIX,
        store_timezone=settings.store_timezone(),
    )


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """Тесты передают свой контейнер, тогда таблицы не создаются"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Управление жизненным циклом приложения"""
        if container is None:
            await create_tables()
            logger.info("Таблицы созданы")
        yield
        logger.info("Приложение останавливается...")

    app = FastAPI(
        title="Storefront Order Service",
        description="Заказы, проверка оплаты и доставка продуктового магазина",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.container = container or build_container()
    app.include_router(router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


app = create_app()
