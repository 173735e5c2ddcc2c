import logging
import time
from decimal import Decimal
from typing import Callable, Optional
from pydantic import BaseModel

from storefront.application.access import require_admin
from storefront.domain.exceptions import PersistenceError, ValidationError
from storefront.domain.models import Actor, StoreSettings


logger = logging.getLogger(__name__)


class UpdateStoreSettingsDTO(BaseModel):
    delivery_fee: Optional[Decimal] = None
    store_name: Optional[str] = None
    contact_phone: Optional[str] = None
    enable_cod: Optional[bool] = None
    enable_qr_payment: Optional[bool] = None


class StoreSettingsService:
    """Настройки магазина с кэшем на ttl секунд.

    Время берется из переданных часов (по умолчанию time.monotonic), чтобы
    тесты могли управлять истечением кэша.
    """

    def __init__(
        self,
        unit_of_work,
        defaults: StoreSettings,
        ttl: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._uow = unit_of_work
        self._defaults = defaults
        self._ttl = ttl
        self._clock = clock
        self._cached: Optional[StoreSettings] = None
        self._cached_at: float = 0.0

    async def get(self) -> StoreSettings:
        now = self._clock()
        if self._cached is not None and now - self._cached_at < self._ttl:
            return self._cached

        self._cached = await self._load()
        self._cached_at = now
        return self._cached

    def clear_cache(self) -> None:
        self._cached = None
        self._cached_at = 0.0

    async def update(self, actor: Actor, dto: UpdateStoreSettingsDTO) -> StoreSettings:
        require_admin(actor)
        changes = dto.model_dump(exclude_none=True)
        if "delivery_fee" in changes and changes["delivery_fee"] < 0:
            raise ValidationError("Стоимость доставки не может быть отрицательной")

        async with self._uow() as uow:
            current = await uow.store_settings.get() or self._defaults
            updated = current.model_copy(update=changes)
            await uow.store_settings.save(updated)
            await uow.commit()

        self.clear_cache()
        logger.info(f"Настройки магазина обновлены администратором {actor.id}: {changes}")
        return updated

    async def _load(self) -> StoreSettings:
        try:
            async with self._uow() as uow:
                stored = await uow.store_settings.get()
        except PersistenceError as e:
            logger.error(f"Ошибка чтения настроек магазина, используются значения по умолчанию: {e}")
            return self._defaults
        if stored is None:
            logger.info("Настройки магазина не найдены, используются значения по умолчанию")
            return self._defaults
        return stored
