"""Настройки магазина: кэш на TTL, значения по умолчанию, обновление администратором."""

from decimal import Decimal

import pytest

from storefront.application.store_settings import UpdateStoreSettingsDTO
from storefront.domain.exceptions import PermissionDeniedError, ValidationError
from storefront.domain.models import StoreSettings


async def test_defaults_when_nothing_stored(settings_service):
    current = await settings_service.get()

    assert current.delivery_fee == Decimal("20")
    assert current.enable_cod is True
    assert current.enable_qr_payment is True


async def test_reads_are_cached_within_ttl(settings_service, db, timer):
    await settings_service.get()
    timer.value = 59.0
    await settings_service.get()

    assert db.settings_reads == 1


async def test_cache_expires(settings_service, db, timer):
    await settings_service.get()
    db.store_settings = StoreSettings(delivery_fee=Decimal("30"))
    timer.value = 61.0

    current = await settings_service.get()

    assert current.delivery_fee == Decimal("30")
    assert db.settings_reads == 2


async def test_stale_value_inside_ttl(settings_service, db, timer):
    await settings_service.get()
    db.store_settings = StoreSettings(delivery_fee=Decimal("30"))
    timer.value = 10.0

    assert (await settings_service.get()).delivery_fee == Decimal("20")


async def test_clear_cache(settings_service, db):
    await settings_service.get()
    db.store_settings = StoreSettings(delivery_fee=Decimal("30"))
    settings_service.clear_cache()

    assert (await settings_service.get()).delivery_fee == Decimal("30")


async def test_storage_failure_falls_back_to_defaults(settings_service, db):
    db.broken = {"store_settings"}

    current = await settings_service.get()

    assert current.delivery_fee == Decimal("20")


async def test_update_is_visible_immediately(settings_service, admin, db):
    await settings_service.get()

    updated = await settings_service.update(admin, UpdateStoreSettingsDTO(delivery_fee=Decimal("25")))

    assert updated.delivery_fee == Decimal("25")
    assert updated.store_name == StoreSettings().store_name
    assert db.store_settings.delivery_fee == Decimal("25")
    assert (await settings_service.get()).delivery_fee == Decimal("25")


async def test_partial_update_keeps_other_fields(settings_service, admin):
    await settings_service.update(admin, UpdateStoreSettingsDTO(delivery_fee=Decimal("25")))
    updated = await settings_service.update(admin, UpdateStoreSettingsDTO(enable_qr_payment=False))

    assert updated.delivery_fee == Decimal("25")
    assert updated.enable_qr_payment is False


async def test_negative_fee(settings_service, admin, db):
    with pytest.raises(ValidationError):
        await settings_service.update(admin, UpdateStoreSettingsDTO(delivery_fee=Decimal("-1")))
    assert db.store_settings is None


async def test_customer_cannot_update(settings_service, customer, db):
    with pytest.raises(PermissionDeniedError):
        await settings_service.update(customer, UpdateStoreSettingsDTO(delivery_fee=Decimal("0")))
    assert db.store_settings is None
