"""Списки, вкладки и статистика для админки и личного кабинета."""

from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from storefront.application.advance_status import AdvanceStatusDTO
from storefront.application.queries import OrderFilter, start_of_day
from storefront.domain.exceptions import PermissionDeniedError, ValidationError
from storefront.domain.models import OrderStatus, PaymentMethod, PaymentStatus


@pytest.fixture
async def orders(place_cod_order, place_qr_order, container, admin, clock):
    """cod: delivered, processing; qr: verified, rejected, pending"""
    advance = container.advance_status()

    delivered = await place_cod_order()
    await advance(admin, delivered.id, AdvanceStatusDTO(status=OrderStatus.OUT_FOR_DELIVERY,
                                                        delivery_date=date(2026, 10, 19)))
    await advance(admin, delivered.id, AdvanceStatusDTO(status=OrderStatus.DELIVERED))
    clock.advance(minutes=1)

    processing = await place_cod_order()
    await advance(admin, processing.id, AdvanceStatusDTO(status=OrderStatus.PROCESSING))
    clock.advance(minutes=1)

    verified = await place_qr_order()
    await container.verify_payment()(admin, verified.id)
    clock.advance(minutes=1)

    rejected = await place_qr_order()
    await container.reject_payment()(admin, rejected.id)
    clock.advance(minutes=1)

    pending = await place_qr_order()
    return {
        "delivered": delivered.id,
        "processing": processing.id,
        "verified": verified.id,
        "rejected": rejected.id,
        "pending": pending.id,
    }


class TestListOrders:
    async def test_newest_first(self, orders, container, admin):
        result = await container.list_orders()(admin, OrderFilter())

        assert [o.id for o in result] == [
            orders["pending"], orders["rejected"], orders["verified"], orders["processing"], orders["delivered"]
        ]

    async def test_by_status(self, orders, container, admin):
        result = await container.list_orders()(admin, OrderFilter(status=OrderStatus.PENDING_PAYMENT))

        assert {o.id for o in result} == {orders["pending"], orders["rejected"]}

    async def test_by_group(self, orders, container, admin):
        pending = await container.list_orders()(admin, OrderFilter(group="pending"))
        closed = await container.list_orders()(admin, OrderFilter(group="closed"))

        assert {o.id for o in pending} == {orders["verified"], orders["processing"]}
        assert [o.id for o in closed] == [orders["delivered"]]

    async def test_payment_review_queue(self, orders, container, admin):
        result = await container.list_orders()(admin, OrderFilter(
            payment_method=PaymentMethod.QR_CODE, payment_status=PaymentStatus.PENDING
        ))

        assert [o.id for o in result] == [orders["pending"]]

    async def test_paging(self, orders, container, admin):
        result = await container.list_orders()(admin, OrderFilter(limit=2, offset=1))

        assert [o.id for o in result] == [orders["rejected"], orders["verified"]]

    async def test_status_and_group_together(self, container, admin):
        with pytest.raises(ValidationError):
            await container.list_orders()(admin, OrderFilter(status=OrderStatus.DELIVERED, group="closed"))

    async def test_unknown_group(self, container, admin):
        with pytest.raises(ValidationError):
            await container.list_orders()(admin, OrderFilter(group="archived"))

    async def test_admin_only(self, container, customer):
        with pytest.raises(PermissionDeniedError):
            await container.list_orders()(customer, OrderFilter())


class TestTabCounts:
    async def test_counts(self, orders, container, admin):
        counts = await container.tab_counts()(admin)

        assert counts["all"] == 5
        assert counts["pending_payment"] == 2
        assert counts["payment_verified"] == 1
        assert counts["processing"] == 1
        assert counts["out_for_delivery"] == 0
        assert counts["delivered"] == 1
        assert counts["cancelled"] == 0
        assert counts["pending"] == 2
        assert counts["active"] == 1
        assert counts["open"] == 4
        assert counts["closed"] == 1

    async def test_empty_store(self, container, admin):
        counts = await container.tab_counts()(admin)

        assert counts["all"] == 0
        assert all(value == 0 for value in counts.values())


class TestDashboards:
    async def test_admin_dashboard(self, orders, container, admin):
        stats = await container.dashboard_stats()(admin)

        assert stats.today_orders == 5
        assert stats.pending_payments == 1
        assert stats.out_for_delivery == 0
        assert len(stats.recent_orders) == 5
        assert stats.recent_orders[0].id == orders["pending"]

    async def test_payment_stats(self, orders, container, admin):
        stats = await container.payment_stats()(admin)

        assert stats.pending == 1
        assert stats.verified == 1
        assert stats.rejected == 1
        assert stats.verified_amount == Decimal("130")

    async def test_customer_dashboard(self, orders, container, customer, other_customer):
        mine = await container.customer_dashboard()(customer)
        theirs = await container.customer_dashboard()(other_customer)

        assert mine.total_orders == 5
        assert mine.active_deliveries == 1
        assert mine.pending_payments == 1
        assert [o.id for o in mine.recent_orders] == [orders["pending"], orders["rejected"], orders["verified"]]
        assert theirs.total_orders == 0
        assert theirs.recent_orders == []

    async def test_stats_are_admin_only(self, container, customer):
        with pytest.raises(PermissionDeniedError):
            await container.dashboard_stats()(customer)
        with pytest.raises(PermissionDeniedError):
            await container.payment_stats()(customer)


class TestStoreDay:
    def test_start_of_day_in_store_timezone(self):
        moment = datetime(2026, 10, 18, 20, 0, tzinfo=timezone.utc)

        assert start_of_day(moment, ZoneInfo("Asia/Kolkata")) == datetime(2026, 10, 18, 18, 30, tzinfo=timezone.utc)
        assert start_of_day(moment) == datetime(2026, 10, 18, 0, 0, tzinfo=timezone.utc)

    async def test_today_starts_at_local_midnight(self, place_cod_order, place_qr_order, container, admin, clock):
        # 23:30 IST 18 октября: вчерашний заказ
        clock.now = datetime(2026, 10, 18, 18, 0, tzinfo=timezone.utc)
        await place_cod_order()
        # 00:30 IST 19 октября
        clock.now = datetime(2026, 10, 18, 19, 0, tzinfo=timezone.utc)
        early = await place_qr_order()
        await container.verify_payment()(admin, early.id)

        stats = await container.dashboard_stats()(admin)
        payments = await container.payment_stats()(admin)

        assert stats.today_orders == 1
        assert payments.verified_amount == Decimal("130")
