"""Ручная проверка оплаты по QR коду администратором."""

import pytest

from fakes import CUSTOMER_ID
from storefront.domain.exceptions import (
    IllegalTransitionError, OrderNotFoundError, PermissionDeniedError, ValidationError
)
from storefront.domain.models import NotificationType, OrderStatus, PaymentStatus


class TestVerifyPayment:
    async def test_verify_moves_order_forward(self, place_qr_order, container, admin, db):
        order = await place_qr_order()

        verified = await container.verify_payment()(admin, order.id)

        assert verified.status == OrderStatus.PAYMENT_VERIFIED
        assert verified.payment_status == PaymentStatus.VERIFIED
        assert db.orders[order.id].status == OrderStatus.PAYMENT_VERIFIED
        assert db.orders[order.id].version == 2

    async def test_customer_is_told(self, place_qr_order, container, admin, db):
        order = await place_qr_order()
        before = len(db.customer_notifications(CUSTOMER_ID))

        await container.verify_payment()(admin, order.id)

        notes = db.customer_notifications(CUSTOMER_ID)
        assert len(notes) == before + 1
        assert notes[-1].type == NotificationType.PAYMENT_VERIFIED
        assert notes[-1].data["order_id"] == order.id

    async def test_second_verify_is_rejected_without_new_notification(self, place_qr_order, container, admin, db):
        order = await place_qr_order()
        await container.verify_payment()(admin, order.id)
        before = len(db.notifications)

        with pytest.raises(IllegalTransitionError):
            await container.verify_payment()(admin, order.id)

        assert len(db.notifications) == before
        assert db.orders[order.id].version == 2

    async def test_verify_cash_order_is_rejected(self, place_cod_order, container, admin):
        order = await place_cod_order()

        with pytest.raises(IllegalTransitionError):
            await container.verify_payment()(admin, order.id)

    async def test_proof_is_required(self, place_qr_order, container, admin, db):
        order = await place_qr_order()
        db.orders[order.id] = order.model_copy(update={"payment_proof_url": None})

        with pytest.raises(ValidationError):
            await container.verify_payment()(admin, order.id)
        assert db.orders[order.id].payment_status == PaymentStatus.PENDING

    async def test_customer_cannot_verify(self, place_qr_order, container, customer, db):
        order = await place_qr_order()

        with pytest.raises(PermissionDeniedError):
            await container.verify_payment()(customer, order.id)
        assert db.orders[order.id].payment_status == PaymentStatus.PENDING

    async def test_unknown_order(self, container, admin):
        with pytest.raises(OrderNotFoundError):
            await container.verify_payment()(admin, "missing")


class TestRejectPayment:
    async def test_reject_keeps_order_waiting(self, place_qr_order, container, admin, db):
        order = await place_qr_order()

        rejected = await container.reject_payment()(admin, order.id)

        assert rejected.status == OrderStatus.PENDING_PAYMENT
        assert rejected.payment_status == PaymentStatus.REJECTED
        notes = db.customer_notifications(CUSTOMER_ID)
        assert notes[-1].type == NotificationType.PAYMENT_REJECTED

    async def test_rejected_payment_cannot_be_verified(self, place_qr_order, container, admin):
        order = await place_qr_order()
        await container.reject_payment()(admin, order.id)

        with pytest.raises(IllegalTransitionError):
            await container.verify_payment()(admin, order.id)

    async def test_reject_after_verify(self, place_qr_order, container, admin):
        order = await place_qr_order()
        await container.verify_payment()(admin, order.id)

        with pytest.raises(IllegalTransitionError):
            await container.reject_payment()(admin, order.id)

    async def test_customer_cannot_reject(self, place_qr_order, container, customer):
        order = await place_qr_order()

        with pytest.raises(PermissionDeniedError):
            await container.reject_payment()(customer, order.id)
