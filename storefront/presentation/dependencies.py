from datetime import timezone, tzinfo
from typing import Optional
from fastapi import Depends, Header, HTTPException, Request, status

from storefront.application.advance_status import AdvanceStatusUseCase
from storefront.application.get_order import GetMyOrdersUseCase, GetOrderDetailsUseCase, GetOrderUseCase
from storefront.application.interfaces import CatalogService, Clock, IdentityService, utc_now
from storefront.application.notification_inbox import (
    ListNotificationsUseCase, MarkAllNotificationsReadUseCase, MarkNotificationReadUseCase
)
from storefront.application.notifications import NotificationDispatcher
from storefront.application.place_order import PlaceOrderUseCase
from storefront.application.queries import (
    GetCustomerDashboardUseCase, GetDashboardStatsUseCase, GetPaymentStatsUseCase, GetTabCountsUseCase,
    ListOrdersUseCase
)
from storefront.application.resubmit_proof import ResubmitPaymentProofUseCase
from storefront.application.review_payment import RejectPaymentUseCase, VerifyPaymentUseCase
from storefront.application.store_settings import StoreSettingsService
from storefront.domain.exceptions import IdentityServiceError
from storefront.domain.models import Actor


class ServiceContainer:
    """Все зависимости приложения. Создается один раз при старте и кладется в app.state."""

    def __init__(
        self,
        unit_of_work,
        catalog_service: CatalogService,
        identity_service: IdentityService,
        settings_service: StoreSettingsService,
        clock: Clock = utc_now,
        code_prefix: str = "SBK",
        store_timezone: tzinfo = timezone.utc,
    ):
        self.unit_of_work = unit_of_work
        self.catalog = catalog_service
        self.identity = identity_service
        self.settings_service = settings_service
        self.clock = clock
        self.code_prefix = code_prefix
        self.store_timezone = store_timezone
        self.dispatcher = NotificationDispatcher(unit_of_work, identity_service, clock)

    def place_order(self) -> PlaceOrderUseCase:
        return PlaceOrderUseCase(
            self.unit_of_work, self.catalog, self.settings_service, self.dispatcher, self.clock, self.code_prefix
        )

    def verify_payment(self) -> VerifyPaymentUseCase:
        return VerifyPaymentUseCase(self.unit_of_work, self.dispatcher, self.clock)

    def reject_payment(self) -> RejectPaymentUseCase:
        return RejectPaymentUseCase(self.unit_of_work, self.dispatcher, self.clock)

    def advance_status(self) -> AdvanceStatusUseCase:
        return AdvanceStatusUseCase(self.unit_of_work, self.dispatcher, self.clock)

    def resubmit_proof(self) -> ResubmitPaymentProofUseCase:
        return ResubmitPaymentProofUseCase(self.unit_of_work, self.dispatcher, self.clock)

    def get_order(self) -> GetOrderUseCase:
        return GetOrderUseCase(self.unit_of_work)

    def get_my_orders(self) -> GetMyOrdersUseCase:
        return GetMyOrdersUseCase(self.unit_of_work)

    def get_order_details(self) -> GetOrderDetailsUseCase:
        return GetOrderDetailsUseCase(self.unit_of_work, self.identity)

    def list_orders(self) -> ListOrdersUseCase:
        return ListOrdersUseCase(self.unit_of_work)

    def tab_counts(self) -> GetTabCountsUseCase:
        return GetTabCountsUseCase(self.unit_of_work)

    def dashboard_stats(self) -> GetDashboardStatsUseCase:
        return GetDashboardStatsUseCase(self.unit_of_work, self.clock, self.store_timezone)

    def payment_stats(self) -> GetPaymentStatsUseCase:
        return GetPaymentStatsUseCase(self.unit_of_work, self.clock, self.store_timezone)

    def customer_dashboard(self) -> GetCustomerDashboardUseCase:
        return GetCustomerDashboardUseCase(self.unit_of_work)

    def list_notifications(self) -> ListNotificationsUseCase:
        return ListNotificationsUseCase(self.unit_of_work)

    def mark_notification_read(self) -> MarkNotificationReadUseCase:
        return MarkNotificationReadUseCase(self.unit_of_work)

    def mark_all_notifications_read(self) -> MarkAllNotificationsReadUseCase:
        return MarkAllNotificationsReadUseCase(self.unit_of_work)


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


async def get_current_actor(
    authorization: Optional[str] = Header(default=None),
    container: ServiceContainer = Depends(get_container),
) -> Actor:
    """Пользователь по bearer токену. Роль всегда берется у Identity сервиса, не из запроса."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Требуется авторизация")
    token = authorization.split(" ", 1)[1].strip()
    try:
        actor = await container.identity.get_actor(token)
    except IdentityServiceError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    if not actor:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Недействительный токен")
    return actor
