from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, status

from storefront.application.access import require_admin
from storefront.application.advance_status import AdvanceStatusDTO
from storefront.application.place_order import CartLineDTO, PlaceOrderDTO
from storefront.application.queries import OrderFilter, PaymentStats
from storefront.application.resubmit_proof import ResubmitProofDTO
from storefront.application.store_settings import UpdateStoreSettingsDTO
from storefront.domain.exceptions import (
    CatalogServiceError, ConflictError, DomainException, IdentityServiceError, IllegalTransitionError,
    NotFoundError, PermissionDeniedError, PersistenceError, ValidationError
)
from storefront.domain.models import Actor, OrderStatus, PaymentMethod, PaymentStatus, StoreSettings
from storefront.presentation.dependencies import ServiceContainer, get_container, get_current_actor
from storefront.presentation.schemas import (
    AdvanceStatusRequest, CustomerDashboardResponse, DashboardStatsResponse, ErrorResponse,
    NotificationFeedResponse, OrderDetailsResponse, OrderResponse, PaymentProofRequest, PlaceOrderRequest,
    PlaceOrderResponse, StoreSettingsRequest
)

router = APIRouter()

_ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def to_http_exception(e: DomainException) -> HTTPException:
    """Доменные ошибки -> HTTP ответы"""
    if isinstance(e, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(e, PermissionDeniedError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(e, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, (IllegalTransitionError, ConflictError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(e, (PersistenceError, CatalogServiceError, IdentityServiceError)):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(e))


# Покупатель

@router.post(
    "/orders",
    response_model=PlaceOrderResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def place_order(
    request: PlaceOrderRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    """Оформить заказ из корзины"""
    try:
        dto = PlaceOrderDTO(
            items=[CartLineDTO(product_id=line.product_id, quantity=line.quantity) for line in request.items],
            address=request.address,
            phone=request.phone,
            delivery_instructions=request.delivery_instructions,
            payment_method=request.payment_method,
            payment_proof_url=request.payment_proof_url
        )
        order = await container.place_order()(actor, dto)
        return PlaceOrderResponse(
            order_id=order.id,
            display_code=order.display_code,
            status=order.status,
            payment_status=order.payment_status,
            total=order.total
        )
    except DomainException as e:
        raise to_http_exception(e)


@router.get("/orders", response_model=List[OrderResponse])
async def get_my_orders(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    """Мои заказы"""
    try:
        orders = await container.get_my_orders()(actor)
        return [OrderResponse.from_domain(order) for order in orders]
    except DomainException as e:
        raise to_http_exception(e)


@router.get("/orders/{order_id}", response_model=OrderResponse, responses=_ERRORS)
async def get_order(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    """Получить свой заказ по ID"""
    try:
        order = await container.get_order()(actor, order_id)
        return OrderResponse.from_domain(order)
    except DomainException as e:
        raise to_http_exception(e)


@router.post("/orders/{order_id}/payment-proof", response_model=OrderResponse, responses=_ERRORS)
async def resubmit_payment_proof(
    order_id: str,
    request: PaymentProofRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    """Загрузить новый скриншот оплаты"""
    try:
        order = await container.resubmit_proof()(
            actor, order_id, ResubmitProofDTO(payment_proof_url=request.payment_proof_url)
        )
        return OrderResponse.from_domain(order)
    except DomainException as e:
        raise to_http_exception(e)


@router.get("/dashboard", response_model=CustomerDashboardResponse)
async def customer_dashboard(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    try:
        dashboard = await container.customer_dashboard()(actor)
        return CustomerDashboardResponse(
            total_orders=dashboard.total_orders,
            active_deliveries=dashboard.active_deliveries,
            pending_payments=dashboard.pending_payments,
            recent_orders=[OrderResponse.from_domain(order) for order in dashboard.recent_orders]
        )
    except DomainException as e:
        raise to_http_exception(e)


# Уведомления

@router.get("/notifications", response_model=NotificationFeedResponse)
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    try:
        feed = await container.list_notifications()(actor, unread_only=unread_only, limit=limit)
        return NotificationFeedResponse(notifications=feed.notifications, unread_count=feed.unread_count)
    except DomainException as e:
        raise to_http_exception(e)


@router.post("/notifications/read-all")
async def mark_all_notifications_read(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    try:
        changed = await container.mark_all_notifications_read()(actor)
        return {"status": "ok", "updated": changed}
    except DomainException as e:
        raise to_http_exception(e)


@router.post("/notifications/{notification_id}/read", responses=_ERRORS)
async def mark_notification_read(
    notification_id: str,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    try:
        await container.mark_notification_read()(actor, notification_id)
        return {"status": "ok"}
    except DomainException as e:
        raise to_http_exception(e)


# Администратор

@router.get("/admin/orders", response_model=List[OrderResponse], responses={403: {"model": ErrorResponse}})
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(default=None, alias="status"),
    group: Optional[str] = None,
    payment_status: Optional[PaymentStatus] = None,
    payment_method: Optional[PaymentMethod] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    """Список заказов по статусу или группе статусов"""
    try:
        orders = await container.list_orders()(actor, OrderFilter(
            status=status_filter,
            group=group,
            payment_status=payment_status,
            payment_method=payment_method,
            limit=limit,
            offset=offset
        ))
        return [OrderResponse.from_domain(order) for order in orders]
    except DomainException as e:
        raise to_http_exception(e)


@router.get("/admin/orders/counts", response_model=dict[str, int])
async def order_tab_counts(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    try:
        return await container.tab_counts()(actor)
    except DomainException as e:
        raise to_http_exception(e)


@router.get("/admin/orders/{order_id}", response_model=OrderDetailsResponse, responses=_ERRORS)
async def get_order_details(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    try:
        details = await container.get_order_details()(actor, order_id)
        return OrderDetailsResponse(order=OrderResponse.from_domain(details.order), customer=details.customer)
    except DomainException as e:
        raise to_http_exception(e)


@router.post("/admin/orders/{order_id}/verify-payment", response_model=OrderResponse, responses=_ERRORS)
async def verify_payment(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    """Подтвердить оплату по скриншоту"""
    try:
        order = await container.verify_payment()(actor, order_id)
        return OrderResponse.from_domain(order)
    except DomainException as e:
        raise to_http_exception(e)


@router.post("/admin/orders/{order_id}/reject-payment", response_model=OrderResponse, responses=_ERRORS)
async def reject_payment(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    """Отклонить скриншот оплаты"""
    try:
        order = await container.reject_payment()(actor, order_id)
        return OrderResponse.from_domain(order)
    except DomainException as e:
        raise to_http_exception(e)


@router.post("/admin/orders/{order_id}/status", response_model=OrderResponse, responses=_ERRORS)
async def advance_status(
    order_id: str,
    request: AdvanceStatusRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    """processing / out_for_delivery (с датой доставки) / delivered / cancelled"""
    try:
        order = await container.advance_status()(
            actor, order_id, AdvanceStatusDTO(status=request.status, delivery_date=request.delivery_date)
        )
        return OrderResponse.from_domain(order)
    except DomainException as e:
        raise to_http_exception(e)


@router.get("/admin/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    try:
        stats = await container.dashboard_stats()(actor)
        return DashboardStatsResponse(
            today_orders=stats.today_orders,
            pending_payments=stats.pending_payments,
            out_for_delivery=stats.out_for_delivery,
            recent_orders=[OrderResponse.from_domain(order) for order in stats.recent_orders]
        )
    except DomainException as e:
        raise to_http_exception(e)


@router.get("/admin/payments/stats", response_model=PaymentStats)
async def payment_stats(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    try:
        return await container.payment_stats()(actor)
    except DomainException as e:
        raise to_http_exception(e)


@router.get("/admin/store-settings", response_model=StoreSettings)
async def get_store_settings(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    try:
        require_admin(actor)
        return await container.settings_service.get()
    except DomainException as e:
        raise to_http_exception(e)


@router.put("/admin/store-settings", response_model=StoreSettings, responses={403: {"model": ErrorResponse}})
async def update_store_settings(
    request: StoreSettingsRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    try:
        return await container.settings_service.update(
            actor, UpdateStoreSettingsDTO(**request.model_dump(exclude_none=True))
        )
    except DomainException as e:
        raise to_http_exception(e)
