"""FastAPI routes for the Ordering domain: orders, statuses, customers and plans.

Thin adapters: request schema in, service call, response schema out. The
services themselves are built once by the application and read from
`app.state`.
"""

import json

from fastapi import APIRouter, Depends, Request, Response
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AdjustPointsRequest,
    AssignPlanRequest,
    CreateOrderStatusRequest,
    CustomerResponse,
    DiscountSchema,
    LimitCheckResponse,
    LimitsResponse,
    OrderItemResponse,
    OrderListResponse,
    OrderLogResponse,
    OrderRequest,
    OrderResponse,
    OrderStatusListResponse,
    OrderStatusResponse,
    PointsResponse,
    RegisterCustomerRequest,
    ReorderOrderStatusesRequest,
    StatusResponse,
    UpdateOrderStatusDefinitionRequest,
    UpdateOrderStatusRequest,
)
from ordering.customer.ledger import LoyaltyLedger
from ordering.customer.registration import RegisterCustomer
from ordering.order.audit import logs_for
from ordering.order.helpers import load_customer
from ordering.order.lifecycle import OrderLifecycle
from ordering.status.catalog import StatusCatalog
from ordering.subscription.quota import AssignSubscriptionPlan, QuotaGuard
from shared.http import tenant_id


def _lifecycle(request: Request) -> OrderLifecycle:
    return request.app.state.order_lifecycle


def _catalog(request: Request) -> StatusCatalog:
    return request.app.state.status_catalog


def _ledger(request: Request) -> LoyaltyLedger:
    return request.app.state.loyalty_ledger


def _quota(request: Request) -> QuotaGuard:
    return request.app.state.quota_guard


def _order_response(order) -> OrderResponse:
    discount = None
    if order.discount is not None:
        discount = DiscountSchema(
            discount_id=str(order.discount.discount_id) if order.discount.discount_id else None,
            name=order.discount.name,
            discount_type=order.discount.discount_type,
            reward_type=order.discount.reward_type,
            value=order.discount.value,
            amount=order.discount.amount,
        )

    return OrderResponse(
        order_id=str(order.id),
        tenant_id=str(order.tenant_id),
        order_no=order.order_no,
        staff_id=str(order.staff_id),
        customer_id=str(order.customer_id) if order.customer_id else None,
        items=[
            OrderItemResponse(
                item_id=str(item.id),
                product_id=str(item.product_id),
                product_name=item.product_name,
                product_price=item.product_price,
                qty=item.qty,
            )
            for item in order.items
        ],
        subtotal=order.subtotal,
        tax_amount=order.tax_amount or 0.0,
        total_amount=order.total_amount,
        grand_total=order.grand_total,
        paid_amount=order.paid_amount or 0.0,
        remaining_balance=order.remaining_balance or 0.0,
        change_amount=order.change_amount or 0.0,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        payment_date=order.payment_date,
        order_status=order.order_status,
        discount=discount,
        point_used=order.point_used or 0,
        last_points_accumulation=order.last_points_accumulation,
        note=order.note,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _status_response(status) -> OrderStatusResponse:
    return OrderStatusResponse(
        status_id=str(status.id),
        code=status.code,
        name=status.name,
        description=status.description,
        display_order=status.display_order,
        is_final=bool(status.is_final),
        is_active=bool(status.is_active),
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(
    body: OrderRequest,
    tenant: str = Depends(tenant_id),
    lifecycle: OrderLifecycle = Depends(_lifecycle),
) -> OrderResponse:
    order = lifecycle.create(tenant, body.as_command_data())
    return _order_response(order)


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    payment_status: str | None = None,
    order_status: str | None = None,
    customer_id: str | None = None,
    page: int = 1,
    page_size: int = 20,
    tenant: str = Depends(tenant_id),
    lifecycle: OrderLifecycle = Depends(_lifecycle),
) -> OrderListResponse:
    result = lifecycle.list(
        tenant,
        payment_status=payment_status,
        order_status=order_status,
        customer_id=customer_id,
        page=max(page, 1),
        page_size=max(page_size, 1),
    )
    return OrderListResponse(
        items=[_order_response(order) for order in result["items"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    tenant: str = Depends(tenant_id),
    lifecycle: OrderLifecycle = Depends(_lifecycle),
) -> OrderResponse:
    return _order_response(lifecycle.get(tenant, order_id))


@order_router.put("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: str,
    body: OrderRequest,
    tenant: str = Depends(tenant_id),
    lifecycle: OrderLifecycle = Depends(_lifecycle),
) -> OrderResponse:
    order = lifecycle.update(tenant, order_id, body.as_command_data())
    return _order_response(order)


@order_router.delete("/{order_id}", status_code=204)
async def delete_order(
    order_id: str,
    tenant: str = Depends(tenant_id),
    lifecycle: OrderLifecycle = Depends(_lifecycle),
) -> Response:
    lifecycle.delete(tenant, order_id)
    return Response(status_code=204)


@order_router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    tenant: str = Depends(tenant_id),
    lifecycle: OrderLifecycle = Depends(_lifecycle),
) -> OrderResponse:
    order = lifecycle.update_status_by_code(tenant, order_id, body.status_code)
    return _order_response(order)


@order_router.get("/{order_id}/logs", response_model=list[OrderLogResponse])
async def get_order_logs(
    order_id: str,
    tenant: str = Depends(tenant_id),
    lifecycle: OrderLifecycle = Depends(_lifecycle),
) -> list[OrderLogResponse]:
    lifecycle.get(tenant, order_id)
    return [
        OrderLogResponse(
            log_id=str(entry.id),
            order_id=str(entry.order_id),
            status=entry.status,
            note=entry.note,
            created_at=entry.created_at,
        )
        for entry in logs_for(tenant, order_id)
    ]


# ---------------------------------------------------------------------------
# Order Status Router
# ---------------------------------------------------------------------------
status_router = APIRouter(prefix="/order-statuses", tags=["order-statuses"])


@status_router.post("", status_code=201, response_model=OrderStatusResponse)
async def create_status(
    body: CreateOrderStatusRequest,
    tenant: str = Depends(tenant_id),
    catalog: StatusCatalog = Depends(_catalog),
) -> OrderStatusResponse:
    status = catalog.create(tenant, **body.model_dump())
    return _status_response(status)


@status_router.get("", response_model=OrderStatusListResponse)
async def list_statuses(
    is_active: bool | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 50,
    tenant: str = Depends(tenant_id),
    catalog: StatusCatalog = Depends(_catalog),
) -> OrderStatusListResponse:
    result = catalog.find_all(tenant, is_active=is_active, search=search, page=max(page, 1), page_size=max(page_size, 1))
    return OrderStatusListResponse(
        items=[_status_response(status) for status in result["items"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
    )


@status_router.get("/defaults", response_model=list[OrderStatusResponse])
async def default_statuses(
    tenant: str = Depends(tenant_id),
    catalog: StatusCatalog = Depends(_catalog),
) -> list[OrderStatusResponse]:
    return [_status_response(status) for status in catalog.default_statuses(tenant)]


@status_router.post("/reorder", response_model=list[OrderStatusResponse])
async def reorder_statuses(
    body: ReorderOrderStatusesRequest,
    tenant: str = Depends(tenant_id),
    catalog: StatusCatalog = Depends(_catalog),
) -> list[OrderStatusResponse]:
    statuses = catalog.reorder(tenant, [position.model_dump() for position in body.positions])
    return [_status_response(status) for status in statuses]


@status_router.get("/{status_id}", response_model=OrderStatusResponse)
async def get_status(
    status_id: str,
    tenant: str = Depends(tenant_id),
    catalog: StatusCatalog = Depends(_catalog),
) -> OrderStatusResponse:
    return _status_response(catalog.get(tenant, status_id))


@status_router.put("/{status_id}", response_model=OrderStatusResponse)
async def update_status(
    status_id: str,
    body: UpdateOrderStatusDefinitionRequest,
    tenant: str = Depends(tenant_id),
    catalog: StatusCatalog = Depends(_catalog),
) -> OrderStatusResponse:
    status = catalog.update(tenant, status_id, **body.model_dump(exclude_none=True))
    return _status_response(status)


@status_router.delete("/{status_id}", status_code=204)
async def delete_status(
    status_id: str,
    tenant: str = Depends(tenant_id),
    catalog: StatusCatalog = Depends(_catalog),
) -> Response:
    catalog.delete(tenant, status_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Customer Router
# ---------------------------------------------------------------------------
customer_router = APIRouter(prefix="/customers", tags=["customers"])


def _customer_response(customer) -> CustomerResponse:
    return CustomerResponse(
        customer_id=str(customer.id),
        name=customer.name,
        phone=customer.phone,
        points=customer.points or 0,
    )


@customer_router.post("", status_code=201, response_model=CustomerResponse)
async def register_customer(body: RegisterCustomerRequest, tenant: str = Depends(tenant_id)) -> CustomerResponse:
    command = RegisterCustomer(tenant_id=tenant, name=body.name, phone=body.phone, points=body.points)
    customer_id = current_domain.process(command, asynchronous=False)
    return _customer_response(load_customer(tenant, customer_id))


@customer_router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: str, tenant: str = Depends(tenant_id)) -> CustomerResponse:
    return _customer_response(load_customer(tenant, customer_id))


@customer_router.post("/{customer_id}/points/increment", response_model=PointsResponse)
async def increment_points(
    customer_id: str,
    body: AdjustPointsRequest,
    tenant: str = Depends(tenant_id),
    ledger: LoyaltyLedger = Depends(_ledger),
) -> PointsResponse:
    load_customer(tenant, customer_id)
    points = ledger.increment(customer_id, body.amount, reason=body.reason)
    return PointsResponse(customer_id=customer_id, points=points)


@customer_router.post("/{customer_id}/points/decrement", response_model=PointsResponse)
async def decrement_points(
    customer_id: str,
    body: AdjustPointsRequest,
    tenant: str = Depends(tenant_id),
    ledger: LoyaltyLedger = Depends(_ledger),
) -> PointsResponse:
    load_customer(tenant, customer_id)
    points = ledger.decrement(customer_id, body.amount, reason=body.reason)
    return PointsResponse(customer_id=customer_id, points=points)


# ---------------------------------------------------------------------------
# Subscription Router
# ---------------------------------------------------------------------------
subscription_router = APIRouter(prefix="/subscription", tags=["subscription"])


@subscription_router.put("", response_model=StatusResponse)
async def assign_plan(body: AssignPlanRequest, tenant: str = Depends(tenant_id)) -> StatusResponse:
    command = AssignSubscriptionPlan(
        tenant_id=tenant,
        plan_name=body.plan_name,
        plan_limits=json.dumps(body.plan_limits) if body.plan_limits is not None else None,
        custom_limits=json.dumps(body.custom_limits) if body.custom_limits is not None else None,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@subscription_router.get("/limits", response_model=LimitsResponse)
async def get_limits(tenant: str = Depends(tenant_id), quota: QuotaGuard = Depends(_quota)) -> LimitsResponse:
    return LimitsResponse(limits=quota.limits_for(tenant))


@subscription_router.get("/limits/{limit_type}", response_model=LimitCheckResponse)
async def check_limit(
    limit_type: str,
    increment: int = 1,
    tenant: str = Depends(tenant_id),
    quota: QuotaGuard = Depends(_quota),
) -> LimitCheckResponse:
    return LimitCheckResponse(limit_type=limit_type, allowed=quota.check_limit(tenant, limit_type, increment))
