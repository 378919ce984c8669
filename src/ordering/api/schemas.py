"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), kept separate from
the Protean commands they are translated into.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemSchema(BaseModel):
    product_id: str
    product_name: str
    product_price: float = Field(ge=0)
    qty: int = Field(ge=1)


class DiscountSchema(BaseModel):
    discount_id: str | None = None
    name: str | None = None
    discount_type: str | None = None
    reward_type: str | None = None
    value: float | None = Field(default=None, ge=0)
    amount: float | None = Field(default=None, ge=0)


class OrderRequest(BaseModel):
    staff_id: str
    customer_id: str | None = None
    items: list[OrderItemSchema]
    subtotal: float = Field(ge=0)
    tax_amount: float = Field(default=0.0, ge=0)
    total_amount: float = Field(ge=0)
    grand_total: float = Field(ge=0)
    paid_amount: float = Field(default=0.0, ge=0)
    payment_method: str | None = None
    payment_status: str = "unpaid"
    order_status: str
    discount: DiscountSchema | None = None
    point_used: int = Field(default=0, ge=0)
    note: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "staff_id": "staff-001",
                    "customer_id": "cust-001",
                    "items": [
                        {"product_id": "prod-001", "product_name": "Kopi Susu", "product_price": 25000, "qty": 2},
                    ],
                    "subtotal": 50000,
                    "total_amount": 50000,
                    "grand_total": 50000,
                    "paid_amount": 50000,
                    "payment_method": "cash",
                    "payment_status": "paid",
                    "order_status": "pending",
                    "discount": {"reward_type": "point", "discount_type": "fixed", "value": 10, "amount": 10},
                }
            ]
        }
    }

    def as_command_data(self) -> dict:
        return self.model_dump(exclude_none=True)


class UpdateOrderStatusRequest(BaseModel):
    status_code: str


class OrderItemResponse(BaseModel):
    item_id: str
    product_id: str
    product_name: str
    product_price: float
    qty: int


class OrderResponse(BaseModel):
    order_id: str
    tenant_id: str
    order_no: str
    staff_id: str
    customer_id: str | None = None
    items: list[OrderItemResponse]
    subtotal: float
    tax_amount: float
    total_amount: float
    grand_total: float
    paid_amount: float
    remaining_balance: float
    change_amount: float
    payment_method: str | None = None
    payment_status: str
    payment_date: datetime | None = None
    order_status: str
    discount: DiscountSchema | None = None
    point_used: int
    last_points_accumulation: int | None = None
    note: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int
    page: int
    page_size: int


class OrderLogResponse(BaseModel):
    log_id: str
    order_id: str
    status: str
    note: str | None = None
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Order statuses
# ---------------------------------------------------------------------------
class CreateOrderStatusRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    display_order: int | None = Field(default=None, ge=1)
    is_final: bool = False
    is_active: bool = True


class UpdateOrderStatusDefinitionRequest(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    display_order: int | None = Field(default=None, ge=1)
    is_final: bool | None = None
    is_active: bool | None = None


class StatusPosition(BaseModel):
    id: str
    order: int = Field(ge=1)


class ReorderOrderStatusesRequest(BaseModel):
    positions: list[StatusPosition] = Field(min_length=1)


class OrderStatusResponse(BaseModel):
    status_id: str
    code: str
    name: str
    description: str | None = None
    display_order: int
    is_final: bool
    is_active: bool


class OrderStatusListResponse(BaseModel):
    items: list[OrderStatusResponse]
    total: int
    page: int
    page_size: int


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------
class RegisterCustomerRequest(BaseModel):
    name: str = Field(min_length=1)
    phone: str | None = None
    points: int = Field(default=0, ge=0)


class AdjustPointsRequest(BaseModel):
    amount: int = Field(gt=0)
    reason: str | None = None


class CustomerResponse(BaseModel):
    customer_id: str
    name: str
    phone: str | None = None
    points: int


class PointsResponse(BaseModel):
    customer_id: str
    points: int


# ---------------------------------------------------------------------------
# Subscription
# ---------------------------------------------------------------------------
class AssignPlanRequest(BaseModel):
    plan_name: str | None = None
    plan_limits: dict[str, int | bool] | None = None
    custom_limits: dict[str, int | bool] | None = None


class LimitsResponse(BaseModel):
    limits: dict[str, int | bool]


class LimitCheckResponse(BaseModel):
    limit_type: str
    allowed: bool


class StatusResponse(BaseModel):
    status: str = "ok"
