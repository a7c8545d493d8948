"""Order history API routes for customers and admins."""

from uuid import UUID

from fastapi import APIRouter

from kickshaus.api.deps import AdminUser, CurrentUser, Settlement
from kickshaus.schemas.payment import OrderListResponse, OrderResponse

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List my orders",
    description="Returns all orders for the authenticated user, newest first.",
)
async def list_orders(user: CurrentUser, service: Settlement) -> OrderListResponse:
    orders = await service.list_orders(str(user.user_id))
    return OrderListResponse(items=[OrderResponse(**order) for order in orders])


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order by ID",
    description="Returns a single order. Only accessible by the order owner.",
)
async def get_order(order_id: UUID, user: CurrentUser, service: Settlement) -> OrderResponse:
    """Get one of the current user's orders.

    Orders owned by someone else are reported as not found.

    Raises:
        NotFoundError: 404 if the order does not exist or is not owned by the user.
    """
    order = await service.get_order(str(order_id), user_id=str(user.user_id))
    return OrderResponse(**order)


# Admin router - mounted separately at /admin/orders
admin_router = APIRouter(prefix="/admin/orders", tags=["admin"])


@admin_router.get(
    "",
    response_model=OrderListResponse,
    summary="List all orders",
    description="Returns every order. Requires the admin role.",
)
async def list_all_orders(admin: AdminUser, service: Settlement) -> OrderListResponse:
    orders = await service.list_all_orders()
    return OrderListResponse(items=[OrderResponse(**order) for order in orders])


@admin_router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get any order",
    description="Returns a single order regardless of owner. Requires the admin role.",
)
async def get_any_order(order_id: UUID, admin: AdminUser, service: Settlement) -> OrderResponse:
    order = await service.get_order(str(order_id))
    return OrderResponse(**order)
