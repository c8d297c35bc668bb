"""Cart router - FastAPI endpoints for the current user's cart"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from .schemas import AddToCartRequest, CartMutationResponse, CartResponse, UpdateCartItemRequest
from .service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    """Dependency injection for CartService"""
    return CartService(db)


@router.get("", response_model=CartResponse)
async def get_cart(
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    return service.to_response(service.get_cart(current_user))


@router.post("/items", response_model=CartMutationResponse)
async def add_to_cart(
    data: AddToCartRequest,
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    cart = service.add_item(current_user, data.productId, data.quantity)
    return CartMutationResponse(message="Item added to cart successfully", cart=service.to_response(cart))


@router.patch("/items/{product_id}", response_model=CartMutationResponse)
async def update_cart_item(
    product_id: str,
    data: UpdateCartItemRequest,
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    cart = service.update_item_quantity(current_user, product_id, data.quantity)
    return CartMutationResponse(message="Cart updated", cart=service.to_response(cart))


@router.delete("/items/{product_id}", response_model=CartMutationResponse)
async def remove_cart_item(
    product_id: str,
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    cart = service.remove_item(current_user, product_id)
    return CartMutationResponse(message="Item removed from cart", cart=service.to_response(cart))


@router.delete("", response_model=CartMutationResponse)
async def clear_cart(
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    cart = service.clear(current_user)
    return CartMutationResponse(message="Cart cleared", cart=service.to_response(cart))


@router.post("/admin/purge-expired")
async def purge_expired_carts(
    _admin: User = Depends(require_admin),
    service: CartService = Depends(get_cart_service),
):
    return {"success": True, "deletedCount": service.purge_expired_carts()}
