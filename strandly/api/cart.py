"""Shopping cart endpoints."""

from fastapi import APIRouter, Depends, Response

from strandly.api.deps import get_cart_service, get_carts
from strandly.models import CartItem, PricedCart
from strandly.services import CartManager, CartService

router = APIRouter(prefix="/api/cart", tags=["Cart"])


@router.post("", status_code=201)
async def create_cart(
    cart_service: CartService = Depends(get_cart_service),
) -> PricedCart:
    return await cart_service.create_cart()


@router.get("/{cart_id}")
async def get_cart(
    cart_id: str, cart_service: CartService = Depends(get_cart_service)
) -> PricedCart:
    return await cart_service.price(cart_id)


@router.post("/{cart_id}/items")
async def set_cart_item(
    cart_id: str,
    item: CartItem,
    cart_service: CartService = Depends(get_cart_service),
) -> PricedCart:
    """Set the quantity of a product in the cart."""
    return await cart_service.add_item(cart_id, item.product_id, item.quantity)


@router.delete("/{cart_id}/items/{product_id}")
async def remove_cart_item(
    cart_id: str,
    product_id: str,
    cart_service: CartService = Depends(get_cart_service),
) -> PricedCart:
    return await cart_service.remove_item(cart_id, product_id)


@router.delete("/{cart_id}", status_code=204)
async def delete_cart(cart_id: str, carts: CartManager = Depends(get_carts)):
    carts.delete_cart(cart_id)
    return Response(status_code=204)
