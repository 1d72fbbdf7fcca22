"""Cart pricing against live product data."""

import logging
from decimal import ROUND_HALF_UP, Decimal

from strandly.config import Config, get_config
from strandly.errors import ConflictError, InvalidRequestError, NotFoundError
from strandly.models import CartLine, PricedCart
from strandly.services.cart_manager import CartManager
from strandly.services.content_service import ContentService

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class CartService:
    """Adds products to carts and prices them with current CMS data."""

    def __init__(
        self,
        content: ContentService,
        manager: CartManager,
        config: Config | None = None,
    ) -> None:
        self.content = content
        self.manager = manager
        self.config = config or get_config()

    async def create_cart(self) -> PricedCart:
        """Open a new cart, dropping idle carts first."""
        self.manager.cleanup_stale(self.config.cart_max_age_minutes)
        cart = self.manager.create_cart(max_carts=self.config.max_carts)
        return await self.price(cart.cart_id)

    async def add_item(self, cart_id: str, product_id: str, quantity: int) -> PricedCart:
        """Set a product's quantity in the cart after checking availability.

        Raises:
            InvalidRequestError: Quantity out of range
            NotFoundError: Unknown cart or product
            ConflictError: Not enough stock
        """
        if not 1 <= quantity <= self.config.max_cart_quantity:
            msg = f"Quantity must be between 1 and {self.config.max_cart_quantity}"
            raise InvalidRequestError(msg)

        self.manager.get_cart(cart_id)

        products = await self.content.get_products_by_ids([product_id])
        product = products.get(product_id)
        if product is None or not product.active:
            msg = f"Product {product_id} not found"
            raise NotFoundError(msg)

        if not product.in_stock(quantity):
            msg = f"Only {product.stock} of {product.name} left in stock"
            raise ConflictError(msg)

        cart = self.manager.set_item(cart_id, product_id, quantity)
        return await self.price(cart.cart_id)

    async def remove_item(self, cart_id: str, product_id: str) -> PricedCart:
        self.manager.remove_item(cart_id, product_id)
        return await self.price(cart_id)

    async def price(self, cart_id: str) -> PricedCart:
        """Price a cart; lines whose product disappeared are dropped."""
        cart = self.manager.get_cart(cart_id)
        products = await self.content.get_products_by_ids(
            [item.product_id for item in cart.items]
        )

        lines: list[CartLine] = []
        unavailable: list[str] = []
        for item in cart.items:
            product = products.get(item.product_id)
            if product is None or not product.active:
                unavailable.append(item.product_id)
                continue
            line_total = (product.price * item.quantity).quantize(
                CENTS, rounding=ROUND_HALF_UP
            )
            lines.append(
                CartLine(product=product, quantity=item.quantity, line_total=line_total)
            )

        for product_id in unavailable:
            logger.info(f"Dropping unavailable product {product_id} from cart {cart_id}")
            self.manager.remove_item(cart_id, product_id)

        subtotal = sum((line.line_total for line in lines), Decimal("0")).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )
        return PricedCart(
            cart_id=cart_id,
            lines=lines,
            item_count=sum(line.quantity for line in lines),
            subtotal=subtotal,
            currency=self.config.currency,
            unavailable=unavailable,
        )
