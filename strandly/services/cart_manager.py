"""Cart state management for shop visitors."""

import logging
import uuid
from datetime import datetime
from typing import ClassVar

from strandly.errors import NotFoundError
from strandly.models import Cart, CartItem

logger = logging.getLogger(__name__)


class CartManager:
    """Manages shopping carts keyed by cart id.

    This is a singleton that stores carts in memory, so carts are lost on
    restart and are not shared between worker processes.
    """

    _instance: ClassVar["CartManager | None"] = None
    _carts: ClassVar[dict[str, Cart]] = {}

    def __new__(cls) -> "CartManager":
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @staticmethod
    def generate_cart_id() -> str:
        """Generate a unique cart identifier.

        Returns:
            UUID-based cart ID
        """
        return str(uuid.uuid4())

    def create_cart(self, max_carts: int | None = None) -> Cart:
        """Register a new, empty cart.

        Args:
            max_carts: When set, the least recently updated carts are evicted
                so no more than this many are held
        """
        if max_carts is not None:
            while self._carts and len(self._carts) >= max_carts:
                oldest = min(self._carts.values(), key=lambda c: c.updated_at)
                del self._carts[oldest.cart_id]
                logger.warning(f"Cart limit reached, evicted cart {oldest.cart_id}")

        cart = Cart(cart_id=self.generate_cart_id())
        self._carts[cart.cart_id] = cart
        logger.info(f"Created cart {cart.cart_id}")
        return cart

    def get_cart(self, cart_id: str) -> Cart:
        """Get a cart by ID.

        Raises:
            NotFoundError: If the cart does not exist
        """
        cart = self._carts.get(cart_id)
        if cart is None:
            msg = f"Cart {cart_id} not found"
            raise NotFoundError(msg)
        return cart

    def set_item(self, cart_id: str, product_id: str, quantity: int) -> Cart:
        """Set the quantity of a product; zero removes the line.

        Args:
            cart_id: Cart identifier
            product_id: Product identifier
            quantity: New quantity (0 removes the product)
        """
        cart = self.get_cart(cart_id)
        items = [item for item in cart.items if item.product_id != product_id]
        if quantity > 0:
            existing = next(
                (i for i, item in enumerate(cart.items) if item.product_id == product_id),
                len(items),
            )
            items.insert(existing, CartItem(product_id=product_id, quantity=quantity))

        cart.items = items
        cart.updated_at = datetime.now()
        logger.debug(f"Cart {cart_id}: {product_id} x{quantity}")
        return cart

    def remove_item(self, cart_id: str, product_id: str) -> Cart:
        return self.set_item(cart_id, product_id, 0)

    def clear_cart(self, cart_id: str) -> Cart:
        cart = self.get_cart(cart_id)
        cart.items = []
        cart.updated_at = datetime.now()
        return cart

    def delete_cart(self, cart_id: str) -> None:
        self.get_cart(cart_id)
        del self._carts[cart_id]
        logger.info(f"Deleted cart {cart_id}")

    def cleanup_stale(self, max_age_minutes: int = 24 * 60) -> int:
        """Remove carts untouched for longer than max_age_minutes.

        Args:
            max_age_minutes: Maximum idle time in minutes

        Returns:
            Number of carts removed
        """
        now = datetime.now()
        to_remove = [
            cart_id
            for cart_id, cart in self._carts.items()
            if (now - cart.updated_at).total_seconds() / 60 > max_age_minutes
        ]

        for cart_id in to_remove:
            del self._carts[cart_id]
            logger.info(f"Cleaned up stale cart {cart_id}")

        return len(to_remove)


# Global singleton instance
_cart_manager: CartManager | None = None


def get_cart_manager() -> CartManager:
    """Get the global CartManager instance.

    Returns:
        CartManager singleton
    """
    global _cart_manager
    if _cart_manager is None:
        _cart_manager = CartManager()
    return _cart_manager
