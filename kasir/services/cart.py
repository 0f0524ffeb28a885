"""
Active cart snapshot, persisted so an interrupted sale can be resumed.
"""
import logging
from typing import List, Optional

from kasir.core.config import Settings, get_settings
from kasir.core.storage import KeyNames, KeyValueStore, load_records
from kasir.models.catalog import CartLine, Product

logger = logging.getLogger(__name__)


class CartService:
    """Cart mutation rules on top of the stored cart snapshot."""

    def __init__(self, store: KeyValueStore, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.store = store
        self.keys = KeyNames(settings.storage_namespace)

    def get_cart(self) -> List[CartLine]:
        return load_records(self.store, self.keys.cart, CartLine)

    def save_cart(self, lines: List[CartLine]) -> None:
        if lines:
            self.store.set(self.keys.cart, [line.to_storage() for line in lines])
        else:
            self.store.remove(self.keys.cart)

    def add_product(self, product: Product, quantity: int = 1) -> List[CartLine]:
        """Add a product, merging with an existing line for the same product."""
        if quantity <= 0:
            raise ValueError("Quantity must be positive")

        with self.store.lock(self.keys.cart):
            lines = self.get_cart()
            for index, line in enumerate(lines):
                if line.id == product.id:
                    lines[index] = line.model_copy(update={"quantity": line.quantity + quantity})
                    break
            else:
                lines.append(CartLine.from_product(product, quantity))
            self.save_cart(lines)
        return lines

    def update_quantity(self, product_id: int, delta: int) -> List[CartLine]:
        """Adjust a line's quantity; the line is dropped once it reaches zero."""
        with self.store.lock(self.keys.cart):
            lines = []
            for line in self.get_cart():
                if line.id == product_id:
                    quantity = line.quantity + delta
                    if quantity <= 0:
                        continue
                    line = line.model_copy(update={"quantity": quantity})
                lines.append(line)
            self.save_cart(lines)
        return lines

    def remove_item(self, product_id: int) -> List[CartLine]:
        with self.store.lock(self.keys.cart):
            lines = [line for line in self.get_cart() if line.id != product_id]
            self.save_cart(lines)
        return lines

    def clear(self) -> None:
        self.store.remove(self.keys.cart)
        logger.info("Cart cleared")
