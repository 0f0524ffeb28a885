"""
Product catalog: lookups used to resolve scanned or typed codes, plus CRUD.
"""
import logging
from typing import List, Optional

from kasir.core.config import Settings, get_settings
from kasir.core.exceptions import ProductNotFoundError
from kasir.core.storage import KeyNames, KeyValueStore, load_records
from kasir.models.catalog import Product, ProductCategory
from kasir.services.cart import CartService

logger = logging.getLogger(__name__)


DEFAULT_PRODUCTS = [
    Product(id=1, name="Susu Formula Bebelac 1 400g", price=95000, category=ProductCategory.SUSU, barcode="8992696404441"),
    Product(id=2, name="Susu SGM Eksplor 1+ 400g", price=52000, category=ProductCategory.SUSU, barcode="8992753102051"),
    Product(id=3, name="Pampers Baby Dry M 34", price=89000, category=ProductCategory.PAMPERS, barcode="4902430887341"),
    Product(id=4, name="MamyPoko Pants L 28", price=98000, category=ProductCategory.PAMPERS, barcode="8851111402025"),
    Product(id=5, name="Minyak Telon My Baby 90ml", price=24500, category=ProductCategory.KOSMETIK, barcode="8992745550014"),
    Product(id=6, name="Bedak Bayi Cussons 100g", price=12500, category=ProductCategory.KOSMETIK, barcode="8993137690014"),
    Product(id=7, name="Botol Susu Pigeon 240ml", price=65000, category=ProductCategory.PERLENGKAPAN, barcode="4902508011203"),
    Product(id=8, name="Bubur Bayi SUN Beras Merah", price=8500, category=ProductCategory.MAKANAN, barcode="8992717900014"),
]


class Catalog:
    """Persisted product list. The ledgers never call this; callers resolve products first."""

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[Settings] = None,
        cart: Optional[CartService] = None,
    ):
        settings = settings or get_settings()
        self.store = store
        self.keys = KeyNames(settings.storage_namespace)
        self.cart = cart

    def list_products(self) -> List[Product]:
        if self.store.get(self.keys.products) is None:
            return [product.model_copy() for product in DEFAULT_PRODUCTS]
        return load_records(self.store, self.keys.products, Product)

    def search(self, term: str) -> List[Product]:
        term = term.strip().lower()
        return [product for product in self.list_products() if term in product.name.lower()]

    def find_product_by_id(self, product_id: int) -> Optional[Product]:
        return next((p for p in self.list_products() if p.id == product_id), None)

    def find_product_by_barcode(self, barcode: str) -> Optional[Product]:
        barcode = barcode.strip()
        if not barcode:
            return None
        return next((p for p in self.list_products() if p.barcode == barcode), None)

    def add_product(
        self,
        name: str,
        price: int,
        category: ProductCategory = ProductCategory.UNCATEGORIZED,
        barcode: str = "",
        image: str = "",
    ) -> Product:
        """Create a product with the next free id."""
        with self.store.lock(self.keys.products):
            products = self.list_products()
            product = Product(
                id=max((p.id for p in products), default=0) + 1,
                name=name,
                price=price,
                category=category,
                barcode=barcode,
                image=image,
            )
            products.append(product)
            self._save(products)

        logger.info(f"Product created: {product.id} ({product.name})")
        return product

    def update_product(self, product: Product) -> Product:
        with self.store.lock(self.keys.products):
            products = self.list_products()
            for index, existing in enumerate(products):
                if existing.id == product.id:
                    products[index] = product
                    break
            else:
                raise ProductNotFoundError(product.id)
            self._save(products)

        logger.info(f"Product updated: {product.id}")
        return product

    def delete_product(self, product_id: int) -> None:
        """
        Remove a product and drop it from the active cart.

        Receipts and stock movements keep their own snapshots of the product,
        and its stock row is left in place.
        """
        with self.store.lock(self.keys.products):
            products = self.list_products()
            remaining = [p for p in products if p.id != product_id]
            if len(remaining) == len(products):
                raise ProductNotFoundError(product_id)
            self._save(remaining)

        if self.cart is not None:
            self.cart.remove_item(product_id)
        logger.info(f"Product deleted: {product_id}")

    def seed_defaults(self) -> bool:
        """Persist the default catalog unless one is already saved."""
        with self.store.lock(self.keys.products):
            if self.store.get(self.keys.products) is not None:
                return False
            self._save(self.list_products())
        logger.info(f"Saved default catalog of {len(DEFAULT_PRODUCTS)} products")
        return True

    def _save(self, products: List[Product]) -> None:
        self.store.set(self.keys.products, [product.to_storage() for product in products])
