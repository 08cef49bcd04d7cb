"""
Shopping cart state.

Holds what the shopper intends to buy, enforces per-line stock ceilings on
add, and writes every change through a CartStorage.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Optional

from .storage import CartStorage

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "cart"


@dataclass
class CartItem:
    """One product's line in the cart. Money amounts are in cents."""
    id: str
    name: str
    price: int
    discount: int
    quantity: int
    available_stock: int
    image: Optional[str] = None

    @property
    def unit_total(self) -> int:
        return self.price - self.discount

    @property
    def line_total(self) -> int:
        return self.unit_total * self.quantity

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Optional["CartItem"]:
        """Rebuild a line from its stored record, None if unusable"""
        try:
            item = cls(
                id=str(record["id"]),
                name=str(record["name"]),
                price=int(record["price"]),
                discount=int(record.get("discount", 0)),
                quantity=int(record["quantity"]),
                available_stock=int(record.get("available_stock", 0)),
                image=record.get("image"),
            )
        except (KeyError, TypeError, ValueError):
            return None
        return item if item.quantity > 0 else None


@dataclass
class ProductSnapshot:
    """Product details captured at add-to-cart time"""
    id: str
    name: str
    price: int
    discount: int = 0
    available_stock: int = 0
    image: Optional[str] = None

    @classmethod
    def from_product(cls, product) -> "ProductSnapshot":
        image = product.primary_image
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            discount=product.discount,
            available_stock=product.stock or 0,
            image=image.url if image else None,
        )


@dataclass
class CartNotice:
    """Transient add-to-cart notification for the presentation layer"""
    kind: str
    title_key: str
    description_key: Optional[str] = None
    params: dict[str, str] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.kind == "error"

    @classmethod
    def added(cls, name: str) -> "CartNotice":
        return cls(kind="success", title_key="cart.addedToCart", params={"name": name})

    @classmethod
    def insufficient_stock(cls, name: str) -> "CartNotice":
        return cls(
            kind="error",
            title_key="cart.insufficientStock",
            description_key="cart.insufficientStockDescription",
            params={"name": name},
        )


class CartStore:
    """
    Cart for one browser session.

    Totals are computed from the current lines on every read. None of the
    operations raise on bad input: unknown ids are no-ops and the stock
    ceiling turns an add into an error notice.
    """

    def __init__(self, storage: CartStorage, key: str = CART_STORAGE_KEY):
        self.storage = storage
        self.key = key
        self._items: list[CartItem] = []
        self._notice: Optional[CartNotice] = None
        self._load()

    def _load(self) -> None:
        lines: dict[str, CartItem] = {}
        for record in self.storage.load(self.key):
            item = CartItem.from_record(record)
            if item and item.id not in lines:
                lines[item.id] = item
        self._items = list(lines.values())

    def _persist(self) -> None:
        self.storage.save(self.key, [asdict(item) for item in self._items])

    def _find(self, product_id: str) -> Optional[CartItem]:
        return next((item for item in self._items if item.id == product_id), None)

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    @property
    def total(self) -> int:
        return sum(item.line_total for item in self._items)

    @property
    def discount_total(self) -> int:
        return sum(item.discount * item.quantity for item in self._items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get(self, product_id: str) -> Optional[CartItem]:
        return self._find(product_id)

    def add(self, product: ProductSnapshot) -> CartNotice:
        """Add one unit of a product, refusing to go past its stock"""
        existing = self._find(product.id)

        if existing:
            if existing.quantity >= existing.available_stock:
                logger.info(
                    f"Stock limit reached for {product.id}: "
                    f"{existing.quantity}/{existing.available_stock}"
                )
                return self._notify(CartNotice.insufficient_stock(product.name))
            existing.quantity += 1
        else:
            self._items.append(
                CartItem(
                    id=product.id,
                    name=product.name,
                    price=product.price,
                    discount=product.discount,
                    quantity=1,
                    available_stock=product.available_stock,
                    image=product.image,
                )
            )

        self._persist()
        return self._notify(CartNotice.added(product.name))

    def remove(self, product_id: str) -> None:
        if self._find(product_id) is None:
            return
        self._items = [item for item in self._items if item.id != product_id]
        self._persist()

    def set_quantity(self, product_id: str, quantity: int) -> None:
        # Not capped by stock; callers bound the value.
        if quantity <= 0:
            self.remove(product_id)
            return

        item = self._find(product_id)
        if item is None:
            return
        item.quantity = quantity
        self._persist()

    def clear(self) -> None:
        self._items = []
        self._persist()

    def discard_ordered(self, products: dict[str, int]) -> None:
        """
        Take ordered quantities out of the cart.

        Lines added, or units added to a line, after the order was built
        stay in the cart.
        """
        remaining = []
        for item in self._items:
            item.quantity -= products.get(item.id, 0)
            if item.quantity > 0:
                remaining.append(item)
        self._items = remaining
        self._persist()

    def products_map(self) -> dict[str, int]:
        """Product id -> quantity, the shape the order API expects"""
        return {item.id: item.quantity for item in self._items}

    def _notify(self, notice: CartNotice) -> CartNotice:
        self._notice = notice
        return notice

    def pop_notice(self) -> Optional[CartNotice]:
        """Return the last notice once, then forget it"""
        notice, self._notice = self._notice, None
        return notice

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [asdict(item) for item in self._items],
            "total": self.total,
            "discount_total": self.discount_total,
            "item_count": self.item_count,
        }
