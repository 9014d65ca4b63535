import re
from collections import namedtuple
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_DOWN

from errors import NotFoundError, TransportError

CODE_LENGTH = 13
_SAFE_NUMBER = re.compile(r"[A-Za-z0-9_-]+")
MSG_INVALID_CODE = "code must be 13 digits"

ValidationResult = namedtuple("ValidationResult", ["ok", "message"])


def validate_code(value):
    """A product code is exactly 13 ASCII digits (EAN-13 shape)."""
    if value is None or len(value) != CODE_LENGTH:
        return ValidationResult(False, MSG_INVALID_CODE)
    # str.isdigit() accepts things like superscripts, so compare against ASCII
    if not all("0" <= ch <= "9" for ch in value):
        return ValidationResult(False, MSG_INVALID_CODE)
    return ValidationResult(True, "")


def compute_tax(subtotal, rate):
    """Truncated tax on a non-negative integer amount."""
    if subtotal < 0:
        raise ValueError("subtotal must be non-negative")
    amount = Decimal(subtotal) * Decimal(str(rate))
    return int(amount.to_integral_value(rounding=ROUND_DOWN))


#product model
@dataclass(frozen=True)
class Product:
    id: int
    code: str
    name: str
    unit_price: int

    @classmethod
    def from_payload(cls, payload):
        """Build a product from a catalog record ({prd_id, code, name, price})."""
        if not payload or not isinstance(payload, dict) or payload.get("prd_id") is None:
            raise NotFoundError("catalog returned no product record")

        price = payload.get("price")
        if isinstance(price, bool) or not isinstance(price, int) or price < 0:
            raise TransportError(f"unexpected price in product record: {price!r}")
        name = payload.get("name")
        if not isinstance(name, str):
            raise TransportError(f"unexpected name in product record: {name!r}")

        return cls(payload["prd_id"], str(payload.get("code") or ""), name, price)


#cart line model
class CartLine:
    def __init__(self, product, quantity=1):
        self.product = product
        self.quantity = quantity

    @property
    def line_total(self):
        return self.product.unit_price * self.quantity

    def __repr__(self):
        return f"CartLine({self.product.name!r}, quantity={self.quantity})"


#cart model
class Cart:
    def __init__(self):
        self.lines = []

    def __len__(self):
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    def __getitem__(self, index):
        return self.lines[index]

    def add(self, product):
        """Add one unit; a product already in the cart gets its quantity bumped."""
        for line in self.lines:
            if line.product.id == product.id:
                line.quantity += 1
                return line

        line = CartLine(product, 1)
        self.lines.append(line)
        return line

    def remove_at(self, index):
        if index < 0 or index >= len(self.lines):
            raise IndexError(f"no cart line at index {index}")
        return self.lines.pop(index)

    def clear(self):
        self.lines = []

    def expand(self):
        """One product entry per unit purchased, in cart order."""
        units = []
        for line in self.lines:
            units.extend([line.product] * line.quantity)
        return units

    @property
    def unit_count(self):
        return sum(line.quantity for line in self.lines)

    @property
    def subtotal(self):
        return sum(line.line_total for line in self.lines)


#session state: everything the operator sees for one checkout session
class SessionState:
    def __init__(self):
        self.code_input = ""
        self.pending_product = None
        self.cart = Cart()
        self.status_message = ""
        self.busy = False
        self.last_error = None
        self.last_receipt = None


#receipt model
ReceiptLine = namedtuple("ReceiptLine", ["name", "quantity", "unit_price", "line_total"])


@dataclass(frozen=True)
class Receipt:
    lines: tuple
    subtotal: int
    tax: int
    transaction_id: object = None
    server_total: bool = False
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_cart(cls, cart, subtotal, tax, transaction_id=None, server_total=False):
        lines = tuple(
            ReceiptLine(line.product.name, line.quantity, line.product.unit_price, line.line_total)
            for line in cart
        )
        return cls(lines, subtotal, tax, transaction_id, server_total)

    @property
    def total(self):
        return self.subtotal + self.tax

    @property
    def number(self):
        """File-safe receipt number: the backend id when usable, else a timestamp."""
        if self.transaction_id is not None:
            number = str(self.transaction_id)
            if _SAFE_NUMBER.fullmatch(number):
                return number
        return self.created_at.strftime("POS-%Y%m%d-%H%M%S-%f")
