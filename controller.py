import logging
from contextlib import contextmanager

from PyQt5.QtCore import QObject, pyqtSignal

from config import Settings
from errors import CheckoutRejectedError, NotFoundError, TransportError, ValidationError
from models import CODE_LENGTH, MSG_INVALID_CODE, Receipt, SessionState, compute_tax, validate_code

logger = logging.getLogger(__name__)

MSG_NOT_FOUND = "product not registered in master"
MSG_LOOKUP_FAILED = "failed to load product"
MSG_NO_PRODUCT = "load a product first"
MSG_ITEM_ADDED = "item added"
MSG_CART_EMPTY = "cart is empty"
MSG_PURCHASED = "purchase completed"
MSG_CHECKOUT_FAILED = "checkout failed"
MSG_CHECKOUT_ERROR = "error during checkout"

ERROR_MESSAGES = frozenset([
    MSG_INVALID_CODE,
    MSG_NOT_FOUND,
    MSG_LOOKUP_FAILED,
    MSG_NO_PRODUCT,
    MSG_CART_EMPTY,
    MSG_CHECKOUT_FAILED,
    MSG_CHECKOUT_ERROR,
])


def is_error_message(message):
    """Failure, absence and emptiness messages render as errors; the rest are informational."""
    return message in ERROR_MESSAGES


class CartController(QObject):
    """Owns one checkout session and every transition on it.

    The presentation layer reads ``state`` (or the convenience properties)
    and re-renders on ``state_changed``. ``receipt_ready`` carries the
    Receipt of each completed purchase.
    """

    state_changed = pyqtSignal()
    receipt_ready = pyqtSignal(object)

    def __init__(self, catalog, transactions, settings=None, parent=None):
        super().__init__(parent)
        self.catalog = catalog
        self.transactions = transactions
        self.settings = settings or Settings()
        self._state = SessionState()

    # --- READ-ONLY VIEW ---
    @property
    def state(self):
        return self._state

    @property
    def code_input(self):
        return self._state.code_input

    @property
    def pending_product(self):
        return self._state.pending_product

    @property
    def cart(self):
        return self._state.cart

    @property
    def status_message(self):
        return self._state.status_message

    @property
    def busy(self):
        return self._state.busy

    @property
    def last_error(self):
        return self._state.last_error

    @property
    def last_receipt(self):
        return self._state.last_receipt

    # --- TOTALS ---
    def compute_subtotal(self):
        return self._state.cart.subtotal

    def compute_tax(self, subtotal):
        return compute_tax(subtotal, self.settings.tax_rate)

    def totals(self):
        subtotal = self.compute_subtotal()
        tax = self.compute_tax(subtotal)
        return {'subtotal': subtotal, 'tax': tax, 'total': subtotal + tax}

    # --- INPUT ---
    def set_code_input(self, text):
        self._state.code_input = (text or "")[:CODE_LENGTH]
        self.state_changed.emit()

    def validate_code(self, value):
        return validate_code(value)

    # --- LOOKUP ---
    def lookup_product(self, code=None):
        """Resolve a code into the pending product slot. Returns the product or None."""
        state = self._state
        if state.busy:
            logger.info("lookup ignored while another request is in flight")
            return None

        if code is None:
            code = state.code_input
        result = validate_code(code)
        if not result.ok:
            self._fail(ValidationError(result.message), result.message)
            return None

        state.status_message = ""
        state.last_error = None
        with self._collaborator_call():
            try:
                product = self.catalog.get_by_code(code)
            except NotFoundError as e:
                logger.warning("lookup %s: %s", code, e)
                self._set_outcome(None, MSG_NOT_FOUND, e)
            except TransportError as e:
                logger.warning("lookup %s failed: %s", code, e)
                self._set_outcome(None, MSG_LOOKUP_FAILED, e)
            except Exception as e:
                logger.exception("unexpected error while looking up %s", code)
                self._set_outcome(None, MSG_LOOKUP_FAILED, TransportError(str(e)))
            else:
                logger.info("loaded %s (%s) at %d", product.name, product.code, product.unit_price)
                self._set_outcome(product, "", None)
        return state.pending_product

    def _set_outcome(self, product, message, error):
        # product and message are always written together so they never disagree
        self._state.pending_product = product
        self._state.status_message = message
        self._state.last_error = error

    # --- CART LOGIC ---
    def add_to_cart(self):
        state = self._state
        product = state.pending_product
        if product is None:
            self._fail(ValidationError(MSG_NO_PRODUCT), MSG_NO_PRODUCT)
            return

        line = state.cart.add(product)
        logger.info("added %s, quantity now %d", product.name, line.quantity)
        state.status_message = MSG_ITEM_ADDED
        state.last_error = None
        # the lookup slot has to be reloaded for the next item
        state.pending_product = None
        state.code_input = ""
        self.state_changed.emit()

    def remove_from_cart(self, line_index):
        line = self._state.cart.remove_at(line_index)
        logger.info("removed %s x%d", line.product.name, line.quantity)
        self.state_changed.emit()

    # --- CHECKOUT ---
    def checkout(self):
        """Submit the cart. Returns the Receipt, or None when nothing was purchased."""
        state = self._state
        if state.busy:
            logger.info("checkout ignored while another request is in flight")
            return None
        if len(state.cart) == 0:
            self._fail(ValidationError(MSG_CART_EMPTY), MSG_CART_EMPTY)
            return None

        receipt = None
        state.status_message = ""
        state.last_error = None
        with self._collaborator_call():
            units = state.cart.expand()
            try:
                result = self.transactions.submit(units)
            except CheckoutRejectedError as e:
                logger.warning("checkout rejected: %s", e)
                state.status_message = MSG_CHECKOUT_FAILED
                state.last_error = e
            except TransportError as e:
                logger.warning("checkout failed: %s", e)
                state.status_message = MSG_CHECKOUT_ERROR
                state.last_error = e
            except Exception as e:
                logger.exception("unexpected error during checkout")
                state.status_message = MSG_CHECKOUT_ERROR
                state.last_error = TransportError(str(e))
            else:
                receipt = self._complete(result)
                logger.info("purchase %s completed: %d units, total %d",
                            receipt.number, len(units), receipt.total)

        if receipt is not None:
            self.receipt_ready.emit(receipt)
        return receipt

    def _complete(self, result):
        state = self._state
        # a zero or negative server total on a non-empty cart falls back to the local figure
        server_total = bool(result.total_amount) and result.total_amount > 0
        subtotal = result.total_amount if server_total else state.cart.subtotal
        receipt = Receipt.from_cart(
            state.cart,
            subtotal,
            self.compute_tax(subtotal),
            transaction_id=result.transaction_id,
            server_total=server_total,
        )
        state.last_receipt = receipt
        state.cart.clear()
        state.pending_product = None
        state.code_input = ""
        state.status_message = MSG_PURCHASED
        return receipt

    # --- HELPERS ---
    def _fail(self, error, message):
        logger.info("rejected: %s", message)
        self._state.status_message = message
        self._state.last_error = error
        self.state_changed.emit()

    @contextmanager
    def _collaborator_call(self):
        """Hold the busy flag for the duration of one catalog/backend request."""
        self._state.busy = True
        self.state_changed.emit()
        try:
            yield
        finally:
            self._state.busy = False
            self.state_changed.emit()
