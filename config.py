import os
from decimal import Decimal, InvalidOperation

# Defaults for a single till. Every value can be overridden through the
# environment so the same build runs against any backend / store.
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

API_BASE_URL = "http://localhost:8000"
HTTP_TIMEOUT = 10.0
TAX_RATE = Decimal("0.10")
OPERATOR_ID = "9999999999"
STORE_ID = "30"
TERMINAL_ID = "90"
RECEIPTS_DIR = os.path.join(BASE_DIR, "receipts")
LOG_LEVEL = "INFO"


class Settings:
    def __init__(self, api_base_url=API_BASE_URL, http_timeout=HTTP_TIMEOUT,
                 tax_rate=TAX_RATE, operator_id=OPERATOR_ID, store_id=STORE_ID,
                 terminal_id=TERMINAL_ID, receipts_dir=RECEIPTS_DIR,
                 log_level=LOG_LEVEL):
        self.api_base_url = api_base_url.rstrip("/")
        self.http_timeout = float(http_timeout)
        self.tax_rate = _to_rate(tax_rate)
        self.operator_id = operator_id
        self.store_id = store_id
        self.terminal_id = terminal_id
        self.receipts_dir = receipts_dir
        self.log_level = log_level.upper()

    @classmethod
    def from_env(cls, environ=None):
        """Build settings from ``POS_*`` environment variables, falling back to the defaults."""
        env = os.environ if environ is None else environ
        timeout = env.get("POS_HTTP_TIMEOUT", HTTP_TIMEOUT)
        try:
            timeout = float(timeout)
        except ValueError:
            raise ValueError(f"POS_HTTP_TIMEOUT must be a number, got {timeout!r}")
        if timeout <= 0:
            raise ValueError("POS_HTTP_TIMEOUT must be positive")

        return cls(
            api_base_url=env.get("POS_API_URL", API_BASE_URL),
            http_timeout=timeout,
            tax_rate=env.get("POS_TAX_RATE", TAX_RATE),
            operator_id=env.get("POS_OPERATOR_ID", OPERATOR_ID),
            store_id=env.get("POS_STORE_ID", STORE_ID),
            terminal_id=env.get("POS_TERMINAL_ID", TERMINAL_ID),
            receipts_dir=env.get("POS_RECEIPTS_DIR", RECEIPTS_DIR),
            log_level=env.get("POS_LOG_LEVEL", LOG_LEVEL),
        )

    @property
    def tax_percent(self):
        return format((self.tax_rate * 100).normalize(), "f")


def _to_rate(value):
    try:
        rate = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"tax rate must be a decimal number, got {value!r}")
    if not rate.is_finite() or rate < 0 or rate >= 1:
        raise ValueError(f"tax rate must be in [0, 1), got {value!r}")
    return rate
