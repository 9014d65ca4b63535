import logging
from collections import namedtuple

import requests

from errors import CheckoutRejectedError, NotFoundError, TransportError
from models import Product

logger = logging.getLogger(__name__)

SubmitResult = namedtuple("SubmitResult", ["total_amount", "transaction_id"])


class _HttpService:
    def __init__(self, settings, session=None):
        self.base_url = settings.api_base_url
        self.timeout = settings.http_timeout
        self.session = session or requests.Session()

    def _decode(self, response):
        try:
            return response.json()
        except ValueError:
            raise TransportError(f"non-JSON response from {response.url}")


#Product lookup service
class CatalogService(_HttpService):

    def get_by_code(self, code):
        url = f"{self.base_url}/api/products/code/{code}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"catalog unreachable: {e}") from e

        if not response.ok:
            # the catalog answers 404 (or any other failure status) for unknown codes
            raise NotFoundError(f"code {code} not found (HTTP {response.status_code})")

        product = Product.from_payload(self._decode(response))
        logger.debug("catalog resolved %s to %r", code, product)
        return product


#Transaction sink service
class TransactionService(_HttpService):
    def __init__(self, settings, session=None):
        super().__init__(settings, session)
        self.operator_id = settings.operator_id
        self.store_id = settings.store_id
        self.terminal_id = settings.terminal_id

    def build_payload(self, units):
        """Transaction body with one detail record per unit sold."""
        return {
            "emp_cd": self.operator_id,
            "store_cd": self.store_id,
            "pos_no": self.terminal_id,
            "details": [
                {
                    "prd_id": p.id,
                    "prd_code": p.code,
                    "prd_name": p.name,
                    "prd_price": p.unit_price,
                }
                for p in units
            ],
        }

    def submit(self, units):
        url = f"{self.base_url}/api/transactions"
        payload = self.build_payload(units)
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"transaction backend unreachable: {e}") from e

        if not response.ok:
            raise CheckoutRejectedError(
                f"transaction rejected (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        body = self._decode(response)
        if not isinstance(body, dict):
            body = {}

        total = body.get("total_amount")
        if total is not None and (isinstance(total, bool) or not isinstance(total, int)):
            logger.warning("ignoring non-integer total_amount %r from backend", total)
            total = None
        elif total is not None and total < 0:
            logger.warning("ignoring negative total_amount %r from backend", total)
            total = None

        return SubmitResult(total, body.get("trd_id"))
