import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter

from .log import mask_code
from .records import PurchaseRecord
from .results import ErrorKind, Result

logger = logging.getLogger(__name__)

API_BASE = "https://api.envato.com"
VERIFY_PATH = "/v1/market/private/user/verify-purchase:{code}.json"
ITEM_PATH = "/v4/market/catalog/item"
USER_PATH = "/v1/market/user:{username}.json"

TIMEOUT = (6, 15)  # (connect, read)


class EnvatoClient:
    """Thin client for the Envato Market API, authenticated with a personal token."""

    def __init__(self, token: str, timeout=TIMEOUT, session: Optional[requests.Session] = None,
                 base_url: str = API_BASE):
        self.token = token
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.session = session or self._session()

    @staticmethod
    def _session() -> requests.Session:
        s = requests.Session()
        # pooled connections, no retries
        adapter = HTTPAdapter(max_retries=0, pool_connections=8, pool_maxsize=8)
        s.mount("https://", adapter)
        s.mount("http://", adapter)
        return s

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.token}", "Accept": "application/json"}
        r = self.session.get(url, headers=headers, params=params, timeout=self.timeout)
        r.raise_for_status()
        data = r.json()
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return data

    def verify_purchase(self, code: str, details: bool = False) -> Result:
        """Check a purchase code against the marketplace.

        Returns ``Result.success(True)`` for a valid code, or the full
        :class:`PurchaseRecord` when ``details`` is set. Failures are
        ``EMPTY_CODE``, ``INVALID_CODE`` or ``TRANSPORT_FAILURE``.
        """
        if not code or not code.strip():
            return Result.failure(ErrorKind.EMPTY_CODE)

        path = VERIFY_PATH.format(code=quote(code, safe=""))
        try:
            body = self._get(path)
        except (requests.RequestException, ValueError) as e:
            logger.warning("verify %s failed: %r", mask_code(code), e)
            return Result.failure(ErrorKind.TRANSPORT_FAILURE)

        purchase = body.get("verify-purchase")
        if not isinstance(purchase, dict) or purchase.get("item_id") is None:
            logger.info("verify %s: no matching sale", mask_code(code))
            return Result.failure(ErrorKind.INVALID_CODE)

        if not details:
            return Result.success(True)

        record = PurchaseRecord.from_response(code, purchase)
        if record is None:
            logger.warning("verify %s: unreadable supported_until %r", mask_code(code),
                           purchase.get("supported_until"))
            return Result.failure(ErrorKind.TRANSPORT_FAILURE)
        return Result.success(record)

    def item_info(self, item_id) -> Optional[Dict[str, Any]]:
        try:
            return self._get(ITEM_PATH, params={"id": item_id})
        except (requests.RequestException, ValueError) as e:
            logger.warning("item lookup %s failed: %r", item_id, e)
            return None

    def user_info(self, username: str) -> Optional[Dict[str, Any]]:
        if not username:
            return None
        try:
            body = self._get(USER_PATH.format(username=quote(username, safe="")))
        except (requests.RequestException, ValueError) as e:
            logger.warning("user lookup %s failed: %r", username, e)
            return None
        user = body.get("user")
        return user if isinstance(user, dict) else None
