# app/services/plaid_service.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

PLAID_COUNTRY_CODES = ["US"]
PLAID_PRODUCTS = ["transactions"]


class PlaidError(Exception):
    """A Plaid API call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 error_code: Optional[str] = None):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class PlaidNotConfiguredError(PlaidError):
    pass


class PlaidService:
    def __init__(self, client_id: str, secret: str, base_url: str,
                 client_name: str = "Stackr", transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: float = 30.0):
        self.client_id = client_id
        self.secret = secret
        self.base_url = base_url.rstrip("/")
        self.client_name = client_name
        self._transport = transport
        self._timeout = timeout

    @classmethod
    def from_settings(cls) -> "PlaidService":
        return cls(
            settings.PLAID_CLIENT_ID,
            settings.PLAID_SECRET,
            settings.plaid_base_url,
            client_name=settings.PLAID_CLIENT_NAME,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.secret)

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.is_configured:
            raise PlaidNotConfiguredError("Plaid credentials are not configured")

        body = {"client_id": self.client_id, "secret": self.secret, **payload}
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self._timeout,
                                         transport=self._transport) as client:
                response = await client.post(path, json=body)
        except httpx.RequestError as e:
            logger.error(f"❌ Plaid request to {path} failed: {e}")
            raise PlaidError(f"Could not reach Plaid: {e}")

        data = response.json() if response.content else {}
        if response.status_code != 200:
            message = data.get("error_message") or f"HTTP {response.status_code}"
            logger.error(f"❌ Plaid {path} error: {data.get('error_code')} {message}")
            raise PlaidError(message, status_code=response.status_code, error_code=data.get("error_code"))
        return data

    async def create_link_token(self, user_id: str) -> Dict[str, Any]:
        data = await self._post("/link/token/create", {
            "user": {"client_user_id": user_id},
            "client_name": self.client_name,
            "products": PLAID_PRODUCTS,
            "country_codes": PLAID_COUNTRY_CODES,
            "language": "en",
        })
        return {"link_token": data["link_token"], "expiration": data.get("expiration")}

    async def exchange_public_token(self, public_token: str) -> Dict[str, str]:
        data = await self._post("/item/public_token/exchange", {"public_token": public_token})
        return {"access_token": data["access_token"], "item_id": data["item_id"]}

    async def get_accounts(self, access_token: str) -> List[Dict[str, Any]]:
        data = await self._post("/accounts/get", {"access_token": access_token})
        return data.get("accounts", [])

    async def sync_transactions(self, access_token: str, cursor: Optional[str] = None) -> Dict[str, Any]:
        """
        Page through /transactions/sync until has_more is false.
        Returns everything added, modified and removed since the cursor,
        plus the cursor to resume from next time.
        """
        added: List[Dict[str, Any]] = []
        modified: List[Dict[str, Any]] = []
        removed: List[Dict[str, Any]] = []

        has_more = True
        while has_more:
            payload: Dict[str, Any] = {"access_token": access_token}
            if cursor:
                payload["cursor"] = cursor
            data = await self._post("/transactions/sync", payload)

            added.extend(data.get("added", []))
            modified.extend(data.get("modified", []))
            removed.extend(data.get("removed", []))
            has_more = data.get("has_more", False)
            cursor = data.get("next_cursor")

        logger.info(f"Plaid sync: {len(added)} added, {len(modified)} modified, {len(removed)} removed")
        return {"added": added, "modified": modified, "removed": removed, "next_cursor": cursor}

    async def remove_item(self, access_token: str) -> None:
        await self._post("/item/remove", {"access_token": access_token})


def parse_plaid_date(value: Optional[str]) -> datetime:
    if not value:
        return datetime.utcnow()
    return datetime.strptime(value[:10], "%Y-%m-%d")


def transaction_fields(txn: Dict[str, Any]) -> Dict[str, Any]:
    """Columns of a BankTransaction taken from a Plaid transaction object."""
    categories = txn.get("category") or []
    pfc = txn.get("personal_finance_category") or {}
    return {
        "amount": float(txn.get("amount", 0.0)),
        "date": parse_plaid_date(txn.get("date")),
        "name": txn.get("name") or txn.get("merchant_name") or "Transaction",
        "merchant_name": txn.get("merchant_name"),
        "category": pfc.get("primary") or (categories[0] if categories else None),
        "pending": bool(txn.get("pending", False)),
        "details": {
            "payment_channel": txn.get("payment_channel"),
            "category": categories,
            "iso_currency_code": txn.get("iso_currency_code"),
        },
    }


plaid_service = PlaidService.from_settings()


def get_plaid_service() -> PlaidService:
    return plaid_service
