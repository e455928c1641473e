# listings/token_record.py
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Non-numeric quote value ignored: {value!r}")
        return None
    if not math.isfinite(number):
        logger.debug(f"Non-finite quote value ignored: {value!r}")
        return None
    return number


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _contract_address(value: Any) -> Optional[str]:
    # some CMC payloads carry a list of {"contract_address": ..., "platform": {...}}
    if isinstance(value, list):
        for entry in value:
            if isinstance(entry, dict) and _to_text(entry.get("contract_address")):
                return _to_text(entry.get("contract_address"))
        return None
    return _to_text(value)


def parse_date_added(value: Any) -> Optional[datetime]:
    """Parses CMC's ISO-8601 `date_added` ("2024-05-01T12:34:56.000Z") as UTC."""
    if not value:
        return None

    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"⚠️ Could not parse date_added: {value}")
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class TokenRecord:
    """Snapshot of the newest CoinMarketCap listing taken by a single fetch."""

    id: int
    name: str
    symbol: str
    price_usd: Optional[float] = None
    volume_24h_usd: Optional[float] = None
    date_added: Optional[datetime] = None
    platform_name: Optional[str] = None
    token_address: Optional[str] = None

    @property
    def has_full_info(self) -> bool:
        return self.token_address is not None and self.platform_name is not None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "TokenRecord":
        """
        Builds a record from one element of the listings `data` array.

        The address comes from `platform.token_address` and falls back to a
        top-level `contract_address`. `platform` is null for coins that live
        on their own chain.
        """
        quote = (payload.get("quote") or {}).get("USD") or {}
        platform = payload.get("platform") or {}

        token_address = _to_text(platform.get("token_address")) or _contract_address(payload.get("contract_address"))

        return cls(
            id=int(payload["id"]),
            name=str(payload.get("name") or ""),
            symbol=str(payload.get("symbol") or ""),
            price_usd=_to_float(quote.get("price")),
            volume_24h_usd=_to_float(quote.get("volume_24h")),
            date_added=parse_date_added(payload.get("date_added")),
            platform_name=_to_text(platform.get("name")),
            token_address=token_address,
        )
