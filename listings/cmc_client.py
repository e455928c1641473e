# listings/cmc_client.py
import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from listings.token_record import TokenRecord
from utils.error_handling import ListingFetchError

logger = logging.getLogger(__name__)


class CoinMarketCapClient:
    """
    CoinMarketCap Pro API: newest listing only.
    Docs: https://coinmarketcap.com/api/documentation/v1/#operation/getV1CryptocurrencyListingsLatest
    """
    BASE_URL = "https://pro-api.coinmarketcap.com"
    LISTINGS_PATH = "/v1/cryptocurrency/listings/latest"

    def __init__(self, api_key: str, base_url: str = BASE_URL, timeout: float = 15):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"X-CMC_PRO_API_KEY": self.api_key, "Accept": "application/json"},
                timeout=self.timeout,
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def _request_latest(self) -> List[Dict[str, Any]]:
        params = {
            "start": 1,
            "limit": 1,
            "sort": "date_added",
            "sort_dir": "desc",
            "convert": "USD",
        }

        session = await self._get_session()
        async with session.get(self.base_url + self.LISTINGS_PATH, params=params) as resp:
            if resp.status != 200:
                body = await resp.text()
                raise ListingFetchError(f"HTTP {resp.status}: {body[:200]}")

            try:
                payload = await resp.json(content_type=None)
            except ValueError as e:
                raise ListingFetchError(f"invalid JSON: {e}") from e

        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise ListingFetchError("response has no 'data' list")

        return payload["data"]

    async def fetch_latest(self) -> Optional[TokenRecord]:
        """
        Returns the most recently added token, or None when nothing usable came back.
        Never raises for network/API problems: the next scheduled tick is the retry.
        """
        try:
            listings = await self._request_latest()
        except ListingFetchError as e:
            logger.error(f"❌ CMC API error: {e}")
            return None
        except asyncio.TimeoutError:
            logger.warning("⚠️ Timeout while fetching latest CMC listing")
            return None
        except aiohttp.ClientError as e:
            logger.error(f"❌ Failed to fetch from CMC: {type(e).__name__}: {e}")
            return None

        if not listings:
            logger.info("📭 CMC returned no listings")
            return None

        try:
            return TokenRecord.from_api(listings[0])
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"❌ Malformed CMC listing skipped: {e}")
            return None
