"""
Relay Catalog

Fetches the Mullvad relay list and answers questions about it.
"""

import asyncio
import json
import logging
from typing import List, Tuple

import aiohttp

from relay import Relay, decode_relays

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """The relay catalog could not be fetched or decoded."""


class RelayCatalog:
    """Client for the public relay list API."""

    # Relay family is one of openvpn, wireguard, bridge, all
    RELAYS_URL = "https://api.mullvad.net/www/relays/{relay_family}/"

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    def url_for(self, relay_family: str) -> str:
        return self.RELAYS_URL.format(relay_family=relay_family)

    async def _fetch_json(self, url: str):
        client_timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            async with session.get(url) as response:
                response.raise_for_status()
                body = await response.text()
        return json.loads(body)

    async def fetch(self, relay_family: str = "all") -> List[Relay]:
        """
        Fetch and decode the relay list.

        Args:
            relay_family: Relay family, forwarded verbatim to the API

        Returns:
            Relays in catalog order

        Raises:
            CatalogError: On transport, HTTP status or decode failure
        """
        url = self.url_for(relay_family)
        logger.info("Fetching relay catalog from %s", url)
        try:
            data = await self._fetch_json(url)
        except aiohttp.ClientResponseError as e:
            raise CatalogError(f"Failed to fetch relay list: HTTP {e.status}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise CatalogError(f"Failed to fetch relay list: {str(e) or type(e).__name__}") from e
        except ValueError as e:
            raise CatalogError(f"Relay list is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise CatalogError(f"Relay list must be a JSON array, got {type(data).__name__}")

        try:
            relays = decode_relays(data)
        except ValueError as e:
            raise CatalogError(f"Could not decode relay list: {e}") from e

        logger.info("Catalog contains %d relays", len(relays))
        return relays


def list_countries(relays: List[Relay]) -> List[Tuple[str, str]]:
    """
    Get the distinct countries in a catalog.

    Returns:
        (country_code, country_name) pairs sorted by country name
    """
    countries = {(r.country_code, r.country_name) for r in relays}
    return sorted(countries, key=lambda c: (c[1], c[0]))
