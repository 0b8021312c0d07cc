"""Sui JSON-RPC client with endpoint rotation."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig

logger = logging.getLogger(__name__)


class SuiClient:
    """SUI blockchain RPC client with automatic endpoint fallback."""

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0
        self._request_id = 0

    async def _post(
        self, session: aiohttp.ClientSession, rpc_url: str, payload: dict[str, Any]
    ) -> Any:
        async with session.post(
            rpc_url,
            json=payload,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            # Public fullnodes answer rate limiting with a non-JSON 429 body.
            if response.status != 200:
                raise RuntimeError(f"HTTP {response.status}")
            body = await response.json()

        if "error" in body:
            raise RuntimeError(f"RPC Error: {body['error']}")
        return body.get("result", {})

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Call ``method``, starting at the last good endpoint and rotating on failure.

        Raises:
            RuntimeError: every endpoint failed for this call.
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        last_error: Exception | None = None

        async with aiohttp.ClientSession(connector=connector) as session:
            for offset in range(len(self.endpoints)):
                rpc_index = (self.current_rpc_index + offset) % len(self.endpoints)
                rpc_url = self.endpoints[rpc_index]
                try:
                    result = await self._post(session, rpc_url, payload)
                except Exception as e:
                    last_error = e
                    logger.warning("%s via %s failed: %s", method, rpc_url, e)
                    continue

                if rpc_index != self.current_rpc_index:
                    logger.info("Switched to RPC endpoint: %s", rpc_url)
                    self.current_rpc_index = rpc_index
                return result

        raise RuntimeError(f"All RPC endpoints failed. Last error: {last_error}")

    async def query_events(
        self,
        event_type: str,
        cursor: dict[str, Any] | None = None,
        limit: int = 50,
        descending: bool = True,
    ) -> dict[str, Any]:
        """Fetch one page of Move events of the given type.

        Returns the raw page: ``{"data": [...], "nextCursor": ..., "hasNextPage": bool}``.
        """
        return await self.rpc_call(
            "suix_queryEvents",
            [{"MoveEventType": event_type}, cursor, limit, descending],
        )

    async def get_object(
        self,
        object_id: str,
        show_content: bool = True,
        show_owner: bool = True,
        show_type: bool = True,
    ) -> dict[str, Any]:
        """Get detailed information about an object.

        A deleted or missing object is not an RPC failure: the response then
        carries an ``error`` entry instead of ``data``.
        """
        return await self.rpc_call(
            "sui_getObject",
            [
                object_id,
                {
                    "showType": show_type,
                    "showContent": show_content,
                    "showOwner": show_owner,
                },
            ],
        )
