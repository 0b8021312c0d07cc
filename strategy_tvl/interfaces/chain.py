"""Chain client protocol — blockchain RPC abstraction."""
from typing import Any, Protocol


class ChainClient(Protocol):
    """Abstract interface for blockchain RPC interactions."""

    async def query_events(
        self,
        event_type: str,
        cursor: dict[str, Any] | None = None,
        limit: int = 50,
        descending: bool = True,
    ) -> dict[str, Any]: ...

    async def get_object(
        self,
        object_id: str,
        show_content: bool = True,
        show_owner: bool = True,
        show_type: bool = True,
    ) -> dict[str, Any]: ...
