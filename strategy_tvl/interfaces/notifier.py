"""Report delivery channel."""
from typing import Protocol


class Notifier(Protocol):
    """Somewhere a finished TVL report can be posted."""

    async def send_log(self, message: str, silent: bool = True) -> bool:
        """Deliver ``message``; False when the channel refused or is unset."""
        ...
