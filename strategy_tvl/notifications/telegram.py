"""Telegram delivery of TVL run summaries."""
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

API_URL = "https://api.telegram.org/bot{token}/sendMessage"
MAX_MESSAGE_LENGTH = 4096


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """Split ``text`` into Telegram-sized chunks on line boundaries.

    A single line longer than ``limit`` is cut into ``limit``-sized pieces.
    """
    chunks: list[str] = []
    current = ""
    for line in text.splitlines():
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


class TelegramNotifier:
    """Post run reports to a chat through the log bot."""

    def __init__(self, config: TelegramConfig) -> None:
        self._token = config.log_bot_token
        self._chat_id = config.chat_id

    async def send_log(self, message: str, silent: bool = True) -> bool:
        """Send ``message``, split across several posts when too long.

        Returns True only when every chunk was accepted.
        """
        if not self._token or not self._chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        chunks = split_message(message)
        if not chunks:
            return False

        url = API_URL.format(token=self._token)
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            for index, chunk in enumerate(chunks, start=1):
                payload = {
                    "chat_id": self._chat_id,
                    "text": chunk,
                    "disable_notification": silent,
                }
                async with session.post(url, json=payload) as response:
                    if response.status != 200:
                        logger.error(
                            "Telegram rejected chunk %d/%d: HTTP %s",
                            index, len(chunks), response.status,
                        )
                        return False

        logger.info("Telegram report sent (%d message(s))", len(chunks))
        return True
