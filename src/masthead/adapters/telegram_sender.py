"""Telegram delivery for editor summaries."""

import logging

import telegramify_markdown
from telegram import Bot
from telegram.error import TelegramError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4000


def split_message(text: str, size: int = CHUNK_SIZE) -> list[str]:
    """Split text into chunks Telegram will accept."""
    return [text[i : i + size] for i in range(0, len(text), size)] or [""]


class TelegramSender:
    """Sends markdown messages to editor chats, converting to MarkdownV2."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_markdown(self, chat_id: int, text: str) -> None:
        converted = telegramify_markdown.markdownify(text)
        for chunk in split_message(converted):
            await self.bot.send_message(chat_id=chat_id, text=chunk, parse_mode="MarkdownV2")

    async def broadcast(self, chat_ids: list[int], text: str) -> int:
        """Send to every chat. Returns how many succeeded; failures are logged."""
        delivered = 0
        for chat_id in chat_ids:
            try:
                await self.send_markdown(chat_id, text)
                delivered += 1
            except TelegramError as e:
                logger.error(f"Failed to send summary to chat {chat_id}: {e}")
        return delivered
