#!/usr/bin/env python3
"""
Run the Telegram CTO Finder bot with long polling.

Reads TELEGRAM_BOT_TOKEN and the search backend keys from the environment
(or .env). The bot keeps its own in-process search history.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from app.bot.conversation import ConversationFlow, SessionStore, build_steps
from app.bot.telegram import ProfileSearchBot, TelegramClient
from app.config import get_settings
from app.services.search_history import SearchHistory


async def _main() -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    # httpx logs full request URLs at INFO, and the bot token is part of the URL.
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if not settings.telegram_bot_token:
        print("TELEGRAM_BOT_TOKEN is not set", file=sys.stderr)
        return 1

    flow = ConversationFlow(
        build_steps(include_job_title=settings.telegram_include_job_title_step),
        SessionStore(ttl_seconds=settings.bot_session_ttl_seconds),
    )
    client = TelegramClient(settings.telegram_bot_token)
    bot = ProfileSearchBot(client, flow, history=SearchHistory(max_records=settings.search_history_limit))

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            pass

    try:
        await bot.run_polling(stop=stop)
    finally:
        await client.aclose()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(_main()))
