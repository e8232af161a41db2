#!/usr/bin/env python3
"""
run_bot.py — Graphico Brief Telegram Bot entry point.

Usage:
    python run_bot.py

Required env vars (in .env):
    GEMINI_API_KEY=...
    TELEGRAM_BOT_TOKEN=...

Optional:
    TELEGRAM_ALLOWED_CHAT_IDS=123456,789012   # whitelist (leave empty = allow all)
    GRAPHICO_DATA_DIR=data                    # per-chat stores and downloaded assets
"""

from __future__ import annotations

import logging
import sys

from graphico.settings import CHAT_STORE_DIR, GEMINI_API_KEY, GEMINI_MODEL, TELEGRAM_BOT_TOKEN

logging.basicConfig(
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    level=logging.INFO,
)
# httpx logs every Telegram poll at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def main() -> None:
    missing = [name for name, value in (
        ("TELEGRAM_BOT_TOKEN", TELEGRAM_BOT_TOKEN),
        ("GEMINI_API_KEY", GEMINI_API_KEY),
    ) if not value]
    if missing:
        logger.error(f"{', '.join(missing)} not set in environment / .env")
        sys.exit(1)

    CHAT_STORE_DIR.mkdir(parents=True, exist_ok=True)
    logger.info(f"Starting Graphico Brief Bot (model {GEMINI_MODEL}, chat stores in {CHAT_STORE_DIR})")
    logger.info("Polling for updates, press Ctrl+C to stop")

    from bot.telegram_bot import build_app
    app = build_app(token=TELEGRAM_BOT_TOKEN)
    app.run_polling(drop_pending_updates=True)


if __name__ == "__main__":
    main()
