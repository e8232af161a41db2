"""
Graphico Brief — Configuration
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── API Keys ──────────────────────────────────────────────────────────
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")

# ── Model Config ──────────────────────────────────────────────────────
GEMINI_MODEL = os.getenv("GRAPHICO_GEMINI_MODEL", "gemini-2.5-flash")
BRIEF_TEMPERATURE = 0.95            # Variety over determinism
MAX_RETRIES = 3                     # Attempts on 503 / overloaded
RETRY_DELAY_SECONDS = 5

# ── Image assets ──────────────────────────────────────────────────────
IMAGE_BASE_URL = "https://image.pollinations.ai/prompt/"
IMAGE_MODEL = "flux"
LANDSCAPE_FRAME = (1280, 720)
SQUARE_FRAME = (1024, 1024)
STOCK_SEARCH_URL = "https://unsplash.com/s/photos/"
DOWNLOAD_TIMEOUT = 60
MAX_UPLOAD_EDGE = 2048              # Longest edge sent to Gemini

# ── Paths ─────────────────────────────────────────────────────────────
DATA_DIR = Path(os.getenv("GRAPHICO_DATA_DIR", "data"))
STORE_FILE = DATA_DIR / "local_storage.json"
CHAT_STORE_DIR = DATA_DIR / "chats"
ASSET_DIR = DATA_DIR / "assets"

# ── Telegram ──────────────────────────────────────────────────────────
# Comma-separated whitelist; empty = allow all chats
TELEGRAM_ALLOWED_CHAT_IDS = {
    int(cid) for cid in os.getenv("TELEGRAM_ALLOWED_CHAT_IDS", "").split(",")
    if cid.strip().lstrip("-").isdigit()
}
