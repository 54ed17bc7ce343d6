import os
from pathlib import Path

from dotenv import load_dotenv
# Load .env that sits in the same folder as this file
load_dotenv(dotenv_path=Path(__file__).with_name(".env"))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))

LOG_DIR = Path(os.getenv("LOG_DIR", "."))
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "1").strip().lower() not in ("0", "false", "no", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

EVENT_QUEUE_SIZE = int(os.getenv("EVENT_QUEUE_SIZE", "100"))
KEEPALIVE_SECONDS = float(os.getenv("KEEPALIVE_SECONDS", "60"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
STATIC_DIR = Path(os.getenv("STATIC_DIR", str(Path(__file__).with_name("frontend"))))
