# flatshop/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

DATA_DIR = os.getenv("FLATSHOP_DATA_DIR", "./data")

LOCK_TTL_SECONDS = int(os.getenv("LOCK_TTL_SECONDS", 30))
LOCK_RETRY_ATTEMPTS = int(os.getenv("LOCK_RETRY_ATTEMPTS", 20))
LOCK_RETRY_MAX_WAIT = float(os.getenv("LOCK_RETRY_MAX_WAIT", 0.5))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))
