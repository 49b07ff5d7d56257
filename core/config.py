"""Application configuration read from the environment.

Values are loaded once at import time. A `.env` file in the working
directory is honoured through python-dotenv so local development does not
need exported variables.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Read/Write partitioning pattern: point READ_DATABASE_URL at a replica in
# production. For SQLite both default to the same file.
WRITE_DATABASE_URL = os.getenv("WRITE_DATABASE_URL", "sqlite:///btf.db")
READ_DATABASE_URL = os.getenv("READ_DATABASE_URL", WRITE_DATABASE_URL)

SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", "change-me-in-env")
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "btf_session")

# OpenAI-compatible chat completion endpoint used for recipe/grocery text
GENERATION_API_URL = os.getenv("GENERATION_API_URL", "https://api.x.ai/v1")
GENERATION_API_KEY = os.getenv("GENERATION_API_KEY")
GENERATION_MODEL = os.getenv("GENERATION_MODEL", "grok-3-mini-fast")
GENERATION_TIMEOUT_SECONDS = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "60"))
GENERATION_TEMPERATURE = float(os.getenv("GENERATION_TEMPERATURE", "0.7"))

AUTH_CODE_TTL_MINUTES = int(os.getenv("AUTH_CODE_TTL_MINUTES", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.path.dirname(__file__), "..", "logs"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
