from pathlib import Path
import os

from dotenv import load_dotenv

# Load environment variables from repo root and package parent .env (if present).
REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(REPO_ROOT / ".env")
load_dotenv(Path(__file__).resolve().parent / ".env")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tasktracker.db")

SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
TOKEN_ALGORITHM = os.getenv("TOKEN_ALGORITHM", "HS256")
TOKEN_ISSUER = os.getenv("TOKEN_ISSUER", "tasktracker-issuer")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(24 * 60)))

# "sha256" keeps the legacy unsalted digests; "bcrypt" hashes new passwords with bcrypt
PASSWORD_HASH_SCHEME = os.getenv("PASSWORD_HASH_SCHEME", "sha256").lower()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE") or None

_cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
CORS_ORIGINS = [origin.strip() for origin in _cors_origins.split(",") if origin.strip()]
