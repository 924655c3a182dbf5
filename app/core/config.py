"""
Basic configuration

- CORS origins for development and production
- Storage backend selection and data directory
- Supports environment variables for deployment overrides
"""
import os

# Default localhost origins for development
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8080",
]

# Get additional CORS origins from environment variable
ADDITIONAL_CORS_ORIGINS = os.getenv("CORS_ORIGINS", "").split(",") if os.getenv("CORS_ORIGINS") else []

# Filter out empty strings from split
ADDITIONAL_CORS_ORIGINS = [origin.strip() for origin in ADDITIONAL_CORS_ORIGINS if origin.strip()]

# Combine default and additional origins
CORS_ORIGINS = DEFAULT_CORS_ORIGINS + ADDITIONAL_CORS_ORIGINS

# "json" persists collections under DATA_DIR, "memory" keeps them in-process only
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "json").strip().lower()
DATA_DIR = os.getenv("DATA_DIR", "data")
CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", "60"))

# Identity stamped on records when the caller does not supply one
DEFAULT_ASHA_WORKER = os.getenv("DEFAULT_ASHA_WORKER", "web_app")

NOTIFICATION_HISTORY = int(os.getenv("NOTIFICATION_HISTORY", "50"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
