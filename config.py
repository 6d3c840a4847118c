"""Centralized configuration for the storefront API."""

import os

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

# Server (uvicorn) settings
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Catalog listing
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

# When true, a brand/category filter that resolves to no documents matches
# nothing instead of being dropped from the query.
STRICT_REFERENCE_FILTERS = os.getenv("STRICT_REFERENCE_FILTERS", "False").lower() == "true"

# Admin surface
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN")
ADMIN_RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("ADMIN_RATE_LIMIT_WINDOW_SECONDS", "300"))
ADMIN_RATE_LIMIT_MAX_REQUESTS = int(os.getenv("ADMIN_RATE_LIMIT_MAX_REQUESTS", "200"))
ADMIN_RATE_LIMIT_MAX_CLIENTS = int(os.getenv("ADMIN_RATE_LIMIT_MAX_CLIENTS", "10000"))
