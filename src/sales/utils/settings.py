"""Application settings, read from the environment once at import time."""

import os

# Overrides the database of domain.toml when set (sqlite:///... or postgresql://...)
DATABASE_URL = os.getenv("SCOUTSHOP_DATABASE_URL")

# Public base URL, used for confirmation links and the staff scan payload
SITE_URL = os.getenv("SCOUTSHOP_SITE_URL", "http://localhost:8000").rstrip("/")

# Shared secret expected in the x-admin-key header of back-office requests
ADMIN_KEY = os.getenv("SCOUTSHOP_ADMIN_KEY")

TIMEZONE = os.getenv("SCOUTSHOP_TIMEZONE", "Europe/Brussels")

ORGANIZER_NAME = os.getenv("SCOUTSHOP_ORGANIZER_NAME", "Unité scoute")
ORGANIZER_EMAIL = os.getenv("SCOUTSHOP_ORGANIZER_EMAIL", "contact@example.org")

CORS_ORIGINS = [origin.strip() for origin in os.getenv("SCOUTSHOP_CORS_ORIGINS", "*").split(",") if origin.strip()]
