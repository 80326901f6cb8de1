"""API configuration constants.

Single source of truth for paths and settings used across the API layer.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from .logging import GenerationLogger

load_dotenv()

# Base directories
API_DIR = Path(__file__).parent
PACKAGE_DIR = API_DIR.parent
PROJECT_DIR = PACKAGE_DIR.parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(PROJECT_DIR / "data")))

# Generated and master image storage
ASSETS_DIR = DATA_DIR / "assets"

# Database (unset = in-memory stores)
DATABASE_URL = os.getenv("DATABASE_URL", "")

# Background execution: "local" (asyncio tasks in the API process) or "arq"
JOB_BACKEND = os.getenv("JOB_BACKEND", "local")

# Job manager settings
MAX_CONCURRENT_JOBS = int(os.getenv("MAX_CONCURRENT_JOBS", "2"))

# Stale job cleanup thresholds (minutes)
STALE_PENDING_MINUTES = 5
STALE_PROCESSING_MINUTES = 60

LOG_JSON = os.getenv("LOG_JSON", "true").lower() in ("1", "true", "yes")

# Global generation logger instance
generation_logger = GenerationLogger()
