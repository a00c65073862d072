"""
Configuration for the embedding store, read from the environment.

A `.env` file in the working directory is loaded first, so every setting can
live there instead of the process environment.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/embeddings.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Bulk insert/update/delete cap per call
BULK_LIMIT = int(os.getenv("BULK_LIMIT", "1000"))

# Search defaults
DEFAULT_TOP_K = int(os.getenv("DEFAULT_TOP_K", "5"))
DEFAULT_BATCH_SIZE = int(os.getenv("DEFAULT_BATCH_SIZE", "1000"))
DEFAULT_METRIC = os.getenv("DEFAULT_METRIC", "euclidean")
DEFAULT_STRATEGY = os.getenv("DEFAULT_STRATEGY", "whole_table")  # whole_table|batched|id_first|cursor

# Version string
VERSION = "0.3.0"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def strict_type_check_enabled():
    """Check if inserts must match the declared type exactly, not just be representable."""
    return os.getenv("STRICT_TYPE_CHECK", "false").lower() == "true"


def ensure_db_directory(db_path: str = None):
    """Ensure the directory holding the database file exists."""
    Path(db_path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if BULK_LIMIT < 1:
        issues.append("BULK_LIMIT must be >= 1")

    if DEFAULT_TOP_K < 0:
        issues.append("DEFAULT_TOP_K must be >= 0")

    if DEFAULT_BATCH_SIZE < 1:
        issues.append("DEFAULT_BATCH_SIZE must be >= 1")

    if DEFAULT_STRATEGY not in ["whole_table", "batched", "id_first", "cursor"]:
        issues.append(f"Invalid DEFAULT_STRATEGY: {DEFAULT_STRATEGY}")

    if LOG_LEVEL not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        issues.append(f"Invalid LOG_LEVEL: {LOG_LEVEL}")

    return issues
