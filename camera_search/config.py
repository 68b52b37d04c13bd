"""Centralized configuration for the camera catalog search engine."""

import os
from pathlib import Path

# Project root (parent of the 'camera_search' package)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Data files; env overrides allow pointing at another dataset
RAW_DATA_PATH = os.getenv("RAW_DATA_PATH", str(_PROJECT_ROOT / "data" / "canon-products-scraped.json"))
ENRICHED_DATA_PATH = os.getenv("ENRICHED_DATA_PATH", str(_PROJECT_ROOT / "data" / "canon-products-smart.json"))

# Corpus cache freshness (seconds)
CORPUS_TTL_SECONDS = float(os.getenv("CORPUS_TTL_SECONDS", "300"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Batch enrichment progress interval (records)
PROGRESS_EVERY = int(os.getenv("PROGRESS_EVERY", "50"))

# Number of products returned by the random sampler when not specified
RANDOM_PRODUCTS_DEFAULT = int(os.getenv("RANDOM_PRODUCTS_DEFAULT", "6"))

# Number of categories reported in search statistics
TOP_CATEGORIES_LIMIT = 5
