"""Configuration settings for the paper federation layer."""

import logging
import os
from dotenv import load_dotenv

load_dotenv()

# Logging setup
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)

# Semantic Scholar
# Allows roughly 100 requests per 5 minutes without a key
SEMANTIC_SCHOLAR_API_KEY = os.getenv("SEMANTIC_SCHOLAR_API_KEY")
SEMANTIC_SCHOLAR_BASE_URL = "https://api.semanticscholar.org/graph/v1"
SEMANTIC_SCHOLAR_MIN_INTERVAL = 0.2

# OpenAlex
OPENALEX_BASE_URL = "https://api.openalex.org"
OPENALEX_MIN_INTERVAL = 0.1

# CORE
CORE_API_KEY = os.getenv("CORE_API_KEY")
CORE_BASE_URL = "https://api.core.ac.uk/v3"
CORE_MIN_INTERVAL = 0.2

# Retry settings
MAX_ATTEMPTS = 3
RETRY_BACKOFF_BASE = 1.0  # seconds, doubled per attempt
REQUEST_TIMEOUT = 30.0

# PDF retrieval
CORS_PROXIES = [
    "https://corsproxy.io/?",
    "https://api.allorigins.win/raw?url=",
]
PDF_MAX_RETRIES = 2
PDF_RETRY_DELAY = 0.5  # seconds, multiplied by the retry index
PDF_STALE_AFTER = 30.0
PDF_MIN_SIZE = 100
PDF_TIMEOUT = 60.0

# Query controller
PAGE_SIZE = 10
