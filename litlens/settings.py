"""
Global settings and configuration for the LitLens application.
"""

import os
from pathlib import Path

# OpenAI Configuration
# Optional: without a key every question is answered by the local heuristics.
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY") or None

LLM_MODEL = os.getenv("LITLENS_LLM_MODEL", "gpt-4-turbo")
EMBED_MODEL = os.getenv("LITLENS_EMBED_MODEL", "text-embedding-3-large")

# Completion call limits
COMPLETION_TIMEOUT = float(os.getenv("LITLENS_COMPLETION_TIMEOUT", "30"))  # seconds
COMPLETION_MAX_RETRIES = int(os.getenv("LITLENS_COMPLETION_MAX_RETRIES", "1"))
CLASSIFY_MAX_TOKENS = 50
GENERATE_MAX_TOKENS = 1000
MAX_CONTEXT_TOKENS = 3000

# Relevance Configuration
CONTEXT_CHUNK_SIZE = 1000  # characters
CONTEXT_TOP_CHUNKS = 3

# Embedding Configuration
EMBED_CHUNK_SIZE = 1000  # characters
EMBED_CHUNK_OVERLAP = 200  # characters
BATCH_SIZE = 16  # For OpenAI API calls

# Uploads
MAX_UPLOAD_SIZE = 60 * 1024 * 1024  # 60MB
PREVIEW_CHARS = 1000

# Directory Paths
PROJECT_ROOT = Path(__file__).parent.parent

BOOKS_ROOT = Path(os.getenv("BOOKS_ROOT", PROJECT_ROOT / "library"))
UPLOADS_DIR = BOOKS_ROOT / "uploads"
SAMPLES_DIR = BOOKS_ROOT / "samples"
INDEX_ROOT = BOOKS_ROOT / "indexes"
BUILTIN_BOOKS_DIR = Path(os.getenv("LITLENS_BUILTIN_BOOKS_DIR", PROJECT_ROOT / "builtinBooks"))

LOG_LEVEL = os.getenv("LITLENS_LOG_LEVEL", "INFO")
