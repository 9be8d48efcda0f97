"""
Configuration settings for the glyph CAPTCHA solver
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent
RESULT_DIR = Path(os.getenv("RESULT_DIR", str(BASE_DIR / "results")))

# Reference corpus (None means the resource bundled with the core package)
DATASET_PATH = os.getenv("DATASET_PATH") or None

# Directory of labelled images (<answer>.jpg) used by the benchmark
DATASET_DIR = Path(os.getenv("DATASET_DIR", str(BASE_DIR / "examples" / "dataset")))

# Recognition settings
INK_THRESHOLD = int(os.getenv("INK_THRESHOLD", "1"))  # Pixels at or below are ink
ANSWER_LENGTH = int(os.getenv("ANSWER_LENGTH", "6"))

# Network settings
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))  # In seconds

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
