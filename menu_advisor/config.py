"""
config.py

Central place to load environment variables.

Everything the service needs from the environment is read once here,
at import time. Other modules import the constants they need.
"""

from dotenv import load_dotenv
import os

# Load variables from .env file into environment
load_dotenv()

# Application
APP_NAME = "Menu Advisor"
APP_VERSION = "1.0.0"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Comma separated list, empty means no CORS middleware
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "").split(",")
    if origin.strip()
]

# LLM provider (any OpenAI-compatible endpoint)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "45"))

# OCR engine
TESSERACT_CMD = os.getenv("TESSERACT_CMD") or None
OCR_LANGUAGE = os.getenv("OCR_LANGUAGE", "eng")
OCR_TIMEOUT_SECONDS = float(os.getenv("OCR_TIMEOUT_SECONDS", "30"))

# Upload limits
MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", str(5 * 1024 * 1024)))  # 5MB

# Rate limiting (per client IP, per process)
RATE_LIMIT_WINDOW_SECONDS = float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))

# Analysis pipeline
MIN_TEXT_LENGTH = 10
MAX_PROMPT_TEXT_LENGTH = 10000
MAX_FOOD_ITEMS = 50
DEFAULT_USER_GOAL = "weight loss"
DEFAULT_TIME_OF_DAY = "lunch"
