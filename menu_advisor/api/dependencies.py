"""
dependencies.py

FastAPI dependencies that hand out the service objects used by routes.

Routes never build services themselves, so tests can swap any of
them through app.dependency_overrides.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Request

from menu_advisor.config import (
    LLM_MODEL,
    LLM_TIMEOUT_SECONDS,
    OCR_LANGUAGE,
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
    TESSERACT_CMD,
)
from menu_advisor.services.extractor import MenuExtractorService
from menu_advisor.services.ocr import OCRService
from menu_advisor.services.rate_limiter import RateLimiter

# One limiter per process; its counters are the only shared state
rate_limiter = RateLimiter(
    max_requests=RATE_LIMIT_MAX_REQUESTS,
    window_seconds=RATE_LIMIT_WINDOW_SECONDS
)


def get_rate_limiter() -> RateLimiter:
    return rate_limiter


@lru_cache(maxsize=1)
def get_ocr_service() -> OCRService:
    return OCRService(tesseract_cmd=TESSERACT_CMD, language=OCR_LANGUAGE)


@lru_cache(maxsize=1)
def _build_menu_extractor(api_key: str) -> MenuExtractorService:
    return MenuExtractorService(
        api_key=api_key,
        base_url=OPENAI_BASE_URL,
        model=LLM_MODEL,
        timeout=LLM_TIMEOUT_SECONDS
    )


def get_menu_extractor() -> Optional[MenuExtractorService]:
    """Return the extractor, or None when no API key is configured."""
    if not OPENAI_API_KEY:
        return None
    return _build_menu_extractor(OPENAI_API_KEY)


def get_client_ip(request: Request) -> str:
    """
    Best guess at the caller's IP address.

    Behind a proxy the first X-Forwarded-For entry is the original client.
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    if request.client and request.client.host:
        return request.client.host

    return "unknown"
