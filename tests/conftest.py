"""
Pytest configuration and shared fixtures.
This file ensures the project root is in sys.path for imports.

The API fixtures replace the OCR engine, the LLM extractor and the
rate limiter through app.dependency_overrides, so no test needs
Tesseract or network access.
"""

import io
import sys
import time
from pathlib import Path

import pytest
from PIL import Image

# Add project root to sys.path so we can import menu_advisor
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from fastapi.testclient import TestClient

from menu_advisor.api.dependencies import get_menu_extractor, get_ocr_service, get_rate_limiter
from menu_advisor.main import app
from menu_advisor.services.rate_limiter import RateLimiter

MENU_TEXT = "Grilled Chicken Salad 12.50\nDouble Cheeseburger 9.99\nFries 3.50"


class FakeOCRService:
    """Stands in for OCRService; records calls."""

    def __init__(self, text=MENU_TEXT):
        self.text = text
        self.error = None
        self.delay = 0.0
        self.calls = 0

    def extract_text(self, image_bytes):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.text


class FakeMenuExtractor:
    """Stands in for MenuExtractorService; records the context it was given."""

    def __init__(self, items=None):
        self.items = items if items is not None else []
        self.error = None
        self.calls = []

    def extract_menu_items(self, raw_text, user_goal="maintenance", time_of_day="any time", user_food_data=None):
        self.calls.append({
            "raw_text": raw_text,
            "user_goal": user_goal,
            "time_of_day": time_of_day,
            "user_food_data": user_food_data,
        })
        if self.error:
            raise self.error
        return self.items


def image_bytes(fmt="PNG", size=(120, 40)):
    """Encode a small white image in the given Pillow format."""
    buffer = io.BytesIO()
    Image.new("RGB", size, "white").save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_image():
    return image_bytes


@pytest.fixture
def png_bytes():
    return image_bytes("PNG")


@pytest.fixture
def jpeg_bytes():
    return image_bytes("JPEG")


@pytest.fixture
def fake_ocr():
    return FakeOCRService()


@pytest.fixture
def fake_extractor():
    return FakeMenuExtractor(items=[
        {
            "name": "Grilled Chicken Salad",
            "price": 12.5,
            "nutrition": {"calories": 450, "protein": 35, "carbs": 20, "fats": 18, "fiber": 6},
            "category": "recommended",
            "recommendation": "High protein, low carb",
        }
    ])


@pytest.fixture
def limiter():
    return RateLimiter(max_requests=100, window_seconds=900)


@pytest.fixture
def client(fake_ocr, fake_extractor, limiter):
    app.dependency_overrides[get_ocr_service] = lambda: fake_ocr
    app.dependency_overrides[get_menu_extractor] = lambda: fake_extractor
    app.dependency_overrides[get_rate_limiter] = lambda: limiter

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
