"""
Tests for LLM output sanitization.

Verifies:
- Text is trimmed and HTML-escaped
- Numbers are parsed leniently and never negative
- Unknown categories and malformed items fall back to defaults
"""

import math

import pytest

from menu_advisor.services.sanitizer import (
    escape_text,
    parse_non_negative_float,
    parse_non_negative_int,
    sanitize_category,
    sanitize_menu_item,
    sanitize_nutrition,
    sanitize_text,
)


# =============================================================================
# TEXT
# =============================================================================


def test_escape_text_escapes_markup_characters():
    assert escape_text("<b>\"Fish\" & 'Chips'</b>") == (
        "&lt;b&gt;&quot;Fish&quot; &amp; &#x27;Chips&#x27;&lt;&#x2F;b&gt;"
    )


def test_escape_text_escapes_slashes_and_backtick():
    assert escape_text("half/half `special`") == "half&#x2F;half &#96;special&#96;"
    assert escape_text("C:\\menus\\lunch") == "C:&#x5C;menus&#x5C;lunch"
    assert sanitize_text("a\\b") == "a&#x5C;b"


def test_sanitize_text_trims_before_escaping():
    assert sanitize_text("   <script>alert(1)</script>  ") == (
        "&lt;script&gt;alert(1)&lt;&#x2F;script&gt;"
    )


@pytest.mark.parametrize("value", [None, 42, 3.5, ["a"], {"a": 1}, True])
def test_sanitize_text_non_string_is_empty(value):
    assert sanitize_text(value) == ""


# =============================================================================
# NUMBERS
# =============================================================================


@pytest.mark.parametrize(
    "value, expected",
    [
        ("-12.50", 12.5),
        ("9.99 EUR", 9.99),
        ("$12", 0.0),
        ("  7", 7.0),
        (".5", 0.5),
        ("1e3", 1000.0),
        (-4, 4.0),
        (12, 12.0),
        (None, 0.0),
        (True, 0.0),
        ("", 0.0),
        ("free", 0.0),
    ],
)
def test_parse_non_negative_float(value, expected):
    assert parse_non_negative_float(value) == expected


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), "1e999", 10 ** 400])
def test_parse_non_negative_float_non_finite_is_zero(value):
    result = parse_non_negative_float(value)
    assert result == 0.0
    assert math.isfinite(result)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("250 kcal", 250),
        ("12.7", 12),
        ("-3g", 3),
        (12.9, 12),
        (-4, 4),
        (0, 0),
        ("n/a", 0),
        ("~300", 0),
        (None, 0),
        (False, 0),
        (float("nan"), 0),
    ],
)
def test_parse_non_negative_int(value, expected):
    assert parse_non_negative_int(value) == expected


def test_sanitize_nutrition_fills_all_fields():
    assert sanitize_nutrition({"calories": "450", "protein": -30.6}) == {
        "calories": 450,
        "protein": 30,
        "carbs": 0,
        "fats": 0,
        "fiber": 0,
    }
    assert sanitize_nutrition("lots") == {
        "calories": 0, "protein": 0, "carbs": 0, "fats": 0, "fiber": 0
    }


# =============================================================================
# CATEGORY AND ITEMS
# =============================================================================


@pytest.mark.parametrize("category", ["recommended", "good", "not recommended"])
def test_valid_categories_pass_through(category):
    assert sanitize_category(category) == category


@pytest.mark.parametrize("category", ["Recommended", "bad", "", None, 1])
def test_invalid_categories_become_good(category):
    assert sanitize_category(category) == "good"


def test_sanitize_menu_item_full_item():
    item = sanitize_menu_item({
        "name": "  Caesar <Salad>  ",
        "price": "11.00",
        "nutrition": {"calories": 380, "protein": "25g", "carbs": 14, "fats": 22, "fiber": 4},
        "category": "good",
        "recommendation": "Balanced & filling",
    })

    assert item == {
        "name": "Caesar &lt;Salad&gt;",
        "price": 11.0,
        "nutrition": {"calories": 380, "protein": 25, "carbs": 14, "fats": 22, "fiber": 4},
        "category": "good",
        "recommendation": "Balanced &amp; filling",
    }


def test_sanitize_menu_item_defaults():
    item = sanitize_menu_item({"name": 42, "price": "-12.50", "category": "bogus"})

    assert item["name"] == "Unknown Item"
    assert item["price"] == 12.5
    assert item["category"] == "good"
    assert item["recommendation"] == ""
    assert set(item["nutrition"].values()) == {0}


@pytest.mark.parametrize("value", [None, "Burger", ["Burger"], 7])
def test_sanitize_menu_item_non_object(value):
    item = sanitize_menu_item(value)

    assert item["name"] == "Unknown Item"
    assert item["price"] == 0.0
    assert item["category"] == "good"


def test_sanitize_menu_item_blank_name():
    assert sanitize_menu_item({"name": "   "})["name"] == "Unknown Item"
