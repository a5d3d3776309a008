"""
sanitizer.py

Turns whatever the LLM returned into safe, well-typed menu items.

The model gives no structural guarantee, so nothing in this file raises.
Malformed input degrades to defaults:
- strings are trimmed and HTML-escaped
- numbers are parsed leniently and made non-negative
- unknown categories become "good"

Number parsing follows the rules a browser applies to the same payload
(parseFloat / parseInt on the value's text): a leading number is used and
trailing text is ignored, so "250 kcal" -> 250 and "$12" -> 0.
"""

import html
import math
import re
from typing import Any, Dict

VALID_CATEGORIES = ("recommended", "good", "not recommended")
DEFAULT_CATEGORY = "good"
DEFAULT_ITEM_NAME = "Unknown Item"
NUTRITION_FIELDS = ("calories", "protein", "carbs", "fats", "fiber")

_LEADING_FLOAT = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_LEADING_INT = re.compile(r"^\s*[+-]?\d+")

# Characters html.escape leaves alone but that are escaped for output
_EXTRA_ESCAPES = str.maketrans({"/": "&#x2F;", "\\": "&#x5C;", "`": "&#96;"})


def escape_text(text: str) -> str:
    """HTML-escape &, <, >, quotes, slash, backslash and backtick."""
    return html.escape(text, quote=True).translate(_EXTRA_ESCAPES)


def sanitize_text(value: Any) -> str:
    """Return the trimmed, escaped string, or "" for non-strings."""
    if not isinstance(value, str):
        return ""
    return escape_text(value.strip())


def parse_non_negative_float(value: Any) -> float:
    """
    Parse a price-like value.

    Examples:
    "-12.50"  -> 12.5
    "9.99 EUR" -> 9.99
    "$12"     -> 0.0
    None      -> 0.0
    """

    if isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    else:
        match = _LEADING_FLOAT.match(str(value)) if value is not None else None
        if not match:
            return 0.0
        number = float(match.group(0))

    if not math.isfinite(number):
        return 0.0
    return abs(number)


def parse_non_negative_int(value: Any) -> int:
    """
    Parse a nutrition-like value to a whole number.

    Examples:
    "250 kcal" -> 250
    12.9       -> 12
    -4         -> 4
    "n/a"      -> 0
    """

    if isinstance(value, bool):
        return 0

    if isinstance(value, int):
        return abs(value)

    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return abs(math.trunc(value))

    if value is None:
        return 0

    match = _LEADING_INT.match(str(value))
    if not match:
        return 0
    try:
        return abs(int(match.group(0)))
    except ValueError:
        # Digit string longer than the interpreter's int conversion limit
        return 0


def sanitize_nutrition(nutrition: Any) -> Dict[str, int]:
    """Return all five nutrition fields as non-negative integers."""
    if not isinstance(nutrition, dict):
        nutrition = {}
    return {field: parse_non_negative_int(nutrition.get(field)) for field in NUTRITION_FIELDS}


def sanitize_category(category: Any) -> str:
    if isinstance(category, str) and category in VALID_CATEGORIES:
        return category
    return DEFAULT_CATEGORY


def sanitize_menu_item(item: Any) -> Dict[str, Any]:
    """
    Coerce one model-produced object into the MenuItem shape.

    Parameters:
    - item: anything; non-dict values are treated as an empty object

    Returns:
    - dict with name, price, nutrition, category, recommendation

    Example:
    {"name": 42, "price": "-12.50", "category": "bogus"}
    -> {"name": "Unknown Item", "price": 12.5, "category": "good",
        "nutrition": {... all 0 ...}, "recommendation": ""}
    """

    if not isinstance(item, dict):
        item = {}

    return {
        "name": sanitize_text(item.get("name")) or DEFAULT_ITEM_NAME,
        "price": parse_non_negative_float(item.get("price")),
        "nutrition": sanitize_nutrition(item.get("nutrition")),
        "category": sanitize_category(item.get("category")),
        "recommendation": sanitize_text(item.get("recommendation")),
    }
