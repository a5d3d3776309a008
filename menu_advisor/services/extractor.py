"""
extractor.py

AI-powered extractor that converts noisy OCR text from a menu photo
into structured, nutrition-annotated menu items.

This service uses an OpenAI-compatible chat completion API to:
- Pick out dishes and prices from OCR noise
- Estimate calories, protein, carbs, fats and fiber per serving
- Rate every dish against the user's goal and what they already ate

Extraction is best-effort: if the call fails, times out or returns
something that is not the expected JSON, the result is an empty list.
Every item the model returns goes through the sanitizer before it
leaves this module.
"""

from openai import OpenAI
from typing import Any, Dict, List, Optional
import json
import logging

from menu_advisor.config import MAX_PROMPT_TEXT_LENGTH
from menu_advisor.services.sanitizer import sanitize_menu_item, sanitize_text

# Setup logging
logger = logging.getLogger(__name__)


SYSTEM_PROMPT_TEMPLATE = """You are a menu data extraction expert. Extract menu items and their prices from OCR text that may contain errors and noise.

User Context:
- Goal: {goal} (weight loss, muscle gain, healthy eating, maintenance)
- Time of day: {time_of_day} (breakfast, lunch, dinner, snack, any time)
- Already consumed: {consumed}

For each menu item, provide:
1. Name and price (cleaned from OCR)
2. Estimated nutrition per serving: calories (kcal), protein (g), carbs (g), fats (g), fiber (g)
3. Category: "recommended", "good", or "not recommended" based on user's goal and what they've eaten
4. Recommendation: Brief reason for the category

Return ONLY a valid JSON object with this EXACT format:
{{
  "items": [
    {{
      "name": "Item Name",
      "price": 123,
      "nutrition": {{
        "calories": 123,
        "protein": 12,
        "carbs": 30,
        "fats": 5,
        "fiber": 3
      }},
      "category": "recommended",
      "recommendation": "High protein, low fat - perfect for weight loss"
    }}
  ]
}}

Rules:
- Remove all OCR noise and gibberish
- Fix common OCR errors
- Extract only food/drink items with prices
- Convert all currency symbols to numbers only
- Return valid JSON only, no markdown or explanation"""


class MenuExtractorService:
    """
    MenuExtractorService turns raw menu text into MenuItem dicts.

    Works with any OpenAI-compatible endpoint (OpenAI, Groq, a local
    gateway) by passing base_url and model.
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        model: str = "gpt-4o",
        timeout: float = 45.0,
        client: Optional[Any] = None
    ):
        """
        Initialize the extractor.

        Parameters:
        - api_key: API key for the completion endpoint
        - base_url: OpenAI-compatible endpoint (None = api.openai.com)
        - model: chat model name
        - timeout: per-request timeout in seconds
        - client: pre-built client (tests pass a stub here)
        """

        logger.info("Initializing menu extractor service...")

        self.model = model
        self.client = client or OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0  # single attempt, under the web client's 60s abort
        )

        logger.info(f"Menu extractor initialized with model: {model}")

    def build_messages(
        self,
        raw_text: str,
        user_goal: str,
        time_of_day: str,
        user_food_data: List[str]
    ) -> List[Dict[str, str]]:
        """
        Build the system and user messages for the completion call.

        User-supplied context is escaped before it is embedded, and the
        OCR text is cut to MAX_PROMPT_TEXT_LENGTH characters.
        """

        safe_goal = sanitize_text(user_goal)
        safe_time_of_day = sanitize_text(time_of_day)
        safe_food_data = [
            food for food in (sanitize_text(f) for f in user_food_data or [])
            if food
        ]

        system_prompt = SYSTEM_PROMPT_TEMPLATE.format(
            goal=safe_goal,
            time_of_day=safe_time_of_day,
            consumed=", ".join(safe_food_data)
        )

        return [
            {"role": "system", "content": system_prompt},
            {
                "role": "user",
                "content": f"Extract menu items from this OCR text:\n\n{raw_text[:MAX_PROMPT_TEXT_LENGTH]}"
            }
        ]

    def extract_menu_items(
        self,
        raw_text: str,
        user_goal: str = "maintenance",
        time_of_day: str = "any time",
        user_food_data: Optional[List[str]] = None
    ) -> List[Dict[str, Any]]:
        """
        Extract sanitized menu items from OCR text.

        What happens here:
        1. Build prompt with user context
        2. Call the chat completion API in JSON mode
        3. Parse the JSON payload (bare array, {"items": [...]} or {"menu": [...]})
        4. Sanitize every item

        Parameters:
        - raw_text: OCR text from the menu photo
        - user_goal: e.g. "weight loss"
        - time_of_day: e.g. "lunch"
        - user_food_data: foods already eaten today

        Returns:
        - list of MenuItem dicts, [] on any failure

        Called by:
        - POST /api/analyze (menu_advisor/api/analyze.py)
        """

        logger.info(f"Extracting menu items from {len(raw_text)} characters of OCR text")

        try:
            messages = self.build_messages(raw_text, user_goal, time_of_day, user_food_data or [])

            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=0.1,  # Low temperature for consistent extraction
                response_format={"type": "json_object"}
            )

            content = response.choices[0].message.content if response.choices else None
            if not content or not content.strip():
                raise RuntimeError("No response from AI")

            raw_items = self.parse_items(content)
            items = [sanitize_menu_item(item) for item in raw_items]

            logger.info(f"Extracted {len(items)} menu items")
            return items

        except Exception as e:
            # Best-effort: a bad completion never fails the request
            logger.error(f"Menu extraction failed: {str(e)}")
            return []

    @staticmethod
    def parse_items(content: str) -> List[Any]:
        """
        Pull the raw item list out of a completion payload.

        Accepts a bare JSON array, or an object with an "items" or "menu"
        array. Anything else is an empty list.

        Raises:
        - json.JSONDecodeError if the payload is not JSON at all
        """

        text = content.strip()

        # Remove markdown code blocks if present
        if text.startswith("```"):
            text = text.split("```")[1]
            if text.lstrip().lower().startswith("json"):
                text = text.lstrip()[4:]
            text = text.strip()

        parsed = json.loads(text)

        if isinstance(parsed, list):
            return parsed

        if isinstance(parsed, dict):
            for key in ("items", "menu"):
                if isinstance(parsed.get(key), list):
                    return parsed[key]

        logger.warning("Completion JSON had no items/menu array")
        return []
