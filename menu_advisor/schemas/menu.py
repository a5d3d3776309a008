"""
menu.py (schemas)

Pydantic models for the menu items returned by POST /api/analyze.

Items are built from sanitized LLM output, so these models describe
what the sanitizer guarantees: non-negative numbers and one of three
categories.
"""

from typing import Literal

from pydantic import BaseModel, Field

Category = Literal["recommended", "good", "not recommended"]


class Nutrition(BaseModel):
    """Estimated nutrition per serving."""

    calories: int = Field(default=0, ge=0, description="Energy in kcal", examples=[450])
    protein: int = Field(default=0, ge=0, description="Protein in grams", examples=[32])
    carbs: int = Field(default=0, ge=0, description="Carbohydrates in grams", examples=[40])
    fats: int = Field(default=0, ge=0, description="Fat in grams", examples=[12])
    fiber: int = Field(default=0, ge=0, description="Fiber in grams", examples=[6])


class MenuItem(BaseModel):
    """
    One dish from the menu, rated against the user's goal.

    Used by:
    - AnalyzeResponse.items
    """

    name: str = Field(..., description="Dish name (HTML-escaped)", examples=["Grilled Chicken Salad"])
    price: float = Field(default=0.0, ge=0, description="Price without currency symbol", examples=[12.5])
    nutrition: Nutrition = Field(default_factory=Nutrition)
    category: Category = Field(
        default="good",
        description="How well the dish fits the user's goal"
    )
    recommendation: str = Field(
        default="",
        description="Short reason for the category",
        examples=["High protein, low fat - perfect for weight loss"]
    )
