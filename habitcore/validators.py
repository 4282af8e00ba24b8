"""
Centralized Pydantic Input Validation Layer

Validates identifiers coming from the UI before they reach engine state.
Engines treat a failed validation as a normal UI race (double taps, stale
screens): they log a warning and return a sentinel instead of raising.

Validation Categories:
1. Activity / habit categories - lowercase slug, max 50 chars
2. Achievement ids - non-empty string
"""

import logging
import re
from typing import Any, Dict, Mapping, Optional
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


# ============================================================================
# CATEGORY VALIDATION
# ============================================================================

class CategoryInput(BaseModel):
    """
    Validate an activity or habit category

    Constraints:
    - Whitespace is trimmed and the value lowercased
    - Letters, digits and underscores, starting with a letter
    - Max length: 50 characters
    """
    category: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-z][a-z0-9_]*$")

    @field_validator('category', mode='before')
    @classmethod
    def normalize(cls, v: Any) -> Any:
        """Trim and lowercase string input"""
        if isinstance(v, str):
            return v.strip().lower()
        return v


def normalize_category(category: Any) -> Optional[str]:
    """
    Return the normalized category, or None if it is malformed

    Example:
        normalize_category(" Workout ") -> "workout"
        normalize_category("") -> None
    """
    try:
        return CategoryInput(category=category).category
    except ValidationError:
        logger.warning(f"Malformed category rejected: {category!r}")
        return None


def normalize_achievement_id(achievement_id: Any) -> Optional[str]:
    """Return the trimmed achievement id, or None if it is not a non-empty string"""
    if not isinstance(achievement_id, str) or not achievement_id.strip():
        logger.warning(f"Malformed achievement id rejected: {achievement_id!r}")
        return None
    return achievement_id.strip()


# ============================================================================
# CONTEXT KEYS
# ============================================================================

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_case(name: str) -> str:
    """camelCase -> snake_case; snake_case input is returned unchanged"""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_case_keys(data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Shallow copy of a mapping with camelCase keys converted to snake_case"""
    return {snake_case(key): value for key, value in (data or {}).items() if isinstance(key, str)}
