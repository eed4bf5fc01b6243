"""
Purpose:
- Fixed enumerations offered by the UI and accepted by the relay.
"""

from __future__ import annotations
from enum import Enum
from typing import List, Tuple

class Language(str, Enum):
    ENGLISH = "english"
    SPANISH = "spanish"
    GERMAN = "german"
    FRENCH = "french"
    PORTUGUESE = "portuguese"
    ITALIAN = "italian"
    HINDI = "hindi"
    THAI = "thai"

    @property
    def label(self) -> str:
        return self.value.capitalize()

class DescriptionLength(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"

    @property
    def label(self) -> str:
        return self.value.capitalize()

DEFAULT_LANGUAGE = Language.ENGLISH
DEFAULT_LENGTH = DescriptionLength.SHORT

def choices(enum_cls) -> List[Tuple[str, str]]:
    """(value, label) pairs in declaration order, for select widgets."""
    return [(m.value, m.label) for m in enum_cls]
