"""
src/stores: Store records and tag-based classification.
"""

from .classifier import (
    CATEGORY_TAG_KEYS,
    DEFAULT_CATEGORY,
    LARGE_KEYWORDS,
    MEDIUM_KEYWORDS,
    SizeTier,
    StoreRecord,
    classify_category,
    classify_elements,
    classify_size,
    classify_store,
    resolve_location,
)

__all__ = [
    "CATEGORY_TAG_KEYS",
    "DEFAULT_CATEGORY",
    "LARGE_KEYWORDS",
    "MEDIUM_KEYWORDS",
    "SizeTier",
    "StoreRecord",
    "classify_category",
    "classify_elements",
    "classify_size",
    "classify_store",
    "resolve_location",
]
