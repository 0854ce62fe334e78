"""Category classification.

Every category keyword is matched with word boundaries against title,
description and raw page text. Hits are weighted 10 / 3 / 0.1 and the
strictly highest total wins. Ties go to the category declared first in the
taxonomy.
"""

import re
from functools import lru_cache
from re import Pattern
from typing import Dict, Optional

from productqc.logging_config import get_logger
from productqc.taxonomy import CategoryDefinition, Taxonomy, load_taxonomy

__all__ = [
    "TITLE_WEIGHT",
    "DESCRIPTION_WEIGHT",
    "RAW_TEXT_WEIGHT",
    "WeightedKeywordClassifier",
    "classify",
]

logger = get_logger("classifier")

TITLE_WEIGHT = 10.0
DESCRIPTION_WEIGHT = 3.0
RAW_TEXT_WEIGHT = 0.1


@lru_cache(maxsize=None)
def _keyword_pattern(keyword: str) -> Pattern[str]:
    return re.compile(r"\b" + re.escape(keyword.lower()) + r"\b")


class WeightedKeywordClassifier:
    """Score every category and pick the highest."""

    def __init__(self, taxonomy: Optional[Taxonomy] = None):
        self.taxonomy = taxonomy or load_taxonomy()

    def scores(self, title: str = "", description: str = "", raw_text: str = "") -> Dict[str, float]:
        """Per-category scores in declaration order."""
        fields = (
            ((title or "").lower(), TITLE_WEIGHT),
            ((description or "").lower(), DESCRIPTION_WEIGHT),
            ((raw_text or "").lower(), RAW_TEXT_WEIGHT),
        )
        result: Dict[str, float] = {}
        for category in self.taxonomy:
            score = 0.0
            for keyword in category.keywords:
                pattern = _keyword_pattern(keyword)
                for text, weight in fields:
                    if text:
                        score += len(pattern.findall(text)) * weight
            result[category.key] = score
        return result

    def classify(self, title: str = "", description: str = "", raw_text: str = "") -> Optional[CategoryDefinition]:
        best_key: Optional[str] = None
        best_score = 0.0
        for key, score in self.scores(title, description, raw_text).items():
            # Strictly greater keeps the first-declared category on ties
            if score > best_score:
                best_key, best_score = key, score
        if best_key is None:
            logger.debug("No category keywords matched")
            return None
        logger.debug(f"Detected category {best_key} (score {best_score:.1f})")
        return self.taxonomy.get(best_key)


def classify(
    title: str = "",
    description: str = "",
    raw_text: str = "",
    taxonomy: Optional[Taxonomy] = None,
) -> Optional[CategoryDefinition]:
    """Classify a product by title, description and page text."""
    return WeightedKeywordClassifier(taxonomy).classify(title, description, raw_text)
