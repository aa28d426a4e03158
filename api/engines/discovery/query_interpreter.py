"""
Query Interpreter

Turns free-text search input such as "abstract blue paintings under $500"
into structured filter hints. Each extractor runs independently over the
lower-cased text:

- price:  "under/below/less than $N", "over/above/more than $N", "$N-$M", "$N to $M"
- year:   "from/since/after YYYY", "before/until YYYY", "YYYY-YYYY", "YYYY to YYYY", "YYYYs"
- size:   large/big/huge and small/tiny/miniature (first size word wins)
- colors, styles, mediums, categories: vocabulary substring match, all matches kept

Text with nothing recognizable yields empty hints and is still used as a
plain text match by the catalog query.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .schemas import DimensionFilter, DimensionOperator, PriceRange, QueryHints, YearRange

logger = logging.getLogger(__name__)

PRICE_PATTERN = re.compile(
    r"(?:under|below|less than)\s*\$?(\d[\d,]*)"
    r"|(?:over|above|more than)\s*\$?(\d[\d,]*)"
    r"|\$(\d[\d,]*)(?:\s*-\s*|\s+to\s+)\$?(\d[\d,]*)"
)

YEAR_PATTERN = re.compile(
    r"(?:from|since|after)\s*(\d{4})"
    r"|(?:before|until)\s*(\d{4})"
    r"|(\d{4})(?:\s*-\s*|\s+to\s+)(\d{4})"
    r"|(\d{4})s"
)

SIZE_PATTERN = re.compile(r"(?:large|big|huge)|(?:small|tiny|miniature)|(?:medium|mid)[- ]?size")

EARLIEST_YEAR = 1800
LARGE_MIN_WIDTH = 30  # inches
SMALL_MAX_WIDTH = 12  # inches


class QueryInterpreter:
    """Extracts structured search hints from natural language queries"""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.color_vocabulary = self._load_color_vocabulary()
        self.style_vocabulary = self._load_style_vocabulary()
        self.medium_vocabulary = self._load_medium_vocabulary()
        self.category_vocabulary = self._load_category_vocabulary()

        logger.info("QueryInterpreter initialized")

    def _load_color_vocabulary(self) -> List[str]:
        return ["red", "blue", "green", "yellow", "orange", "purple", "pink", "black", "white", "brown", "gray", "gold", "silver"]

    def _load_style_vocabulary(self) -> List[str]:
        return ["abstract", "realistic", "impressionist", "modern", "contemporary", "classical", "surreal", "minimalist", "vintage"]

    def _load_medium_vocabulary(self) -> List[str]:
        return ["oil painting", "acrylic", "watercolor", "digital", "photography", "sculpture", "drawing", "print", "mixed media"]

    def _load_category_vocabulary(self) -> List[str]:
        return ["painting", "photography", "sculpture", "drawing", "print", "digital art"]

    def interpret(self, text: Optional[str]) -> QueryHints:
        """
        Parse free text into filter hints

        Args:
            text: Raw user input, may be empty or None

        Returns:
            QueryHints with only the recognized sub-filters set
        """
        if not text or not text.strip():
            return QueryHints()

        lowered = text.lower()

        hints = QueryHints(
            price_range=self._extract_price_range(lowered),
            colors=self._match_vocabulary(lowered, self.color_vocabulary),
            styles=self._match_vocabulary(lowered, self.style_vocabulary),
            mediums=self._match_mediums(lowered),
            categories=self._match_vocabulary(lowered, self.category_vocabulary),
            year_range=self._extract_year_range(lowered),
            dimensions=self._extract_size_hint(lowered),
        )

        if not hints.is_empty():
            logger.debug(f"Interpreted query '{text}' as {hints.model_dump(exclude_none=True)}")
        return hints

    def _extract_price_range(self, text: str) -> Optional[PriceRange]:
        match = PRICE_PATTERN.search(text)
        if not match:
            return None

        under, over, low, high = match.groups()
        if under:
            return PriceRange(min=0, max=_to_number(under))
        if over:
            return PriceRange(min=_to_number(over), max=None)
        if low and high:
            return PriceRange(min=_to_number(low), max=_to_number(high))
        return None

    def _extract_year_range(self, text: str) -> Optional[YearRange]:
        match = YEAR_PATTERN.search(text)
        if not match:
            return None

        since, until, start, end, decade = match.groups()
        if since:
            return YearRange(min=int(since), max=self.clock().year)
        if until:
            return YearRange(min=EARLIEST_YEAR, max=int(until))
        if start and end:
            return YearRange(min=int(start), max=int(end))
        if decade:
            return YearRange(min=int(decade), max=int(decade) + 9)
        return None

    def _extract_size_hint(self, text: str) -> Optional[DimensionFilter]:
        match = SIZE_PATTERN.search(text)
        if not match:
            return None

        word = match.group(0)
        if word in ("large", "big", "huge"):
            return DimensionFilter(value=LARGE_MIN_WIDTH, operator=DimensionOperator.MIN)
        if word in ("small", "tiny", "miniature"):
            return DimensionFilter(value=SMALL_MAX_WIDTH, operator=DimensionOperator.MAX)
        # medium size carries no constraint
        return None

    def _match_vocabulary(self, text: str, vocabulary: List[str]) -> Optional[List[str]]:
        found = [term for term in vocabulary if term in text]
        return found or None

    def _match_mediums(self, text: str) -> Optional[List[str]]:
        # "oilpainting" and "mixedmedia" count as well
        found = [
            medium for medium in self.medium_vocabulary
            if medium in text or medium.replace(" ", "") in text
        ]
        return found or None


def _to_number(raw: str) -> float:
    return float(raw.replace(",", ""))
