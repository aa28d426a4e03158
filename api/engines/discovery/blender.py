"""
Result Blender

Merges strategy outputs into one ranked, diversified list.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Sequence

from .schemas import Recommendation

logger = logging.getLogger(__name__)


class ResultBlender:
    """Deduplicates, ranks and diversifies recommendations"""

    def blend(self, lists: Sequence[Sequence[Recommendation]], limit: int) -> List[Recommendation]:
        """
        Merge candidate lists from several strategies

        Args:
            lists: Recommendation lists, one per strategy
            limit: Maximum number of results

        Returns:
            Up to limit recommendations, highest score first, diversity-capped
        """
        if limit <= 0:
            return []

        ranked = self.merge(lists)
        blended = self.apply_diversity(ranked, limit)

        logger.info(f"Blended {sum(len(lst) for lst in lists)} candidates into {len(blended)} recommendations")
        return blended

    @staticmethod
    def merge(lists: Sequence[Sequence[Recommendation]]) -> List[Recommendation]:
        """Deduplicate by item id keeping the highest score (first seen on ties), then sort by score"""
        best: Dict[str, Recommendation] = {}
        for recommendations in lists:
            for rec in recommendations:
                current = best.get(rec.item.id)
                if current is None or rec.score > current.score:
                    best[rec.item.id] = rec

        return sorted(best.values(), key=lambda rec: rec.score, reverse=True)

    @staticmethod
    def category_cap(limit: int) -> int:
        return max(2, limit // 4)

    @staticmethod
    def artist_cap(limit: int) -> int:
        return max(1, limit // 8)

    def apply_diversity(self, ranked: List[Recommendation], limit: int) -> List[Recommendation]:
        """Cap items per category and per artist, then backfill in ranked order"""
        category_limit = self.category_cap(limit)
        artist_limit = self.artist_cap(limit)

        diverse: List[Recommendation] = []
        admitted = set()
        category_count: Dict = defaultdict(int)
        artist_count: Dict = defaultdict(int)

        for rec in ranked:
            if len(diverse) >= limit:
                break

            category = rec.item.category
            artist_id = rec.item.artist_id

            if category_count[category] < category_limit and artist_count[artist_id] < artist_limit:
                diverse.append(rec)
                admitted.add(rec.item.id)
                category_count[category] += 1
                artist_count[artist_id] += 1

        # Fill remaining slots
        for rec in ranked:
            if len(diverse) >= limit:
                break
            if rec.item.id not in admitted:
                diverse.append(rec)
                admitted.add(rec.item.id)

        return diverse
