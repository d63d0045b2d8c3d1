"""
Relevance scoring for sold listings.

This module ranks the listings returned for one strategy against the tokens
that built its query, and drops weak matches for brand-anchored strategies.
"""

from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Iterable, List, Optional, Sequence
import re

from soldcomps.models import Listing, ScoredListing


MODEL_NUMBER_PATTERN = re.compile(r'^[a-z]+\d+|^\d+[a-z]+', re.IGNORECASE)

MIN_WORD_LENGTH = 3
NEW_CONDITION_BONUS = 5
EXCELLENT_CONDITION_BONUS = 3
AGE_PENALTY_AFTER_DAYS = 60
MAX_AGE_PENALTY = 10
STRICT_RELEVANCE_FLOOR = 3
TIE_MARGIN = 2


def query_words(tokens: Iterable[str]) -> List[str]:
    """Lowercased words of the query built from the tokens."""
    return " ".join(tokens).lower().split()


class RelevanceScorer:
    """Scores and orders listings for one strategy's query.

    Scores are computed fresh on every call and never stored on the listing.

    Attributes:
        now: Reference time for the age penalty (UTC now when not given)
    """

    def __init__(self, now: Optional[datetime] = None):
        self.now = now

    def score(self, listing: Listing, words: Sequence[str]) -> float:
        """Compute the relevance score of one listing.

        Title matches add the word length, doubled again for model-number
        shaped words. Condition adds a bonus and listings sold more than 60
        days ago lose up to 10 points.

        Args:
            listing: Listing to score
            words: Lowercased query words

        Returns:
            Relevance score (may be negative)
        """
        score = 0.0
        title = (listing.title or "").lower()

        for word in words:
            if len(word) < MIN_WORD_LENGTH or word not in title:
                continue
            score += len(word)
            if MODEL_NUMBER_PATTERN.match(word):
                score += len(word) * 2

        condition = (listing.condition or "").lower()
        if 'new' in condition:
            score += NEW_CONDITION_BONUS
        elif 'excellent' in condition:
            score += EXCELLENT_CONDITION_BONUS

        days_old = self._days_old(listing)
        if days_old is not None and days_old > AGE_PENALTY_AFTER_DAYS:
            score -= min(days_old - AGE_PENALTY_AFTER_DAYS, MAX_AGE_PENALTY)

        return score

    def score_all(self, listings: Iterable[Listing], tokens: Iterable[str]) -> List[ScoredListing]:
        """Pair every listing with its score, keeping input order."""
        words = query_words(tokens)
        return [ScoredListing(listing, self.score(listing, words)) for listing in listings]

    def rank(
        self,
        listings: Iterable[Listing],
        tokens: Iterable[str],
        strict: bool = False
    ) -> List[Listing]:
        """Filter and order listings by relevance.

        Args:
            listings: Listings returned by the marketplace
            tokens: Tokens used to build the query
            strict: Drop listings scoring 3 or less (brand-anchored strategies)

        Returns:
            Listings ordered by descending relevance, scores stripped
        """
        scored = self.score_all(listings, tokens)
        if strict:
            scored = [item for item in scored if item.score > STRICT_RELEVANCE_FLOOR]

        ordered = sorted(scored, key=cmp_to_key(_compare))
        return [item.listing for item in ordered]

    def _days_old(self, listing: Listing) -> Optional[float]:
        if listing.end_date is None:
            return None
        now = self.now or datetime.now(timezone.utc)
        return (_as_utc(now) - _as_utc(listing.end_date)).total_seconds() / 86400


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _compare(a: ScoredListing, b: ScoredListing) -> int:
    # Close scores fall back to recency, most recent sale first
    if abs(a.score - b.score) < TIE_MARGIN:
        if a.listing.end_date is None or b.listing.end_date is None:
            return 0
        a_end, b_end = _as_utc(a.listing.end_date), _as_utc(b.listing.end_date)
        return (b_end > a_end) - (b_end < a_end)
    return -1 if a.score > b.score else 1
