"""
Filtering module for sold listings.

This module scores listings for relevance against the query that produced
them and orders them best match first.
"""

from .relevance_scorer import RelevanceScorer, query_words

__all__ = ['RelevanceScorer', 'query_words']
