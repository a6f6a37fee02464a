from .search_queries import build_search_queries, build_search_url
from .search_scoring import rank_candidates, score_candidate, select_top_candidates

__all__ = [
    "build_search_queries",
    "build_search_url",
    "rank_candidates",
    "score_candidate",
    "select_top_candidates",
]
