"""Deterministic search-query builders for resolved metadata."""

from __future__ import annotations

from urllib.parse import urlencode

from metadata.types import MOVIE, Metadata

VIDEO_VERTICAL = "vid"
LONG_DURATION_FILTER = "dur:l"


def compact_episode_code(season, episode) -> str:
    """Return ``S01E05`` for season 1, episode 5."""
    return f"S{int(season or 0):02d}E{int(episode or 0):02d}"


def build_search_queries(metadata: Metadata, kind: str) -> list[str]:
    """Build search queries for ``metadata``.

    Behavior:
    - Movies yield one query: `{title} {year} full movie` (year dropped when unknown).
    - Series yield `{title} S01E05`, followed by `{title} S01E05 {episode title}`
      when the episode title is known.
    - An empty title yields no queries, so the caller skips scraping.

    Examples:
    - `Inception`, 2010 -> `["Inception 2010 full movie"]`
    - `Show`, S1E5, `Pilot` -> `["Show S01E05", "Show S01E05 Pilot"]`
    """
    title = (metadata.title or "").strip()
    if not title:
        return []
    if kind == MOVIE:
        parts = [title]
        if metadata.year:
            parts.append(str(metadata.year))
        parts.append("full movie")
        return [" ".join(parts)]

    base = f"{title} {compact_episode_code(metadata.season, metadata.episode)}"
    queries = [base]
    episode_title = (metadata.episode_title or "").strip()
    if episode_title:
        queries.append(f"{base} {episode_title}")
    return queries


def build_search_url(query: str, search_url: str) -> str:
    """Search-engine URL scoped to the video vertical and long-duration filter."""
    params = {"q": query, "tbs": LONG_DURATION_FILTER, "tbm": VIDEO_VERTICAL}
    return f"{search_url}?{urlencode(params)}"
