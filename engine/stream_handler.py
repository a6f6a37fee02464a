"""Stream resolution pipeline: metadata -> queries -> scrape -> score -> streams."""

from __future__ import annotations

import functools
import logging
import re
import time
from dataclasses import dataclass

import anyio

from config.settings import ApiCredentials, Settings
from engine.http_client import HttpClient
from engine.search_adapters import GoogleVideoScraper
from engine.search_queries import build_search_queries, build_search_url
from engine.search_scoring import (
    ScoredCandidate,
    format_breakdown_for_log,
    rank_candidates,
    score_candidate,
    select_top_candidates,
)
from metadata.enrichment import MetadataResolver
from metadata.types import MOVIE, SERIES, ContentIdentifier, Metadata

logger = logging.getLogger(__name__)

MANUAL_SEARCH_URL = "https://www.google.com"
_DETAILED_LOG_LIMIT = 5
_TRAILING_SEPARATORS_RE = re.compile(r"[\s\-,|]+$")


@dataclass(frozen=True)
class StreamRecord:
    title: str
    external_url: str
    is_external: bool = True

    def to_payload(self) -> dict:
        payload = {"title": self.title, "externalUrl": self.external_url}
        if self.is_external:
            payload["behaviorHints"] = {"externalUrl": True}
        return payload


def _platform_suffix_re(suffixes):
    names = "|".join(re.escape(name) for name in sorted(suffixes, key=len, reverse=True))
    return re.compile(rf"\s*[-|–]\s*(?:{names})\s*$", re.IGNORECASE)


def clean_result_title(title, suffixes):
    """Strip trailing platform attribution such as ``- YouTube`` from a result title."""
    cleaned = (title or "").strip()
    if suffixes:
        cleaned = _platform_suffix_re(suffixes).sub("", cleaned)
    return _TRAILING_SEPARATORS_RE.sub("", cleaned.strip())


def format_stream(scored: ScoredCandidate, suffixes) -> StreamRecord:
    candidate = scored.candidate
    title = f"[{candidate.source or 'Stream'}] {clean_result_title(candidate.title, suffixes)}"
    if candidate.duration:
        title = f"{title}\nDuration: {candidate.duration}"
    return StreamRecord(title=title, external_url=candidate.url)


def fallback_streams(metadata: Metadata | None, kind: str, settings: Settings) -> list[StreamRecord]:
    """Deterministic links appended to every response."""
    queries = build_search_queries(metadata, kind) if metadata else []
    streams = []
    if not queries:
        streams.append(
            StreamRecord(
                title="🔍 Metadata failed, click to search Google manually",
                external_url=MANUAL_SEARCH_URL,
            )
        )
    elif kind == SERIES:
        labels = ("No Title", "With Title")
        for label, query in zip(labels, queries):
            streams.append(
                StreamRecord(
                    title=f"🔍 {label}: See all results on Google...",
                    external_url=build_search_url(query, settings.google_search_url),
                )
            )
    else:
        streams.append(
            StreamRecord(
                title="🔍 See all results on Google...",
                external_url=build_search_url(queries[0], settings.google_search_url),
            )
        )

    if metadata and metadata.imdb_id:
        streams.append(
            StreamRecord(
                title="ℹ️ View on IMDb",
                external_url=settings.imdb_title_url.format(imdb_id=metadata.imdb_id),
            )
        )
    elif metadata and metadata.tmdb_id:
        media_path = "movie" if kind == MOVIE else "tv"
        streams.append(
            StreamRecord(
                title="ℹ️ View on TMDb",
                external_url=f"{settings.tmdb_web_url}/{media_path}/{metadata.tmdb_id}",
            )
        )
    return streams


class StreamHandler:
    """Resolve streams for a movie or episode identifier.

    ``get_streams`` never raises: every failure is logged and the response
    degrades to the deterministic fallback links. Each call owns its own
    metadata, seen-set and candidate list, so calls may run concurrently.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        resolver: MetadataResolver | None = None,
        scraper: GoogleVideoScraper | None = None,
        http: HttpClient | None = None,
    ) -> None:
        self.settings = settings
        if resolver is None or scraper is None:
            http = http or HttpClient(settings)
        self.resolver = resolver or MetadataResolver(settings, http=http)
        self.scraper = scraper or GoogleVideoScraper(settings, http)

    def get_streams(self, kind: str, identifier: str, credentials: ApiCredentials) -> list[StreamRecord]:
        started = time.monotonic()
        kind = str(kind or "").strip().lower()
        metadata = None
        streams: list[StreamRecord] = []

        logger.info("[HANDLER] request_started kind=%s id=%s", kind, identifier)
        try:
            metadata = self._resolve_metadata(kind, identifier, credentials)
            streams.extend(self._matched_streams(metadata, kind))
        except Exception:
            logger.exception("[HANDLER] request_failed kind=%s id=%s", kind, identifier)

        try:
            streams.extend(fallback_streams(metadata, kind, self.settings))
        except Exception:
            logger.exception("[HANDLER] fallback_failed kind=%s id=%s", kind, identifier)
            streams.append(
                StreamRecord(
                    title="🔍 Metadata failed, click to search Google manually",
                    external_url=MANUAL_SEARCH_URL,
                )
            )

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "[HANDLER] request_completed kind=%s id=%s streams=%s elapsed_ms=%s",
            kind,
            identifier,
            len(streams),
            elapsed_ms,
        )
        return streams

    async def get_streams_async(self, kind: str, identifier: str, credentials: ApiCredentials) -> list[StreamRecord]:
        return await anyio.to_thread.run_sync(functools.partial(self.get_streams, kind, identifier, credentials))

    def _resolve_metadata(self, kind, identifier, credentials) -> Metadata:
        content_id = ContentIdentifier.parse(kind, identifier)
        metadata = self.resolver.resolve(content_id, credentials)
        if content_id.is_series and metadata.imdb_id and not metadata.episode_title:
            episode_title = self.resolver.scrape_episode_title(metadata)
            if episode_title:
                logger.info("[HANDLER] episode_title_scraped id=%s title=%r", identifier, episode_title)
            else:
                logger.info("[HANDLER] episode_title_missing id=%s", identifier)
        return metadata

    def _matched_streams(self, metadata: Metadata, kind: str) -> list[StreamRecord]:
        queries = build_search_queries(metadata, kind)
        if not queries:
            logger.warning("[HANDLER] no_title id=%s skipping search", metadata.raw_id)
            return []
        for position, query in enumerate(queries, start=1):
            logger.info("[HANDLER] query %s: %s", position, query)

        scraped = self.scraper.scrape(queries)
        for stat in scraped.stats:
            logger.info("[HANDLER] query_stats query=%r count=%s error=%s", stat.query, stat.count, stat.error)
        logger.info("[HANDLER] unique_results=%s", len(scraped.candidates))

        ranked = rank_candidates(
            [score_candidate(candidate, metadata, kind, self.settings) for candidate in scraped.candidates]
        )
        if self.settings.detailed_scoring_logs:
            for position, scored in enumerate(ranked[:_DETAILED_LOG_LIMIT], start=1):
                logger.info(
                    "[HANDLER] result %s: %r score=%.2f breakdown=%s",
                    position,
                    scored.title,
                    scored.score,
                    format_breakdown_for_log(scored),
                )

        selected = select_top_candidates(
            ranked,
            max_results=self.settings.selection.max_results,
            min_score=self.settings.selection.min_score,
        )
        for scored in selected:
            logger.info("[HANDLER] selected %r score=%.2f url=%s", scored.title, scored.score, scored.url)
        if not selected:
            logger.info("[HANDLER] no_eligible_candidates id=%s", metadata.raw_id)
        suffixes = self.settings.platform_title_suffixes
        return [format_stream(scored, suffixes) for scored in selected]
