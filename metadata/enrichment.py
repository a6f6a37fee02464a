"""Metadata enrichment waterfall: TMDb -> OMDb -> IMDb scrape -> synthetic."""

from __future__ import annotations

import logging
from datetime import datetime

from config.settings import ApiCredentials, Settings
from engine.http_client import HttpClient
from metadata.merge import merge_field, merge_fields
from metadata.providers.imdb import ImdbScraper
from metadata.providers.omdb import OmdbClient
from metadata.providers.tmdb import TmdbClient
from metadata.types import ContentIdentifier, Metadata

logger = logging.getLogger(__name__)


class MetadataResolver:
    """Resolve a content identifier into display metadata.

    Phases run in priority order and only while the fields they supply are
    still missing. Each phase is isolated: a failure is logged and the next
    phase runs. Fields are merged first-write-wins, so a lower-priority
    source never replaces what a higher-priority one already provided.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        http: HttpClient | None = None,
        tmdb: TmdbClient | None = None,
        omdb: OmdbClient | None = None,
        imdb: ImdbScraper | None = None,
        clock=None,
    ) -> None:
        self.settings = settings
        http = http or HttpClient(settings)
        self.tmdb = tmdb or TmdbClient(settings, http)
        self.omdb = omdb or OmdbClient(settings, http)
        self.imdb = imdb or ImdbScraper(settings, http)
        self._clock = clock or datetime.now

    def resolve(self, content_id: ContentIdentifier, credentials: ApiCredentials) -> Metadata:
        metadata = Metadata.from_content_id(content_id)
        kind = content_id.kind

        self._run_phase("cross_reference", metadata, lambda: self._cross_reference(metadata, kind, credentials))
        self._run_phase("primary_details", metadata, lambda: self._primary_details(metadata, kind, credentials))
        self._run_phase("secondary_fallback", metadata, lambda: self._secondary_fallback(metadata, credentials))
        self._run_phase("scrape_fallback", metadata, lambda: self._scrape_fallback(metadata))
        self._run_phase("synthetic_fallback", metadata, lambda: self._synthetic_fallback(metadata))
        if content_id.is_series:
            self._run_phase("episode_details", metadata, lambda: self._episode_details(metadata, credentials))

        logger.info(
            "metadata_resolved id=%s title=%r year=%s runtime=%s episode_title=%r synthetic=%s",
            metadata.raw_id,
            metadata.title,
            metadata.year,
            metadata.runtime,
            metadata.episode_title,
            metadata.synthetic,
        )
        return metadata

    def scrape_episode_title(self, metadata: Metadata) -> str | None:
        """Last-resort episode title lookup from the IMDb season listing."""
        if metadata.episode_title:
            return metadata.episode_title
        if not metadata.imdb_id or metadata.season is None or metadata.episode is None:
            return None
        try:
            record = self.imdb.episode_title(metadata.imdb_id, metadata.season, metadata.episode)
        except Exception as exc:
            logger.warning(
                "metadata_phase_failed phase=episode_scrape id=%s error=%s", metadata.raw_id, exc
            )
            return None
        if record:
            merge_field(metadata, "episode_title", record.get("episode_title"), "imdb_scrape")
        return metadata.episode_title

    def _run_phase(self, phase, metadata, fn):
        try:
            fn()
        except Exception as exc:
            logger.warning("metadata_phase_failed phase=%s id=%s error=%s", phase, metadata.raw_id, exc)

    def _cross_reference(self, metadata, kind, credentials):
        if metadata.tmdb_id or not metadata.imdb_id:
            return
        if not credentials.tmdb_api_key:
            logger.info("metadata_phase_skipped phase=cross_reference reason=missing_tmdb_key")
            return
        record = self.tmdb.find_by_imdb_id(metadata.imdb_id, kind, credentials.tmdb_api_key)
        merge_fields(metadata, "tmdb_find", record)

    def _primary_details(self, metadata, kind, credentials):
        if not metadata.tmdb_id:
            return
        if metadata.is_complete() and metadata.imdb_id:
            return
        if not credentials.tmdb_api_key:
            logger.info("metadata_phase_skipped phase=primary_details reason=missing_tmdb_key")
            return
        record = self.tmdb.details(metadata.tmdb_id, kind, credentials.tmdb_api_key)
        merge_fields(metadata, "tmdb", record)

    def _secondary_fallback(self, metadata, credentials):
        if metadata.is_complete() or not metadata.imdb_id:
            return
        if not credentials.omdb_api_key:
            logger.info("metadata_phase_skipped phase=secondary_fallback reason=missing_omdb_key")
            return
        record = self.omdb.by_imdb_id(metadata.imdb_id, credentials.omdb_api_key)
        merge_fields(metadata, "omdb", record)

    def _scrape_fallback(self, metadata):
        if metadata.title or not metadata.imdb_id:
            return
        record = self.imdb.title_page(metadata.imdb_id)
        merge_fields(metadata, "imdb_scrape", record)

    def _synthetic_fallback(self, metadata):
        if metadata.title:
            return
        logger.warning("metadata_synthetic_fallback id=%s", metadata.raw_id)
        merge_field(metadata, "title", metadata.raw_id, "synthetic")
        merge_field(metadata, "year", self._clock().year, "synthetic")
        metadata.synthetic = True

    def _episode_details(self, metadata, credentials):
        if metadata.season is None or metadata.episode is None:
            return
        lookups = []
        if metadata.tmdb_id and credentials.tmdb_api_key:
            lookups.append((
                "tmdb_episode",
                self.tmdb.episode_details(
                    metadata.tmdb_id, metadata.season, metadata.episode, credentials.tmdb_api_key
                ),
            ))
        found_title = any(record and record.get("episode_title") for _, record in lookups)
        if not found_title and metadata.imdb_id and credentials.omdb_api_key:
            lookups.append((
                "omdb_episode",
                self.omdb.episode(metadata.imdb_id, metadata.season, metadata.episode, credentials.omdb_api_key),
            ))

        # Episode runtime replaces the series runtime; first episode source wins.
        runtime_replaced = False
        for source, record in lookups:
            if not record:
                continue
            merge_field(metadata, "episode_title", record.get("episode_title"), source)
            if not runtime_replaced:
                runtime_replaced = merge_field(metadata, "runtime", record.get("runtime"), source, overwrite=True)
