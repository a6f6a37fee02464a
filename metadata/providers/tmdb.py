import logging

from metadata.merge import normalize_string, parse_runtime_minutes, parse_year
from metadata.providers.base import EpisodeRecord, ProviderClient, ProviderRecord
from metadata.types import MOVIE

logger = logging.getLogger(__name__)


def _media_path(kind):
    return "movie" if kind == MOVIE else "tv"


def _str_id(value):
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


class TmdbClient(ProviderClient):
    """Primary metadata provider (TMDb v3)."""

    name = "tmdb"

    def find_by_imdb_id(self, imdb_id, kind, api_key) -> ProviderRecord | None:
        if not imdb_id or not api_key:
            return None
        payload = self._fetch_json(
            f"{self.settings.tmdb_base_url}/find/{imdb_id}",
            params={"api_key": api_key, "external_source": "imdb_id"},
            label="find",
        )
        if not payload:
            return None
        results = payload.get("movie_results" if kind == MOVIE else "tv_results") or []
        if not results or not isinstance(results[0], dict):
            logger.info("[TMDB] find imdb_id=%s kind=%s results=0", imdb_id, kind)
            return None
        first = results[0]
        return {
            "tmdb_id": _str_id(first.get("id")),
            "imdb_id": imdb_id,
            "title": normalize_string(first.get("title") if kind == MOVIE else first.get("name")),
            "year": parse_year(first.get("release_date") if kind == MOVIE else first.get("first_air_date")),
        }

    def details(self, tmdb_id, kind, api_key) -> ProviderRecord | None:
        if not tmdb_id or not api_key:
            return None
        payload = self._fetch_json(
            f"{self.settings.tmdb_base_url}/{_media_path(kind)}/{tmdb_id}",
            params={"api_key": api_key, "append_to_response": "external_ids"},
            label="details",
        )
        if not payload:
            return None
        if kind == MOVIE:
            title = payload.get("title")
            release_date = payload.get("release_date")
            runtime = payload.get("runtime")
        else:
            title = payload.get("name")
            release_date = payload.get("first_air_date")
            runtime = payload.get("episode_run_time")
        external_ids = payload.get("external_ids") or {}
        return {
            "tmdb_id": _str_id(payload.get("id")) or _str_id(tmdb_id),
            "imdb_id": normalize_string(external_ids.get("imdb_id") or payload.get("imdb_id")),
            "title": normalize_string(title),
            "year": parse_year(release_date),
            "runtime": parse_runtime_minutes(runtime),
        }

    def episode_details(self, tmdb_id, season, episode, api_key) -> EpisodeRecord | None:
        if not tmdb_id or season is None or episode is None or not api_key:
            return None
        payload = self._fetch_json(
            f"{self.settings.tmdb_base_url}/tv/{tmdb_id}/season/{int(season)}/episode/{int(episode)}",
            params={"api_key": api_key},
            label="episode",
        )
        if not payload:
            return None
        return {
            "episode_title": normalize_string(payload.get("name")),
            "runtime": parse_runtime_minutes(payload.get("runtime")),
        }
