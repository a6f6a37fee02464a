import logging

from metadata.merge import normalize_string, parse_runtime_minutes, parse_year
from metadata.providers.base import EpisodeRecord, ProviderClient, ProviderRecord

logger = logging.getLogger(__name__)


class OmdbClient(ProviderClient):
    """Secondary metadata provider. OMDb reports success through ``Response == "True"``."""

    name = "omdb"

    def _lookup(self, params, label):
        payload = self._fetch_json(self.settings.omdb_base_url, params=params, label=label)
        if not payload:
            return None
        if str(payload.get("Response")) != "True":
            logger.info("[OMDB] lookup=%s response=false error=%s", label, payload.get("Error"))
            return None
        return payload

    def by_imdb_id(self, imdb_id, api_key) -> ProviderRecord | None:
        if not imdb_id or not api_key:
            return None
        payload = self._lookup({"apikey": api_key, "i": imdb_id}, "title")
        if not payload:
            return None
        return {
            "imdb_id": normalize_string(payload.get("imdbID")) or imdb_id,
            "title": normalize_string(payload.get("Title")),
            "year": parse_year(payload.get("Year")),
            "runtime": parse_runtime_minutes(payload.get("Runtime")),
        }

    def episode(self, imdb_id, season, episode, api_key) -> EpisodeRecord | None:
        if not imdb_id or season is None or episode is None or not api_key:
            return None
        payload = self._lookup(
            {"apikey": api_key, "i": imdb_id, "Season": int(season), "Episode": int(episode)},
            "episode",
        )
        if not payload:
            return None
        return {
            "episode_title": normalize_string(payload.get("Title")),
            "runtime": parse_runtime_minutes(payload.get("Runtime")),
        }
