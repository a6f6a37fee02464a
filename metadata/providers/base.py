from typing import Any, TypedDict

from config.settings import Settings
from engine.http_client import HttpClient, is_transient_error
from engine.retry import call_with_retry


class ProviderRecord(TypedDict, total=False):
    tmdb_id: str | None
    imdb_id: str | None
    title: str | None
    year: int | None
    runtime: int | None


class EpisodeRecord(TypedDict, total=False):
    episode_title: str | None
    runtime: int | None


class ProviderClient:
    """Shared plumbing for metadata sources: every fetch goes through the retry policy."""

    name = ""

    def __init__(self, settings: Settings, http: HttpClient) -> None:
        self.settings = settings
        self.http = http

    def _fetch_json(self, url: str, *, params: dict[str, Any] | None = None, label: str = "") -> dict | None:
        return call_with_retry(
            lambda: self.http.get_json(url, params=params),
            attempts=self.settings.retry_attempts,
            delay=self.settings.retry_delay_seconds,
            label=f"{self.name}:{label}",
            retry_on=is_transient_error,
        )

    def _fetch_text(self, url: str, *, params: dict[str, Any] | None = None, label: str = "") -> str | None:
        return call_with_retry(
            lambda: self.http.get_text(url, params=params),
            attempts=self.settings.retry_attempts,
            delay=self.settings.retry_delay_seconds,
            label=f"{self.name}:{label}",
            retry_on=is_transient_error,
        )
