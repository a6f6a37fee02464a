"""Application settings for stream resolution."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

TMDB_BASE_URL = "https://api.themoviedb.org/3"
TMDB_WEB_URL = "https://www.themoviedb.org"
OMDB_BASE_URL = "http://www.omdbapi.com/"
IMDB_TITLE_URL = "https://www.imdb.com/title/{imdb_id}/"
IMDB_EPISODES_URL = "https://www.imdb.com/title/{imdb_id}/episodes?season={season}"
GOOGLE_SEARCH_URL = "https://www.google.com/search"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/108.0.0.0 Safari/537.36"
)
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_SECONDS = 2.0

WHITELISTED_DOMAINS = (
    "youtube.com",
    "dailymotion.com",
    "vimeo.com",
    "archive.org",
    "facebook.com",
    "ok.ru",
)

# Platform names that search results append to titles ("Movie - YouTube").
PLATFORM_TITLE_SUFFIXES = (
    "video Dailymotion",
    "Dailymotion",
    "YouTube",
    "Facebook",
    "Vimeo",
    "Internet Archive",
    "OK.ru",
)


@dataclass(frozen=True)
class ApiCredentials:
    tmdb_api_key: str | None = None
    omdb_api_key: str | None = None


@dataclass(frozen=True)
class ScoringWeights:
    google_rank_bonus: float = 5.0
    rank_horizon: int = 5
    title_match: float = 6.0
    title_partial_mismatch_penalty: float = -5.0
    episode_number_match: float = 5.0
    episode_title_match: float = 5.0
    season_number_bonus: float = 2.0
    duration_match: float = 6.0
    # Must exceed the sum of every other positive weight.
    duration_mismatch_penalty: float = -25.0
    whitelist_bonus: float = 1.0


@dataclass(frozen=True)
class DurationTolerances:
    movie_minutes: float = 20.0
    series_minutes: float = 3.0


@dataclass(frozen=True)
class SelectionPolicy:
    max_results: int = 2
    # Candidates must score strictly above this to be promoted.
    min_score: float = 0.0


@dataclass(frozen=True)
class GoogleSelectors:
    result_item: tuple[str, ...] = ("div.vt6azd", "div.MjjYud", "div.g")
    link: tuple[str, ...] = ("a[href^='http']", "a[href^='/url']", "a[href]")
    title: tuple[str, ...] = ("h3.LC20lb", "h3", "div[role='heading']")
    source: tuple[str, ...] = ("cite", "span.VuuXrf")
    duration: tuple[str, ...] = (".c8rnLc span", ".O1CVkc", "div.J1mWY div", "span.k1U36b")


@dataclass(frozen=True)
class ImdbSelectors:
    title: tuple[str, ...] = (
        "h1[data-testid='hero__pageTitle'] span",
        "h1[data-testid='hero-title-block__title']",
        "div.title_wrapper h1",
        "h1",
    )
    year: tuple[str, ...] = (
        "a[href*='releaseinfo']",
        "ul[data-testid='hero-title-block__metadata'] li",
        "span#titleYear a",
    )
    runtime: tuple[str, ...] = (
        "li[data-testid='title-techspec_runtime'] div",
        "ul[data-testid='hero-title-block__metadata'] li",
        "div.subtext time",
        "time",
    )
    episode_list_item: tuple[str, ...] = (
        "article.episode-item-wrapper",
        "div.list_item",
    )
    episode_number: tuple[str, ...] = ("meta[itemprop='episodeNumber']",)
    episode_marker: tuple[str, ...] = ("div.ipc-title__text", "h4")
    episode_title: tuple[str, ...] = (
        "a[itemprop='name']",
        "div.ipc-title__text",
        "h4 a",
    )


@dataclass(frozen=True)
class Settings:
    tmdb_base_url: str = TMDB_BASE_URL
    tmdb_web_url: str = TMDB_WEB_URL
    omdb_base_url: str = OMDB_BASE_URL
    imdb_title_url: str = IMDB_TITLE_URL
    imdb_episodes_url: str = IMDB_EPISODES_URL
    google_search_url: str = GOOGLE_SEARCH_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    proxy_url: str | None = None
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    whitelisted_domains: tuple[str, ...] = WHITELISTED_DOMAINS
    platform_title_suffixes: tuple[str, ...] = PLATFORM_TITLE_SUFFIXES
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    tolerances: DurationTolerances = field(default_factory=DurationTolerances)
    selection: SelectionPolicy = field(default_factory=SelectionPolicy)
    google_selectors: GoogleSelectors = field(default_factory=GoogleSelectors)
    imdb_selectors: ImdbSelectors = field(default_factory=ImdbSelectors)
    http_debug: bool = False
    detailed_scoring_logs: bool = False


def _env_bool(env, key, default=False):
    raw = env.get(key)
    if raw is None:
        return default
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


def _env_float(env, key, default):
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(env, key, default):
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings(env=None) -> Settings:
    """Build the process-wide settings from environment variables."""
    env = os.environ if env is None else env
    proxy_url = (env.get("ADDON_PROXY") or "").strip() or None
    return Settings(
        timeout_seconds=_env_float(env, "HTTP_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        proxy_url=proxy_url,
        retry_attempts=max(1, _env_int(env, "HTTP_RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS)),
        retry_delay_seconds=max(0.0, _env_float(env, "HTTP_RETRY_DELAY_SECONDS", DEFAULT_RETRY_DELAY_SECONDS)),
        selection=SelectionPolicy(
            max_results=max(1, _env_int(env, "STREAM_MAX_RESULTS", SelectionPolicy.max_results)),
            min_score=_env_float(env, "STREAM_MIN_SCORE", SelectionPolicy.min_score),
        ),
        http_debug=_env_bool(env, "HTTP_DEBUG"),
        detailed_scoring_logs=_env_bool(env, "DETAILED_SCORING_LOGS"),
    )


def load_credentials(env=None) -> ApiCredentials:
    env = os.environ if env is None else env
    return ApiCredentials(
        tmdb_api_key=(env.get("TMDB_API_KEY") or "").strip() or None,
        omdb_api_key=(env.get("OMDB_API_KEY") or "").strip() or None,
    )
