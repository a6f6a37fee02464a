import requests

from config.settings import Settings
from metadata.providers.imdb import ImdbScraper, parse_episode_listing, parse_title_page
from metadata.providers.omdb import OmdbClient
from metadata.providers.tmdb import TmdbClient
from metadata.types import MOVIE, SERIES

SETTINGS = Settings(retry_attempts=2, retry_delay_seconds=0.0)
TMDB = SETTINGS.tmdb_base_url


class _FakeHttp:
    """Serves canned payloads keyed by URL; unknown URLs answer 404."""

    def __init__(self, json_by_url=None, text_by_url=None):
        self.json_by_url = json_by_url or {}
        self.text_by_url = text_by_url or {}
        self.calls = []

    def get_json(self, url, params=None):
        self.calls.append((url, dict(params or {})))
        if url not in self.json_by_url:
            raise requests.HTTPError(f"HTTP 404 for {url}")
        return self.json_by_url[url]

    def get_text(self, url, params=None):
        self.calls.append((url, dict(params or {})))
        if url not in self.text_by_url:
            raise requests.HTTPError(f"HTTP 404 for {url}")
        return self.text_by_url[url]


TITLE_PAGE = """
<html><body>
  <h1 data-testid="hero__pageTitle"><span>Inception</span></h1>
  <ul data-testid="hero-title-block__metadata">
    <li><a href="/title/tt1375666/releaseinfo">2010</a></li>
    <li>PG-13</li>
    <li>2h 28m</li>
  </ul>
</body></html>
"""

LEGACY_TITLE_PAGE = """
<html><body>
  <div class="title_wrapper"><h1>Inception</h1></div>
  <span id="titleYear">(<a href="/year/2010/">2010</a>)</span>
  <div class="subtext"><time datetime="PT148M">2h 28min</time></div>
</body></html>
"""

EPISODES_PAGE = """
<html><body>
  <article class="episode-item-wrapper"><div class="ipc-title__text">S1.E1 ∙ Winter Is Coming</div></article>
  <article class="episode-item-wrapper"><div class="ipc-title__text">S1.E2 ∙ The Kingsroad</div></article>
</body></html>
"""

LEGACY_EPISODES_PAGE = """
<html><body>
  <div class="list_item">
    <meta itemprop="episodeNumber" content="1"/>
    <strong><a itemprop="name" href="/title/tt1/">Winter Is Coming</a></strong>
  </div>
  <div class="list_item">
    <meta itemprop="episodeNumber" content="2"/>
    <strong><a itemprop="name" href="/title/tt2/">The Kingsroad</a></strong>
  </div>
</body></html>
"""


def test_tmdb_find_by_imdb_id_uses_kind_specific_results() -> None:
    http = _FakeHttp(
        json_by_url={
            f"{TMDB}/find/tt1375666": {
                "movie_results": [{"id": 27205, "title": "Inception", "release_date": "2010-07-15"}],
                "tv_results": [],
            }
        }
    )
    client = TmdbClient(SETTINGS, http)

    movie = client.find_by_imdb_id("tt1375666", MOVIE, "key")
    series = client.find_by_imdb_id("tt1375666", SERIES, "key")

    assert movie == {"tmdb_id": "27205", "imdb_id": "tt1375666", "title": "Inception", "year": 2010}
    assert series is None
    assert http.calls[0][1] == {"api_key": "key", "external_source": "imdb_id"}


def test_tmdb_series_details_use_episode_run_time() -> None:
    http = _FakeHttp(
        json_by_url={
            f"{TMDB}/tv/1399": {
                "id": 1399,
                "name": "Game of Thrones",
                "first_air_date": "2011-04-17",
                "episode_run_time": [60, 58],
                "external_ids": {"imdb_id": "tt0944947"},
            }
        }
    )

    record = TmdbClient(SETTINGS, http).details("1399", SERIES, "key")

    assert record == {
        "tmdb_id": "1399",
        "imdb_id": "tt0944947",
        "title": "Game of Thrones",
        "year": 2011,
        "runtime": 60,
    }


def test_tmdb_episode_details() -> None:
    http = _FakeHttp(
        json_by_url={f"{TMDB}/tv/1399/season/1/episode/1": {"name": "Winter Is Coming", "runtime": 62}}
    )

    record = TmdbClient(SETTINGS, http).episode_details("1399", 1, 1, "key")

    assert record == {"episode_title": "Winter Is Coming", "runtime": 62}


def test_tmdb_failure_returns_none_after_retries() -> None:
    http = _FakeHttp()

    assert TmdbClient(SETTINGS, http).details("1", MOVIE, "key") is None
    assert len(http.calls) == 2


def test_tmdb_requires_api_key() -> None:
    http = _FakeHttp()

    assert TmdbClient(SETTINGS, http).find_by_imdb_id("tt1", MOVIE, None) is None
    assert http.calls == []


def test_omdb_by_imdb_id_parses_text_fields() -> None:
    http = _FakeHttp(
        json_by_url={
            SETTINGS.omdb_base_url: {
                "Response": "True",
                "Title": "Inception",
                "Year": "2010",
                "Runtime": "N/A",
                "imdbID": "tt1375666",
            }
        }
    )

    record = OmdbClient(SETTINGS, http).by_imdb_id("tt1375666", "key")

    assert record == {"imdb_id": "tt1375666", "title": "Inception", "year": 2010, "runtime": None}
    assert http.calls[0][1] == {"apikey": "key", "i": "tt1375666"}


def test_omdb_response_false_is_a_miss() -> None:
    http = _FakeHttp(json_by_url={SETTINGS.omdb_base_url: {"Response": "False", "Error": "Incorrect IMDb ID."}})

    assert OmdbClient(SETTINGS, http).by_imdb_id("tt0000000", "key") is None
    assert OmdbClient(SETTINGS, http).episode("tt0000000", 1, 1, "key") is None


def test_omdb_episode_lookup_params() -> None:
    http = _FakeHttp(
        json_by_url={SETTINGS.omdb_base_url: {"Response": "True", "Title": "Pilot", "Runtime": "44 min"}}
    )

    record = OmdbClient(SETTINGS, http).episode("tt0000002", 2, 3, "key")

    assert record == {"episode_title": "Pilot", "runtime": 44}
    assert http.calls[0][1] == {"apikey": "key", "i": "tt0000002", "Season": 2, "Episode": 3}


def test_parse_title_page_current_and_legacy_markup() -> None:
    expected = {"title": "Inception", "year": 2010, "runtime": 148}

    assert parse_title_page(TITLE_PAGE, SETTINGS.imdb_selectors) == expected
    assert parse_title_page(LEGACY_TITLE_PAGE, SETTINGS.imdb_selectors) == expected
    assert parse_title_page("<html><body></body></html>", SETTINGS.imdb_selectors) is None


def test_parse_episode_listing_current_and_legacy_markup() -> None:
    selectors = SETTINGS.imdb_selectors

    assert parse_episode_listing(EPISODES_PAGE, 1, 2, selectors) == "The Kingsroad"
    assert parse_episode_listing(LEGACY_EPISODES_PAGE, 1, 2, selectors) == "The Kingsroad"
    assert parse_episode_listing(EPISODES_PAGE, 1, 9, selectors) is None
    assert parse_episode_listing(EPISODES_PAGE, 2, 1, selectors) is None


def test_imdb_scraper_fetches_season_listing() -> None:
    url = SETTINGS.imdb_episodes_url.format(imdb_id="tt0944947", season=1)
    http = _FakeHttp(text_by_url={url: EPISODES_PAGE})
    scraper = ImdbScraper(SETTINGS, http)

    assert scraper.episode_title("tt0944947", 1, 1) == {"episode_title": "Winter Is Coming"}
    assert scraper.episode_title("tt0944947", 1, 7) is None


def test_imdb_scraper_title_page() -> None:
    http = _FakeHttp(text_by_url={SETTINGS.imdb_title_url.format(imdb_id="tt1375666"): TITLE_PAGE})

    assert ImdbScraper(SETTINGS, http).title_page("tt1375666") == {
        "title": "Inception",
        "year": 2010,
        "runtime": 148,
    }
