import logging
from dataclasses import dataclass, field
from urllib.parse import parse_qs, urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup

from config.settings import GoogleSelectors, Settings
from engine.http_client import HttpClient, is_transient_error
from engine.retry import call_with_retry
from engine.search_queries import LONG_DURATION_FILTER, VIDEO_VERTICAL
from engine.selectors import select_all, select_first, select_first_text

logger = logging.getLogger(__name__)

_REDIRECT_PATHS = ("/url", "/imgres")
_REDIRECT_PARAMS = ("q", "url", "imgrefurl")
_BREADCRUMB_SEPARATOR = "›"


@dataclass(frozen=True)
class CandidateResult:
    title: str
    url: str
    source: str
    duration: str
    # Position within the originating query's result containers.
    index: int


@dataclass(frozen=True)
class QueryStats:
    query: str
    count: int
    error: str | None = None


@dataclass
class ScrapeResult:
    candidates: list[CandidateResult] = field(default_factory=list)
    stats: list[QueryStats] = field(default_factory=list)


def _is_http_url(value):
    if not value or not isinstance(value, str):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def normalize_url(url):
    """Dedup key for a result URL: lower-cased scheme and host, no fragment."""
    parsed = urlparse(url)
    return urlunparse((parsed.scheme.lower(), parsed.netloc.lower(), parsed.path, parsed.params, parsed.query, ""))


def unwrap_redirect(href, base_url):
    """Resolve a result link, unwrapping ``/url?q=<target>`` redirect wrappers."""
    if not href:
        return None
    href = href.strip()
    parsed = urlparse(urljoin(base_url, href))
    is_redirect = parsed.path in _REDIRECT_PATHS and (
        not _is_http_url(href) or parsed.netloc == urlparse(base_url).netloc
    )
    if is_redirect:
        params = parse_qs(parsed.query)
        for key in _REDIRECT_PARAMS:
            values = params.get(key)
            if values and _is_http_url(values[0]):
                return values[0]
        return None
    # Relative and same-host links point back into the search engine itself.
    if not _is_http_url(href) or urlparse(href).netloc == urlparse(base_url).netloc:
        return None
    return href


def source_label(cite_text, url):
    """Site label from a citation such as ``www.youtube.com › watch``."""
    text = (cite_text or "").split(_BREADCRUMB_SEPARATOR, 1)[0].strip()
    if not text:
        text = urlparse(url).netloc
    if text.lower().startswith("www."):
        text = text[4:]
    return text.strip()


def extract_candidates(html, seen_urls, selectors: GoogleSelectors, *, base_url="https://www.google.com/"):
    """Extract organic video results from one search results page.

    ``seen_urls`` is shared by every query of a request, so a URL already
    returned by an earlier query is skipped. Containers without a usable
    absolute link or without a title are skipped too.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    results = []
    for index, container in enumerate(select_all(soup, selectors.result_item)):
        link_el = select_first(container, selectors.link)
        url = unwrap_redirect(link_el.get("href") if link_el is not None else None, base_url)
        if not _is_http_url(url):
            continue
        key = normalize_url(url)
        if key in seen_urls:
            continue
        title = select_first_text(container, selectors.title)
        if not title:
            continue
        seen_urls.add(key)
        results.append(
            CandidateResult(
                title=title,
                url=url,
                source=source_label(select_first_text(container, selectors.source), url),
                duration=select_first_text(container, selectors.duration),
                index=index,
            )
        )
    return results


class GoogleVideoScraper:
    """Scrape the search engine's video vertical for candidate links.

    Queries run sequentially. A query that still fails after the retry
    policy is recorded with a zero count and scraping moves on; no failure
    ever escapes ``scrape``.
    """

    source = "google_video"

    def __init__(self, settings: Settings, http: HttpClient | None = None) -> None:
        self.settings = settings
        self.http = http or HttpClient(settings)

    def _fetch(self, query):
        params = {"q": query, "tbs": LONG_DURATION_FILTER, "tbm": VIDEO_VERTICAL}
        return call_with_retry(
            lambda: self.http.get_text(self.settings.google_search_url, params=params),
            attempts=self.settings.retry_attempts,
            delay=self.settings.retry_delay_seconds,
            label=f"{self.source}:{query}",
            retry_on=is_transient_error,
        )

    def scrape(self, queries) -> ScrapeResult:
        result = ScrapeResult()
        seen_urls = set()
        for query in queries or []:
            html = self._fetch(query)
            if html is None:
                logger.error("search_scrape_failed source=%s query=%r", self.source, query)
                result.stats.append(QueryStats(query=query, count=0, error="request failed"))
                continue
            try:
                found = extract_candidates(
                    html,
                    seen_urls,
                    self.settings.google_selectors,
                    base_url=self.settings.google_search_url,
                )
            except Exception as exc:
                logger.exception("search_parse_failed source=%s query=%r", self.source, query)
                result.stats.append(QueryStats(query=query, count=0, error=str(exc)))
                continue
            result.candidates.extend(found)
            result.stats.append(QueryStats(query=query, count=len(found)))
        return result
