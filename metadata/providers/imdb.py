"""IMDb HTML scraping used when the API providers cannot supply a field."""

import logging
import re

from bs4 import BeautifulSoup

from engine.selectors import select_all, select_first, select_first_text
from metadata.merge import normalize_string, parse_runtime_minutes, parse_year
from metadata.providers.base import EpisodeRecord, ProviderClient, ProviderRecord

logger = logging.getLogger(__name__)

_YEAR_TEXT_RE = re.compile(r"\b(19|20)\d{2}\b")
_RUNTIME_TEXT_RE = re.compile(r"\d+\s*(h|hr|hours?|m|min|minutes?)\b", re.IGNORECASE)
_EPISODE_MARKER_RE = re.compile(r"S(\d+)\s*[.,]?\s*E(\d+)\s*(?:[∙·|:\-]\s*)?(.*)", re.IGNORECASE)


def _looks_like_year(text):
    return bool(_YEAR_TEXT_RE.search(text))


def _looks_like_runtime(text):
    return bool(_RUNTIME_TEXT_RE.search(text))


class ImdbScraper(ProviderClient):
    name = "imdb"

    def title_page(self, imdb_id) -> ProviderRecord | None:
        if not imdb_id:
            return None
        html = self._fetch_text(self.settings.imdb_title_url.format(imdb_id=imdb_id), label="title")
        if not html:
            return None
        return parse_title_page(html, self.settings.imdb_selectors)

    def episode_title(self, imdb_id, season, episode) -> EpisodeRecord | None:
        if not imdb_id or season is None or episode is None:
            return None
        url = self.settings.imdb_episodes_url.format(imdb_id=imdb_id, season=int(season))
        html = self._fetch_text(url, label="episodes")
        if not html:
            return None
        title = parse_episode_listing(html, int(season), int(episode), self.settings.imdb_selectors)
        if not title:
            logger.info("[IMDB] episode not found imdb_id=%s season=%s episode=%s", imdb_id, season, episode)
            return None
        return {"episode_title": title}


def parse_title_page(html, selectors) -> ProviderRecord | None:
    soup = BeautifulSoup(html, "html.parser")
    title = normalize_string(select_first_text(soup, selectors.title))
    year_text = select_first_text(soup, selectors.year, accept=_looks_like_year)
    runtime_text = select_first_text(soup, selectors.runtime, accept=_looks_like_runtime)
    record: ProviderRecord = {
        "title": title,
        "year": parse_year(_YEAR_TEXT_RE.search(year_text).group(0)) if year_text else None,
        "runtime": parse_runtime_minutes(runtime_text) if runtime_text else None,
    }
    if not any(record.values()):
        return None
    return record


def parse_episode_listing(html, season, episode, selectors) -> str | None:
    """Find the title of ``episode`` in an IMDb season listing.

    Newer markup carries ``S1.E5 ∙ Title`` markers in the heading; older
    markup exposes ``meta[itemprop=episodeNumber]`` next to the title link.
    """
    soup = BeautifulSoup(html, "html.parser")
    for item in select_all(soup, selectors.episode_list_item):
        marker_text = select_first_text(item, selectors.episode_marker)
        marker = _EPISODE_MARKER_RE.search(marker_text) if marker_text else None
        if marker:
            if int(marker.group(1)) != season or int(marker.group(2)) != episode:
                continue
            title = normalize_string(marker.group(3))
            if title:
                return title
            continue

        number_el = select_first(item, selectors.episode_number)
        number = number_el.get("content") if number_el is not None else None
        try:
            matches = number is not None and int(str(number).strip()) == episode
        except ValueError:
            matches = False
        if not matches:
            continue
        title = normalize_string(select_first_text(item, selectors.episode_title))
        if title:
            stripped = _EPISODE_MARKER_RE.match(title)
            return normalize_string(stripped.group(3)) if stripped else title
    return None
