"""Content identifiers and the metadata accumulator used by stream resolution."""

from __future__ import annotations

from dataclasses import dataclass, field

MOVIE = "movie"
SERIES = "series"
CONTENT_KINDS = (MOVIE, SERIES)


class InvalidContentIdError(ValueError):
    """Raised when a content identifier string cannot be parsed."""


@dataclass(frozen=True)
class ContentIdentifier:
    """Parsed, immutable form of an identifier such as ``tt0944947:1:5``."""

    kind: str
    raw: str
    imdb_id: str | None = None
    tmdb_id: str | None = None
    season: int | None = None
    episode: int | None = None

    @property
    def is_series(self) -> bool:
        return self.kind == SERIES

    @classmethod
    def parse(cls, kind: str, raw: str) -> "ContentIdentifier":
        """Parse ``raw`` for ``kind``.

        Accepted forms are a bare IMDb id (``tt...``), ``tmdb:<id>`` or a bare
        TMDb id, followed for series by ``:<season>:<episode>``.
        """
        kind = str(kind or "").strip().lower()
        if kind not in CONTENT_KINDS:
            raise InvalidContentIdError(f"unsupported content kind: {kind!r}")
        text = str(raw or "").strip()
        if not text:
            raise InvalidContentIdError("content identifier is empty")

        parts = [part.strip() for part in text.split(":")]
        imdb_id = None
        tmdb_id = None
        if parts[0].lower() == "tmdb":
            if len(parts) < 2 or not parts[1]:
                raise InvalidContentIdError(f"missing TMDb id in {text!r}")
            tmdb_id = parts[1]
            rest = parts[2:]
        elif parts[0].lower().startswith("tt"):
            imdb_id = parts[0].lower()
            rest = parts[1:]
        elif parts[0]:
            tmdb_id = parts[0]
            rest = parts[1:]
        else:
            raise InvalidContentIdError(f"missing id in {text!r}")

        season = None
        episode = None
        if kind == SERIES:
            if len(rest) < 2:
                raise InvalidContentIdError(f"series id needs season and episode: {text!r}")
            try:
                season = int(rest[0])
                episode = int(rest[1])
            except ValueError as exc:
                raise InvalidContentIdError(f"non-numeric season/episode in {text!r}") from exc
            if season < 0 or episode < 0:
                raise InvalidContentIdError(f"negative season/episode in {text!r}")

        return cls(kind=kind, raw=text, imdb_id=imdb_id, tmdb_id=tmdb_id, season=season, episode=episode)


@dataclass
class Metadata:
    """Mutable accumulator filled phase by phase during enrichment."""

    raw_id: str = ""
    imdb_id: str | None = None
    tmdb_id: str | None = None
    title: str | None = None
    year: int | None = None
    runtime: int | None = None
    episode_title: str | None = None
    season: int | None = None
    episode: int | None = None
    synthetic: bool = False
    sources: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_content_id(cls, content_id: ContentIdentifier) -> "Metadata":
        metadata = cls(
            raw_id=content_id.raw,
            imdb_id=content_id.imdb_id,
            tmdb_id=content_id.tmdb_id,
            season=content_id.season,
            episode=content_id.episode,
        )
        for name in ("imdb_id", "tmdb_id", "season", "episode"):
            if getattr(metadata, name) is not None:
                metadata.sources[name] = "identifier"
        return metadata

    def is_complete(self) -> bool:
        return bool(self.title) and self.year is not None and self.runtime is not None


__all__ = [
    "CONTENT_KINDS",
    "ContentIdentifier",
    "InvalidContentIdError",
    "MOVIE",
    "Metadata",
    "SERIES",
]
