import pytest

from metadata.types import MOVIE, SERIES, ContentIdentifier, InvalidContentIdError, Metadata


def test_parse_movie_imdb_id() -> None:
    parsed = ContentIdentifier.parse(MOVIE, "tt1375666")

    assert parsed.imdb_id == "tt1375666"
    assert parsed.tmdb_id is None
    assert parsed.season is None
    assert parsed.is_series is False


def test_parse_series_imdb_id_with_episode() -> None:
    parsed = ContentIdentifier.parse(SERIES, "tt0944947:1:5")

    assert parsed.imdb_id == "tt0944947"
    assert parsed.season == 1
    assert parsed.episode == 5
    assert parsed.is_series is True
    assert parsed.raw == "tt0944947:1:5"


def test_parse_tmdb_forms() -> None:
    prefixed = ContentIdentifier.parse(MOVIE, "tmdb:27205")
    bare = ContentIdentifier.parse(SERIES, "1399:2:3")

    assert prefixed.tmdb_id == "27205"
    assert prefixed.imdb_id is None
    assert bare.tmdb_id == "1399"
    assert (bare.season, bare.episode) == (2, 3)


@pytest.mark.parametrize(
    "kind, raw",
    [
        (SERIES, "tt0944947"),
        (SERIES, "tt0944947:1"),
        (SERIES, "tt0944947:one:5"),
        (MOVIE, ""),
        (MOVIE, "tmdb:"),
        ("channel", "tt1375666"),
    ],
)
def test_parse_rejects_malformed_identifiers(kind, raw) -> None:
    with pytest.raises(InvalidContentIdError):
        ContentIdentifier.parse(kind, raw)


def test_metadata_from_content_id_records_identifier_sources() -> None:
    metadata = Metadata.from_content_id(ContentIdentifier.parse(SERIES, "tt0944947:1:5"))

    assert metadata.raw_id == "tt0944947:1:5"
    assert metadata.title is None
    assert metadata.sources == {
        "imdb_id": "identifier",
        "season": "identifier",
        "episode": "identifier",
    }
    assert metadata.is_complete() is False
