import json
import re
import unicodedata
from dataclasses import dataclass, field
from urllib.parse import urlparse

from config.settings import Settings
from engine.search_adapters import CandidateResult
from metadata.types import MOVIE, SERIES, Metadata

BREAKDOWN_KEYS = ("google_rank", "title", "episode_num", "episode_title", "season", "duration", "whitelist")

_PUNCT_RE = re.compile(r"[^\w\s]")
_WS_RE = re.compile(r"\s+")
_DURATION_PART_RE = re.compile(r"^\d+$")
_PARTIAL_TITLE_THRESHOLD = 0.5


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: CandidateResult
    score: float
    breakdown: dict[str, float] = field(default_factory=dict)
    # Minutes between the candidate duration and the runtime; not part of the score.
    duration_diff: float | None = None

    @property
    def title(self):
        return self.candidate.title

    @property
    def url(self):
        return self.candidate.url


def normalize_text(value):
    if not value:
        return ""
    text = unicodedata.normalize("NFKC", str(value)).lower()
    text = _PUNCT_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip()


def tokenize(value):
    normalized = normalize_text(value)
    if not normalized:
        return []
    return normalized.split()


def word_match_score(candidate_title, reference):
    """Share of ``reference`` words present in ``candidate_title`` (0..1).

    The whole normalized reference appearing inside the candidate counts as
    a full match.
    """
    reference_norm = normalize_text(reference)
    candidate_norm = normalize_text(candidate_title)
    if not reference_norm or not candidate_norm:
        return 0.0
    if f" {reference_norm} " in f" {candidate_norm} ":
        return 1.0
    reference_words = reference_norm.split()
    candidate_words = set(candidate_norm.split())
    matched = [word for word in reference_words if word in candidate_words]
    return len(matched) / len(reference_words)


def parse_duration_minutes(value):
    """Parse ``MM:SS`` or ``HH:MM:SS`` into minutes; ``None`` when unparseable."""
    if not value or not isinstance(value, str):
        return None
    parts = [part.strip() for part in value.strip().split(":")]
    if len(parts) not in (2, 3) or not all(_DURATION_PART_RE.match(part) for part in parts):
        return None
    numbers = [int(part) for part in parts]
    if len(numbers) == 3:
        hours, minutes, seconds = numbers
        total = hours * 60 + minutes + seconds / 60
    else:
        minutes, seconds = numbers
        total = minutes + seconds / 60
    # A zero length is a placeholder, not a real duration.
    return total if total > 0 else None


def _episode_pattern(number):
    return re.compile(rf"(?:\bepisode\s*|\bep\.?\s*|(?<![a-z])e)0*{int(number)}(?!\d)", re.IGNORECASE)


def _season_pattern(number):
    return re.compile(rf"(?:\bseason\s*|(?<![a-z])s)0*{int(number)}(?!\d)", re.IGNORECASE)


def _host_matches(url, domains):
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    if not host:
        return False
    for domain in domains:
        domain = domain.lower()
        if host == domain or host.endswith("." + domain):
            return True
    return False


def score_candidate(candidate: CandidateResult, metadata: Metadata, kind: str, settings: Settings) -> ScoredCandidate:
    weights = settings.weights
    breakdown = dict.fromkeys(BREAKDOWN_KEYS, 0.0)
    duration_diff = None

    horizon = max(1, int(weights.rank_horizon))
    breakdown["google_rank"] = max(0.0, weights.google_rank_bonus * (1 - candidate.index / horizon))

    title_ratio = word_match_score(candidate.title, metadata.title)
    breakdown["title"] = title_ratio * weights.title_match
    if title_ratio < _PARTIAL_TITLE_THRESHOLD:
        breakdown["title"] += weights.title_partial_mismatch_penalty

    if kind == SERIES:
        if metadata.episode is not None and _episode_pattern(metadata.episode).search(candidate.title):
            breakdown["episode_num"] = weights.episode_number_match
        if metadata.episode_title:
            breakdown["episode_title"] = (
                word_match_score(candidate.title, metadata.episode_title) * weights.episode_title_match
            )
        if metadata.season is not None and _season_pattern(metadata.season).search(candidate.title):
            breakdown["season"] = weights.season_number_bonus

    if metadata.runtime and metadata.runtime > 0:
        minutes = parse_duration_minutes(candidate.duration)
        if minutes is not None:
            tolerance = settings.tolerances.movie_minutes if kind == MOVIE else settings.tolerances.series_minutes
            duration_diff = abs(minutes - metadata.runtime)
            if tolerance > 0 and duration_diff <= tolerance:
                breakdown["duration"] = weights.duration_match * (1 - duration_diff / tolerance)
            else:
                breakdown["duration"] = weights.duration_mismatch_penalty

    if _host_matches(candidate.url, settings.whitelisted_domains):
        breakdown["whitelist"] = weights.whitelist_bonus

    return ScoredCandidate(
        candidate=candidate,
        score=sum(breakdown.values()),
        breakdown=breakdown,
        duration_diff=duration_diff,
    )


def rank_candidates(scored_candidates):
    """Sort by descending score; equal scores keep discovery order."""
    return sorted(scored_candidates or [], key=lambda item: -item.score)


def select_top_candidates(ranked_candidates, *, max_results=2, min_score=0.0):
    eligible = [item for item in (ranked_candidates or []) if item.score > float(min_score)]
    return eligible[: max(0, int(max_results))]


def format_breakdown_for_log(scored: ScoredCandidate) -> str:
    formatted = {key: round(value, 2) for key, value in scored.breakdown.items()}
    formatted["duration_diff"] = round(scored.duration_diff, 2) if scored.duration_diff is not None else None
    return json.dumps(formatted, sort_keys=False)
