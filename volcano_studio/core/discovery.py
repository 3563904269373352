"""
Multi-flavor vocabulary discovery.

Fans one term out to several query variants of the same word-finding
upstream, then merges, deduplicates and reranks the candidates.

Ranking:
1. Deduplicate case-insensitively, first occurrence wins (flavor order)
2. Score as raw score minus a penalty for multi-word and long candidates
3. Stable sort by adjusted score, descending
4. Truncate to ``max_results``
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from .errors import ValidationError
from .fetch import UpstreamRequest

logger = logging.getLogger(__name__)

DATAMUSE_URL = "https://api.datamuse.com/words"

MULTI_WORD_PENALTY = 60
LONG_WORD_PENALTY = 30
LONG_WORD_LENGTH = 18


class Flavor(Enum):
    """Query variants understood by the discovery upstream."""
    MEANS_LIKE = "ml"
    SYNONYM = "syn"
    TRIGGER = "trg"
    ADJECTIVE = "adj"  # adjectives that often modify the term
    NOUN = "noun"  # nouns often modified by the term


# Flavor -> upstream query parameter carrying the term
FLAVOR_QUERY_PARAMS: Dict[Flavor, str] = {
    Flavor.MEANS_LIKE: "ml",
    Flavor.SYNONYM: "rel_syn",
    Flavor.TRIGGER: "rel_trg",
    Flavor.ADJECTIVE: "rel_jjb",
    Flavor.NOUN: "rel_jja",
}

DEFAULT_FLAVORS = (Flavor.MEANS_LIKE, Flavor.SYNONYM, Flavor.TRIGGER)


class FlavorFailurePolicy(Enum):
    """What a failed flavor does to the whole discovery call."""
    ISOLATE = "isolate"  # failed flavor contributes nothing
    PROPAGATE = "propagate"  # first failure is raised once all flavors finish


@dataclass(frozen=True)
class WordCandidate:
    """One suggested word from a single flavor."""
    text: str
    raw_score: float
    flavor: Flavor

    @property
    def penalty(self) -> int:
        penalty = 0
        if any(ch.isspace() for ch in self.text):
            penalty += MULTI_WORD_PENALTY
        if len(self.text) > LONG_WORD_LENGTH:
            penalty += LONG_WORD_PENALTY
        return penalty

    @property
    def adjusted_score(self) -> float:
        return self.raw_score - self.penalty


Fetch = Callable[[UpstreamRequest, str], Awaitable[Any]]


def parse_flavors(flavors: Iterable[Union[Flavor, str]]) -> List[Flavor]:
    """Resolve flavor names, skipping unknown ones and repeats."""
    resolved: List[Flavor] = []
    for flavor in flavors:
        if not isinstance(flavor, Flavor):
            try:
                flavor = Flavor(str(flavor).strip().lower())
            except ValueError:
                logger.debug("skipping unknown flavor %r", flavor)
                continue
        if flavor not in resolved:
            resolved.append(flavor)
    return resolved


def build_flavor_request(
    flavor: Flavor,
    term: str,
    topics: Optional[str],
    max_results: int,
    base_url: str = DATAMUSE_URL,
) -> UpstreamRequest:
    params = {"max": str(max_results)}
    if topics:
        params["topics"] = topics
    params[FLAVOR_QUERY_PARAMS[flavor]] = term
    return UpstreamRequest(url=base_url, params=params)


def flavor_cache_key(flavor: Flavor, term: str, topics: Optional[str], max_results: int) -> str:
    return f"dm:{flavor.value}:{topics or ''}:{term}:{max_results}"


def _candidates_from(flavor: Flavor, data: Any) -> List[WordCandidate]:
    if not isinstance(data, list):
        logger.warning("flavor %s returned %s, expected a list", flavor.value, type(data).__name__)
        return []
    candidates = []
    for item in data:
        if not isinstance(item, dict) or not isinstance(item.get("word"), str):
            continue
        score = item.get("score") or 0
        if not isinstance(score, (int, float)):
            score = 0
        candidates.append(WordCandidate(text=item["word"], raw_score=score, flavor=flavor))
    return candidates


def rank_candidates(candidates: Iterable[WordCandidate], max_results: int) -> List[WordCandidate]:
    """Deduplicate, rerank and truncate merged candidates."""
    seen = set()
    unique: List[WordCandidate] = []
    for candidate in candidates:
        folded = candidate.text.lower()
        if folded in seen:
            continue
        seen.add(folded)
        unique.append(candidate)

    ranked = sorted(unique, key=lambda c: -c.adjusted_score)
    return ranked[:max_results]


async def discover(
    fetch: Fetch,
    term: str,
    topics: Optional[str] = None,
    max_results: int = 25,
    flavors: Iterable[Union[Flavor, str]] = DEFAULT_FLAVORS,
    on_flavor_error: FlavorFailurePolicy = FlavorFailurePolicy.ISOLATE,
    base_url: str = DATAMUSE_URL,
) -> List[WordCandidate]:
    """Discover related words for ``term`` across several flavors.

    One fetch per flavor is launched concurrently and all of them are awaited
    even when some fail. Under ``ISOLATE`` a failed flavor is logged and
    contributes nothing; under ``PROPAGATE`` the first failure (in flavor
    order) is raised after every flavor has finished.

    Args:
        fetch: ``(request, cache_key) -> JSON`` coroutine, normally a bound
            ``fetch_cached``
        term: Word or phrase to expand
        topics: Optional comma-separated topic hint
        max_results: Upper bound on returned candidates, also sent upstream
        flavors: Flavors or flavor names; unknown names are skipped
        on_flavor_error: Failure policy for individual flavors
        base_url: Word-finding upstream endpoint

    Returns:
        Ranked candidates, at most ``max_results`` long

    Raises:
        ValidationError: If term is empty or max_results is not positive
        Exception: The first flavor failure, only under ``PROPAGATE``
    """
    term = (term or "").strip()
    if not term:
        raise ValidationError("term is required and cannot be empty")
    if max_results < 1:
        raise ValidationError("max_results must be >= 1")
    topics = topics.strip() if topics else None

    selected = parse_flavors(flavors)
    tasks = [
        fetch(
            build_flavor_request(flavor, term, topics, max_results, base_url),
            flavor_cache_key(flavor, term, topics, max_results),
        )
        for flavor in selected
    ]
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)

    merged: List[WordCandidate] = []
    errors: List[Exception] = []
    for flavor, outcome in zip(selected, outcomes):
        if isinstance(outcome, Exception):
            logger.warning("flavor %s failed for %r: %s", flavor.value, term, outcome)
            errors.append(outcome)
            continue
        # cancellation and interpreter exits are not flavor failures
        if isinstance(outcome, BaseException):
            raise outcome
        merged.extend(_candidates_from(flavor, outcome))

    if errors and on_flavor_error is FlavorFailurePolicy.PROPAGATE:
        raise errors[0]

    return rank_candidates(merged, max_results)
