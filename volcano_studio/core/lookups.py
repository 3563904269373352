"""
Rate-limited, cached knowledge lookups.

Every lookup follows the same order:
1. Admission gate keyed by feature and client identity
2. Input validation
3. Cached fetch against the feature's upstream with its own TTL
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union
from urllib.parse import quote

from .cache import TTLCache
from .discovery import DEFAULT_FLAVORS, Flavor, discover
from .errors import AdmissionDenied, ValidationError
from .fetch import Executor, UpstreamRequest, fetch_cached
from .rate_limiter import Admission, RateLimiter
from volcano_studio.config.loader import StudioConfig, default_studio_config
from volcano_studio.sdk.upstream_client import UpstreamClient
from volcano_studio.storage.repository import SqliteCacheStore, initialize_schema

logger = logging.getLogger(__name__)

DICTIONARY_URL = "https://api.dictionaryapi.dev/api/v2/entries/en/"
WIKIPEDIA_SEARCH_URL = "https://en.wikipedia.org/w/rest.php/v1/search/title"
WIKIPEDIA_SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/"
WIKIDATA_API_URL = "https://www.wikidata.org/w/api.php"
WIKIDATA_SPARQL_URL = "https://query.wikidata.org/sparql"
CONCEPTNET_URL = "https://api.conceptnet.io/c/en/"

SEARCH_LIMIT = 10
MIN_LIST_SIZE = 5
MAX_LIST_SIZE = 50

_ENTITY_ID = re.compile(r"^[QP]\d{1,19}$")

ATTRIBUTES_QUERY = """
SELECT ?item ?itemLabel ?itemDescription ?instanceOfLabel ?countryLabel ?locationLabel ?coord ?image WHERE {{
  BIND(wd:{entity_id} AS ?item)
  OPTIONAL {{ ?item wdt:P31 ?instanceOf. }}
  OPTIONAL {{ ?item wdt:P17 ?country. }}
  OPTIONAL {{ ?item wdt:P276 ?location. }}
  OPTIONAL {{ ?item wdt:P625 ?coord. }}
  OPTIONAL {{ ?item wdt:P18 ?image. }}
  SERVICE wikibase:label {{ bd:serviceParam wikibase:language "en". }}
}}
LIMIT 25
"""


@dataclass(frozen=True)
class LookupResult:
    """Lookup payload plus the caller's remaining admission budget."""
    feature: str
    query: str
    data: Any
    remaining: int
    reset_at: int


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _require(value: Optional[str], name: str, min_len: int, max_len: int) -> str:
    value = (value or "").strip()
    if len(value) < min_len or len(value) > max_len:
        raise ValidationError(f"{name} must be {min_len}-{max_len} characters")
    return value


class LookupService:
    """Long-lived handle over the shared limiter and cache.

    Create one per process with ``create_lookup_service`` and share it
    between requests.
    """

    def __init__(self, limiter: RateLimiter, cache: TTLCache, execute: Executor, config: StudioConfig):
        self.limiter = limiter
        self.cache = cache
        self.execute = execute
        self.config = config

    def gate(self, feature: str, client_id: str) -> Admission:
        """Admit one request for ``feature`` from ``client_id``.

        Raises:
            AdmissionDenied: If the client's window is exhausted
        """
        feature_config = self.config.get_feature_config(feature)
        admission = self.limiter.admit(
            f"{feature}:{client_id}", feature_config.window_ms, feature_config.max_requests
        )
        if not admission.allowed:
            logger.info("rate limit hit for %s by %s", feature, client_id)
            raise AdmissionDenied(feature, admission.reset_at)
        return admission

    async def _fetch(self, feature: str, request: UpstreamRequest, cache_key: str) -> Any:
        return await fetch_cached(
            self.cache,
            request,
            self.execute,
            cache_key=cache_key,
            ttl_ms=self.config.get_feature_config(feature).ttl_ms or 0,
            timeout_seconds=self.config.upstream.timeout_seconds,
        )

    async def _result(self, feature: str, admission: Admission, query: str, request: UpstreamRequest, cache_key: str) -> LookupResult:
        data = await self._fetch(feature, request, cache_key)
        return LookupResult(feature, query, data, admission.remaining, admission.reset_at)

    async def discover(
        self,
        client_id: str,
        term: str,
        topics: Optional[str] = None,
        max_results: int = 25,
        flavors: Optional[Iterable[Union[Flavor, str]]] = None,
    ) -> LookupResult:
        """Ranked related-word candidates for ``term``.

        ``max_results`` is clamped to [5, 50]. Flavors that fail upstream
        contribute nothing rather than failing the lookup.
        """
        admission = self.gate("discover", client_id)
        term = _require(term, "term", 1, 80)
        max_results = _clamp(max_results, MIN_LIST_SIZE, MAX_LIST_SIZE)

        async def fetch(request: UpstreamRequest, cache_key: str) -> Any:
            return await self._fetch("discover", request, cache_key)

        candidates = await discover(
            fetch,
            term,
            topics=topics,
            max_results=max_results,
            flavors=flavors if flavors is not None else DEFAULT_FLAVORS,
        )
        return LookupResult("discover", term, candidates, admission.remaining, admission.reset_at)

    async def dictionary(self, client_id: str, word: str) -> LookupResult:
        admission = self.gate("dictionary", client_id)
        word = _require(word, "word", 1, 80)
        request = UpstreamRequest(DICTIONARY_URL + quote(word, safe=""))
        return await self._result("dictionary", admission, word, request, f"dict:{word}")

    async def wikipedia_search(self, client_id: str, q: str) -> LookupResult:
        admission = self.gate("wikipedia_search", client_id)
        q = _require(q, "q", 1, 120)
        request = UpstreamRequest(WIKIPEDIA_SEARCH_URL, {"q": q, "limit": str(SEARCH_LIMIT)})
        return await self._result("wikipedia_search", admission, q, request, f"wp:search:{q}")

    async def wikipedia_summary(self, client_id: str, title: str) -> LookupResult:
        admission = self.gate("wikipedia_summary", client_id)
        title = _require(title, "title", 1, 200)
        request = UpstreamRequest(WIKIPEDIA_SUMMARY_URL + quote(title, safe=""))
        return await self._result("wikipedia_summary", admission, title, request, f"wp:sum:{title}")

    async def wikidata_search(self, client_id: str, q: str) -> LookupResult:
        admission = self.gate("wikidata_search", client_id)
        q = _require(q, "q", 1, 120)
        request = UpstreamRequest(WIKIDATA_API_URL, {
            "action": "wbsearchentities",
            "search": q,
            "language": "en",
            "format": "json",
            "limit": str(SEARCH_LIMIT),
        })
        return await self._result("wikidata_search", admission, q, request, f"wd:search:{q}")

    async def wikidata_attributes(self, client_id: str, entity_id: str) -> LookupResult:
        """Label, description and a few common properties of one entity."""
        admission = self.gate("wikidata_attributes", client_id)
        entity_id = _require(entity_id, "id", 2, 20).upper()
        if not _ENTITY_ID.match(entity_id):
            raise ValidationError(f"id must look like Q42 or P31, got {entity_id!r}")
        request = UpstreamRequest(WIKIDATA_SPARQL_URL, {
            "format": "json",
            "query": ATTRIBUTES_QUERY.format(entity_id=entity_id),
        })
        return await self._result("wikidata_attributes", admission, entity_id, request, f"wd:attrs:{entity_id}")

    async def conceptnet(self, client_id: str, term: str, limit: int = 25) -> LookupResult:
        admission = self.gate("conceptnet", client_id)
        term = _require(term, "term", 1, 80)
        limit = _clamp(limit, MIN_LIST_SIZE, MAX_LIST_SIZE)
        request = UpstreamRequest(CONCEPTNET_URL + quote(term, safe=""), {"limit": str(limit)})
        return await self._result("conceptnet", admission, term, request, f"cn:{term}:{limit}")


def create_lookup_service(
    config: Optional[StudioConfig] = None,
    execute: Optional[Executor] = None,
) -> LookupService:
    """Build the process-wide lookup service.

    Creates the SQLite cache schema if needed. The HTTP client is built from
    the upstream config unless an executor is supplied.
    """
    config = config or default_studio_config()
    initialize_schema(config.db_path)
    if execute is None:
        execute = UpstreamClient(config.upstream.timeout_seconds, config.upstream.user_agent)
    return LookupService(
        limiter=RateLimiter(),
        cache=TTLCache(SqliteCacheStore(config.db_path)),
        execute=execute,
        config=config,
    )
