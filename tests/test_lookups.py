"""
Tests for the rate-limited lookup service.
"""
import asyncio
import json
import os
import tempfile
from dataclasses import replace

import pytest

from volcano_studio.config.loader import FeatureConfig, default_studio_config
from volcano_studio.core.cache import MemoryCacheStore, TTLCache
from volcano_studio.core.errors import AdmissionDenied, UpstreamError, ValidationError
from volcano_studio.core.fetch import UpstreamResponse
from volcano_studio.core.lookups import LookupService, create_lookup_service
from volcano_studio.core.rate_limiter import RateLimiter


class FakeUpstream:
    """Returns a fixed status and body, recording requests."""

    def __init__(self, status=200, body=None):
        self.status = status
        self.body = body if body is not None else [{"word": "magma", "score": 100}]
        self.calls = []

    async def __call__(self, request):
        self.calls.append(request)
        return UpstreamResponse(self.status, json.dumps(self.body))


def make_service(upstream=None, **feature_overrides):
    config = default_studio_config()
    features = dict(config.features)
    features.update(feature_overrides)
    config = replace(config, features=features)
    return LookupService(
        limiter=RateLimiter(clock=lambda: 0),
        cache=TTLCache(MemoryCacheStore(), clock=lambda: 0),
        execute=upstream or FakeUpstream(),
        config=config,
    )


class TestGate:
    """Test admission per feature and client."""

    def test_denied_carries_reset_at(self):
        service = make_service(dictionary=FeatureConfig(window_ms=60_000, max_requests=2, ttl_ms=1_000))
        asyncio.run(service.dictionary("10.0.0.1", "lava"))
        asyncio.run(service.dictionary("10.0.0.1", "ash"))

        with pytest.raises(AdmissionDenied) as excinfo:
            asyncio.run(service.dictionary("10.0.0.1", "ember"))

        assert excinfo.value.reset_at == 60_000
        assert excinfo.value.feature == "dictionary"

    def test_clients_and_features_independent(self):
        service = make_service(
            dictionary=FeatureConfig(window_ms=60_000, max_requests=1, ttl_ms=1_000),
            conceptnet=FeatureConfig(window_ms=60_000, max_requests=1, ttl_ms=1_000),
        )
        asyncio.run(service.dictionary("a", "lava"))

        asyncio.run(service.dictionary("b", "lava"))
        asyncio.run(service.conceptnet("a", "lava"))

    def test_denial_happens_before_upstream(self):
        upstream = FakeUpstream()
        service = make_service(upstream, dictionary=FeatureConfig(60_000, 1, 1_000))
        asyncio.run(service.dictionary("a", "lava"))

        with pytest.raises(AdmissionDenied):
            asyncio.run(service.dictionary("a", "other"))
        assert len(upstream.calls) == 1

    def test_remaining_reported(self):
        service = make_service()
        result = asyncio.run(service.dictionary("a", "lava"))
        assert result.remaining == 29


class TestLookups:
    """Test request shapes and cache keys."""

    def test_dictionary_cached(self):
        upstream = FakeUpstream(body=[{"word": "lava"}])
        service = make_service(upstream)

        first = asyncio.run(service.dictionary("a", " lava "))
        second = asyncio.run(service.dictionary("a", "lava"))

        assert first.data == second.data == [{"word": "lava"}]
        assert first.query == "lava"
        assert len(upstream.calls) == 1
        assert upstream.calls[0].url.endswith("/entries/en/lava")
        assert service.cache.get("dict:lava", 1) is not None

    def test_wikipedia_summary_quotes_title(self):
        upstream = FakeUpstream(body={"extract": "..."})
        service = make_service(upstream)

        asyncio.run(service.wikipedia_summary("a", "Mount St. Helens/Eruption"))

        assert upstream.calls[0].url.endswith("Mount%20St.%20Helens%2FEruption")
        assert service.cache.get("wp:sum:Mount St. Helens/Eruption", 1) is not None

    def test_wikipedia_search_params(self):
        upstream = FakeUpstream(body={"pages": []})
        service = make_service(upstream)

        asyncio.run(service.wikipedia_search("a", "stratovolcano"))

        assert upstream.calls[0].params == {"q": "stratovolcano", "limit": "10"}

    def test_wikidata_search_key(self):
        service = make_service(FakeUpstream(body={"search": []}))
        asyncio.run(service.wikidata_search("a", "Etna"))
        assert service.cache.get("wd:search:Etna", 1) is not None

    def test_wikidata_attributes_query(self):
        upstream = FakeUpstream(body={"results": {"bindings": []}})
        service = make_service(upstream)

        result = asyncio.run(service.wikidata_attributes("a", "q42"))

        assert result.query == "Q42"
        assert "BIND(wd:Q42 AS ?item)" in upstream.calls[0].params["query"]
        assert service.cache.get("wd:attrs:Q42", 1) is not None

    def test_wikidata_attributes_rejects_non_ids(self):
        service = make_service()
        with pytest.raises(ValidationError):
            asyncio.run(service.wikidata_attributes("a", "Q42 } DROP"))

    def test_conceptnet_limit_clamped(self):
        upstream = FakeUpstream(body={"edges": []})
        service = make_service(upstream)

        asyncio.run(service.conceptnet("a", "lava", limit=500))

        assert upstream.calls[0].params == {"limit": "50"}
        assert service.cache.get("cn:lava:50", 1) is not None

    def test_validation(self):
        service = make_service()
        with pytest.raises(ValidationError):
            asyncio.run(service.dictionary("a", ""))
        with pytest.raises(ValidationError):
            asyncio.run(service.wikipedia_search("a", "x" * 121))

    def test_upstream_error_propagates(self):
        service = make_service(FakeUpstream(status=404, body={"title": "No Definitions Found"}))

        with pytest.raises(UpstreamError) as excinfo:
            asyncio.run(service.dictionary("a", "zzzz"))

        assert excinfo.value.status == 404


class TestDiscover:
    """Test discovery through the service."""

    def test_clamps_max_and_defaults_flavors(self):
        upstream = FakeUpstream()
        service = make_service(upstream)

        result = asyncio.run(service.discover("a", "lava", max_results=1))

        assert [c.text for c in result.data] == ["magma"]
        assert len(upstream.calls) == 3
        assert all(call.params["max"] == "5" for call in upstream.calls)
        assert service.cache.get("dm:trg::lava:5", 1) is not None

    def test_failed_upstream_degrades_to_empty(self):
        service = make_service(FakeUpstream(status=500, body={}))

        result = asyncio.run(service.discover("a", "lava", flavors=["ml"]))

        assert result.data == []

    def test_executor_exception_isolated_to_its_flavor(self):
        class FlakyUpstream(FakeUpstream):
            async def __call__(self, request):
                if "rel_syn" in request.params:
                    raise ConnectionError("socket reset")
                return await super().__call__(request)

        service = make_service(FlakyUpstream(body=[{"word": "ember", "score": 10}]))

        result = asyncio.run(service.discover("c", "lava", flavors=["ml", "syn"]))

        assert [c.text for c in result.data] == ["ember"]


class TestFactory:
    """Test the process-wide service factory."""

    def test_create_uses_sqlite_cache(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            config = replace(default_studio_config(), db_path=os.path.join(temp_dir, "studio.db"))
            service = create_lookup_service(config, execute=FakeUpstream(body=["ok"]))

            asyncio.run(service.dictionary("a", "lava"))

            assert service.cache.store.count() == 1
