from __future__ import annotations

import pytest

from mozproxy.errors import InvalidMethodError, InvalidRequestError
from mozproxy.services.router import (
    METHOD_REGISTRY,
    PROVIDER_OPENAI,
    CallSpec,
    MethodHandler,
    MethodRegistry,
    clamp_limit,
    normalize_site_url,
)


@pytest.mark.parametrize(
    ("value", "maximum", "expected"),
    [
        (None, 50, 25),
        ("abc", 50, 25),
        (0, 50, 25),
        ("0", 500, 25),
        (-7, 50, 1),
        (9999, 50, 50),
        (9999, 500, 500),
        ("40", 50, 40),
        ("12abc", 50, 12),
        (" 30 ", 500, 30),
        (17.9, 50, 17),
        (float("nan"), 50, 25),
        (True, 50, 25),
        ([10], 50, 25),
    ],
)
def test_clamp_limit(value, maximum, expected) -> None:
    assert clamp_limit(value, maximum) == expected


def test_normalize_site_url() -> None:
    assert normalize_site_url("example.com") == "https://example.com"
    assert normalize_site_url("https://example.com/path") == "https://example.com/path"
    assert normalize_site_url("http://example.com") == "http://example.com"


def test_list_method_builds_one_call_per_target_in_order() -> None:
    targets = ["a.com", "b.com", "c.com", "d.com"]
    batch = METHOD_REGISTRY.build_batch("siteMetrics", {"targets": targets, "scope": "domain"})

    assert len(batch) == 4
    assert [spec.payload["data"]["site_query"]["query"] for spec in batch] == targets
    assert all(spec.upstream_method == "data.site.metrics.fetch" for spec in batch)
    assert batch[0].payload == {"data": {"site_query": {"query": "a.com", "scope": "domain"}}}


def test_empty_target_list_builds_empty_batch() -> None:
    assert METHOD_REGISTRY.build_batch("siteMetrics", {"targets": []}) == ()


def test_brand_authority_normalizes_targets_and_fixes_scope() -> None:
    batch = METHOD_REGISTRY.build_batch(
        "brandAuthority", {"targets": ["example.com", "https://moz.com"], "scope": "page"}
    )
    assert [spec.payload["data"]["site_query"] for spec in batch] == [
        {"query": "https://example.com", "scope": "domain"},
        {"query": "https://moz.com", "scope": "domain"},
    ]


def test_brand_authority_rejects_non_string_targets() -> None:
    with pytest.raises(InvalidRequestError):
        METHOD_REGISTRY.build_batch("brandAuthority", {"targets": ["ok.com", 42]})


@pytest.mark.parametrize(
    ("metric_type", "upstream"),
    [
        ("volume", "data.keyword.metrics.volume.fetch"),
        ("difficulty", "data.keyword.metrics.difficulty.fetch"),
        ("opportunity", "data.keyword.metrics.opportunity.fetch"),
        ("priority", "data.keyword.metrics.priority.fetch"),
        ("all", "data.keyword.metrics.fetch"),
        ("bogus", "data.keyword.metrics.fetch"),
        (None, "data.keyword.metrics.fetch"),
    ],
)
def test_keyword_metrics_picks_upstream_by_metric_type(metric_type, upstream) -> None:
    batch = METHOD_REGISTRY.build_batch(
        "keywordMetrics", {"keywords": ["seo tools"], "locale": "en-US", "metricType": metric_type}
    )
    assert batch[0].upstream_method == upstream


def test_keyword_list_methods_pin_device_and_engine() -> None:
    batch = METHOD_REGISTRY.build_batch("searchIntent", {"keywords": ["crm"], "locale": "en-GB"})
    assert batch[0].payload == {
        "data": {"serp_query": {"keyword": "crm", "locale": "en-GB", "device": "desktop", "engine": "google"}}
    }

    batch = METHOD_REGISTRY.build_batch(
        "relatedKeywords", {"keywords": ["crm"], "locale": "en-GB", "device": "mobile", "engine": "bing"}
    )
    assert batch[0].payload["data"]["serp_query"]["device"] == "desktop"
    assert batch[0].payload["data"]["serp_query"]["engine"] == "google"
    assert batch[0].upstream_method == "data.keyword.suggestions.list"


def test_keyword_metrics_accepts_caller_device_and_engine() -> None:
    batch = METHOD_REGISTRY.build_batch(
        "keywordMetrics", {"keywords": ["crm"], "locale": "en-US", "device": "mobile", "engine": "bing"}
    )
    assert batch[0].payload["data"]["serp_query"]["device"] == "mobile"
    assert batch[0].payload["data"]["serp_query"]["engine"] == "bing"


def test_ranking_keywords_clamps_to_five_hundred() -> None:
    batch = METHOD_REGISTRY.build_batch(
        "rankingKeywords", {"targets": ["moz.com"], "scope": "domain", "locale": "en-US", "limit": 9999}
    )
    assert batch[0].payload == {
        "data": {
            "target_query": {"query": "moz.com", "scope": "domain", "locale": "en-US"},
            "page": {"limit": 500},
        }
    }


def test_link_list_methods_clamp_to_fifty() -> None:
    for method in ("anchorText", "recentlyGainedLinks", "recentlyLostLinks", "linkingDomains", "topPages", "listLinks"):
        batch = METHOD_REGISTRY.build_batch(method, {"targets": ["moz.com"], "limit": 9999})
        assert batch[0].payload["data"]["offset"] == {"limit": 50}, method


def test_anchor_text_has_no_options() -> None:
    batch = METHOD_REGISTRY.build_batch("anchorText", {"targets": ["moz.com"], "scope": "root_domain"})
    assert batch[0].payload == {
        "data": {"site_query": {"query": "moz.com", "scope": "root_domain"}, "offset": {"limit": 25}}
    }


def test_recently_gained_links_date_window_only_when_given() -> None:
    batch = METHOD_REGISTRY.build_batch(
        "recentlyGainedLinks", {"targets": ["moz.com"], "scope": "domain", "beginDate": "2024-01-01"}
    )
    assert batch[0].upstream_method == "data.site.linking-domain.filter.recently-gained"
    assert batch[0].payload["data"]["options"] == {"begin_date": "2024-01-01"}

    batch = METHOD_REGISTRY.build_batch("recentlyLostLinks", {"targets": ["moz.com"]})
    assert batch[0].payload["data"]["options"] == {}


def test_top_pages_drops_all_filter() -> None:
    batch = METHOD_REGISTRY.build_batch(
        "topPages", {"targets": ["moz.com"], "sort": "page_authority", "filter": "all"}
    )
    assert batch[0].payload["data"]["options"] == {"sort": "page_authority"}

    batch = METHOD_REGISTRY.build_batch("topPages", {"targets": ["moz.com"], "filter": "status_200"})
    assert batch[0].payload["data"]["options"] == {"filter": "status_200"}


def test_linking_domains_forwards_sort_and_filters() -> None:
    batch = METHOD_REGISTRY.build_batch(
        "linkingDomains",
        {"targets": ["moz.com"], "scope": "domain", "sort": "source_domain_authority", "filters": ["follow"]},
    )
    assert batch[0].payload["data"]["options"] == {"sort": "source_domain_authority", "filters": ["follow"]}


@pytest.mark.parametrize(
    ("method", "params", "upstream"),
    [
        ("getQuota", None, "quota.lookup"),
        (
            "linkIntersect",
            {"is_linking_to": [{"query": "a.com"}], "not_linking_to": [{"query": "b.com"}], "limit": 0},
            "data.site.link.intersect.fetch",
        ),
        (
            "linkStatus",
            {"targetQuery": "moz.com", "targetScope": "domain", "sourceQuery": "a.com", "sourceScope": "page"},
            "data.site.link.status.fetch",
        ),
    ],
)
def test_single_shot_methods_build_one_call(method, params, upstream) -> None:
    handler = METHOD_REGISTRY.get(method)
    batch = METHOD_REGISTRY.build_batch(method, params)

    assert handler.single_shot is True
    assert len(batch) == 1
    assert batch[0].upstream_method == upstream


def test_link_status_payload() -> None:
    batch = METHOD_REGISTRY.build_batch(
        "linkStatus",
        {"targetQuery": "moz.com", "targetScope": "domain", "sourceQuery": "a.com", "sourceScope": "page"},
    )
    assert batch[0].payload == {
        "data": {
            "target_site_query": {"query": "moz.com", "scope": "domain"},
            "source_site_query": {"query": "a.com", "scope": "page"},
        }
    }


def test_get_quota_payload() -> None:
    batch = METHOD_REGISTRY.build_batch("getQuota", None)
    assert batch == (CallSpec("quota.lookup", {"data": {"path": "api.limits.data.rows"}}),)


def test_missing_method_is_invalid_request() -> None:
    with pytest.raises(InvalidRequestError):
        METHOD_REGISTRY.build_batch(None, {"targets": ["a.com"]})


def test_missing_params_is_invalid_request() -> None:
    with pytest.raises(InvalidRequestError) as e:
        METHOD_REGISTRY.build_batch("siteMetrics", None)
    assert e.value.message == "Missing parameters for this method."


def test_missing_target_list_is_invalid_request() -> None:
    with pytest.raises(InvalidRequestError):
        METHOD_REGISTRY.build_batch("siteMetrics", {"scope": "domain"})
    with pytest.raises(InvalidRequestError):
        METHOD_REGISTRY.build_batch("searchIntent", {"keywords": "not a list"})


def test_unknown_method_is_invalid_method() -> None:
    with pytest.raises(InvalidMethodError) as e:
        METHOD_REGISTRY.build_batch("dropTables", {"targets": []})
    assert e.value.status_code == 400


def test_llm_chat_builds_openai_call() -> None:
    batch = METHOD_REGISTRY.build_batch(
        "llmChat", {"prompt": "Summarize moz.com", "system": "Be brief.", "maxTokens": 200}
    )
    assert batch == (
        CallSpec(
            "chat.completions",
            {
                "messages": [
                    {"role": "system", "content": "Be brief."},
                    {"role": "user", "content": "Summarize moz.com"},
                ],
                "max_tokens": 200,
            },
            PROVIDER_OPENAI,
        ),
    )


def test_llm_chat_requires_prompt_or_messages() -> None:
    with pytest.raises(InvalidRequestError):
        METHOD_REGISTRY.build_batch("llmChat", {"model": "gpt-4o-mini"})
    with pytest.raises(InvalidRequestError):
        METHOD_REGISTRY.build_batch("llmChat", {"messages": [{"role": "user"}]})


def test_llm_embedding_accepts_string_or_list() -> None:
    single = METHOD_REGISTRY.build_batch("llmEmbedding", {"input": "moz"})
    many = METHOD_REGISTRY.build_batch("llmEmbedding", {"input": ["moz", "seo"], "model": "text-embedding-3-large"})

    assert single[0].payload == {"input": ["moz"]}
    assert many[0].payload == {"input": ["moz", "seo"], "model": "text-embedding-3-large"}
    with pytest.raises(InvalidRequestError):
        METHOD_REGISTRY.build_batch("llmEmbedding", {"input": [1, 2]})


def test_registry_is_read_only() -> None:
    registry = MethodRegistry([MethodHandler("ping", lambda params: ())])
    assert "ping" in registry
    assert registry.names == ["ping"]
    with pytest.raises(TypeError):
        registry._handlers["pong"] = MethodHandler("pong", lambda params: ())  # type: ignore[index]


def test_call_spec_is_frozen() -> None:
    spec = CallSpec("data.site.metrics.fetch", {"data": {}})
    with pytest.raises(AttributeError):
        spec.upstream_method = "other"  # type: ignore[misc]


def test_single_shot_handler_must_build_exactly_one_call() -> None:
    registry = MethodRegistry([
        MethodHandler("pair", lambda params: (CallSpec("a", {}), CallSpec("b", {})), single_shot=True),
        MethodHandler("many", lambda params: (CallSpec("a", {}), CallSpec("b", {}))),
    ])

    with pytest.raises(RuntimeError):
        registry.build_batch("pair", {})
    assert len(registry.build_batch("many", {})) == 2
