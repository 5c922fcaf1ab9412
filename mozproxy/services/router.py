"""
Request Router
Maps a logical method name and its parameters to a batch of upstream calls
"""

import math
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from mozproxy.errors import InvalidMethodError, InvalidRequestError

PROVIDER_MOZ = "moz"
PROVIDER_OPENAI = "openai"

DEFAULT_LIMIT = 25
LINK_LIMIT_MAX = 50
RANKING_LIMIT_MAX = 500

DEFAULT_DEVICE = "desktop"
DEFAULT_ENGINE = "google"

KEYWORD_METRIC_METHODS = {
    "all": "data.keyword.metrics.fetch",
    "volume": "data.keyword.metrics.volume.fetch",
    "difficulty": "data.keyword.metrics.difficulty.fetch",
    "opportunity": "data.keyword.metrics.opportunity.fetch",
    "priority": "data.keyword.metrics.priority.fetch",
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class CallSpec:
    """One fully-formed upstream call"""
    upstream_method: str
    payload: Any
    provider: str = PROVIDER_MOZ


Batch = Tuple[CallSpec, ...]


@dataclass(frozen=True)
class MethodHandler:
    """Registry entry: how one logical method becomes a batch"""
    name: str
    build: Callable[[Dict[str, Any]], Batch]
    requires_params: bool = True
    single_shot: bool = False


# --- Pure input helpers ---

def _parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def clamp_limit(value: Any, maximum: int, minimum: int = 1, default: int = DEFAULT_LIMIT) -> int:
    """
    Coerce a caller-supplied limit into [minimum, maximum].

    Unparseable input and zero fall back to the default before clamping.
    """
    parsed = _parse_int(value)
    if not parsed:
        parsed = default
    return max(minimum, min(maximum, parsed))


def normalize_site_url(target: str) -> str:
    """Rewrite a bare domain into an https URL; http(s) input passes through"""
    if target.startswith("http"):
        return target
    return "https://" + target


def _compact(values: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def _list_param(params: Dict[str, Any], name: str) -> List[Any]:
    items = params.get(name)
    if not isinstance(items, list):
        raise InvalidRequestError(f"Parameter '{name}' must be a list.")
    return items


def _moz_batch(upstream_method: str, payloads: Iterable[Any]) -> Batch:
    return tuple(CallSpec(upstream_method, {"data": payload}) for payload in payloads)


def _site_query(target: Any, params: Dict[str, Any]) -> Dict[str, Any]:
    return _compact({"query": target, "scope": params.get("scope")})


def _target_query(target: Any, params: Dict[str, Any]) -> Dict[str, Any]:
    return _compact({"query": target, "scope": params.get("scope"), "locale": params.get("locale")})


def _serp_query(keyword: Any, params: Dict[str, Any]) -> Dict[str, Any]:
    return _compact({
        "keyword": keyword,
        "locale": params.get("locale"),
        "device": params.get("device") or DEFAULT_DEVICE,
        "engine": params.get("engine") or DEFAULT_ENGINE,
    })


def _date_window(params: Dict[str, Any]) -> Dict[str, Any]:
    options = {}
    if params.get("beginDate"):
        options["begin_date"] = params["beginDate"]
    if params.get("endDate"):
        options["end_date"] = params["endDate"]
    return options


# --- Builders ---

def _get_quota(params: Dict[str, Any]) -> Batch:
    return _moz_batch("quota.lookup", [{"path": "api.limits.data.rows"}])


def _site_metrics(params: Dict[str, Any]) -> Batch:
    return _moz_batch(
        "data.site.metrics.fetch",
        ({"site_query": _site_query(t, params)} for t in _list_param(params, "targets")),
    )


def _keyword_metrics(params: Dict[str, Any]) -> Batch:
    metric_type = params.get("metricType")
    if not isinstance(metric_type, str) or metric_type not in KEYWORD_METRIC_METHODS:
        metric_type = "all"
    upstream = KEYWORD_METRIC_METHODS[metric_type]
    return _moz_batch(
        upstream,
        ({"serp_query": _serp_query(k, params)} for k in _list_param(params, "keywords")),
    )


def _brand_authority(params: Dict[str, Any]) -> Batch:
    targets = _list_param(params, "targets")
    if not all(isinstance(t, str) for t in targets):
        raise InvalidRequestError("Parameter 'targets' must be a list of strings.")
    return _moz_batch(
        "data.site.metrics.brand.authority.fetch",
        ({"site_query": {"query": normalize_site_url(t), "scope": "domain"}} for t in targets),
    )


def _keyword_list_method(upstream: str) -> Callable[[Dict[str, Any]], Batch]:
    """Keyword fan-out with device and engine pinned to desktop/google"""
    def build(params: Dict[str, Any]) -> Batch:
        pinned = {**params, "device": DEFAULT_DEVICE, "engine": DEFAULT_ENGINE}
        return _moz_batch(
            upstream,
            ({"serp_query": _serp_query(k, pinned)} for k in _list_param(params, "keywords")),
        )
    return build


def _ranking_keywords(params: Dict[str, Any]) -> Batch:
    limit = clamp_limit(params.get("limit"), RANKING_LIMIT_MAX)
    return _moz_batch(
        "data.site.ranking.keywords.list",
        (
            {"target_query": _target_query(t, params), "page": {"limit": limit}}
            for t in _list_param(params, "targets")
        ),
    )


def _keyword_count(params: Dict[str, Any]) -> Batch:
    return _moz_batch(
        "data.site.ranking-keyword.count",
        ({"target_query": _target_query(t, params)} for t in _list_param(params, "targets")),
    )


def _site_list_method(
    upstream: str,
    options: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
) -> Callable[[Dict[str, Any]], Batch]:
    """Paged site-query list call; ``options`` builds the shared options object"""
    def build(params: Dict[str, Any]) -> Batch:
        limit = clamp_limit(params.get("limit"), LINK_LIMIT_MAX)
        shared = options(params) if options else None

        def payload(target: Any) -> Dict[str, Any]:
            data = {"site_query": _site_query(target, params)}
            if shared is not None:
                data["options"] = shared
            data["offset"] = {"limit": limit}
            return data

        return _moz_batch(upstream, (payload(t) for t in _list_param(params, "targets")))
    return build


def _sort_and_filters(params: Dict[str, Any]) -> Dict[str, Any]:
    return _compact({"sort": params.get("sort"), "filters": params.get("filters")})


def _top_page_options(params: Dict[str, Any]) -> Dict[str, Any]:
    options = _compact({"sort": params.get("sort")})
    if params.get("filter") and params["filter"] != "all":
        options["filter"] = params["filter"]
    return options


def _final_redirect(params: Dict[str, Any]) -> Batch:
    return _moz_batch(
        "data.site.redirect.fetch",
        ({"site_query": _site_query(t, params)} for t in _list_param(params, "targets")),
    )


def _link_intersect(params: Dict[str, Any]) -> Batch:
    limit = clamp_limit(params.get("limit"), LINK_LIMIT_MAX)
    options = _compact({
        "minimum_matching_targets": params.get("minimum_matching_targets"),
        "scope": params.get("scope"),
        "sort": params.get("sort"),
    })
    payload = _compact({
        "is_linking_to": params.get("is_linking_to"),
        "not_linking_to": params.get("not_linking_to"),
    })
    payload["options"] = options
    payload["offset"] = {"limit": limit}
    return _moz_batch("data.site.link.intersect.fetch", [payload])


def _link_status(params: Dict[str, Any]) -> Batch:
    payload = {
        "target_site_query": _compact({"query": params.get("targetQuery"), "scope": params.get("targetScope")}),
        "source_site_query": _compact({"query": params.get("sourceQuery"), "scope": params.get("sourceScope")}),
    }
    return _moz_batch("data.site.link.status.fetch", [payload])


def _llm_chat(params: Dict[str, Any]) -> Batch:
    messages = params.get("messages")
    if messages is None and isinstance(params.get("prompt"), str):
        messages = [{"role": "user", "content": params["prompt"]}]
    if not isinstance(messages, list) or not messages:
        raise InvalidRequestError("Parameter 'prompt' or 'messages' is required.")
    for message in messages:
        if not isinstance(message, dict) or not isinstance(message.get("content"), str):
            raise InvalidRequestError("Each message needs a string 'content'.")
    if isinstance(params.get("system"), str):
        messages = [{"role": "system", "content": params["system"]}] + messages

    payload = _compact({
        "messages": [{"role": m.get("role", "user"), "content": m["content"]} for m in messages],
        "model": params.get("model"),
        "temperature": params.get("temperature"),
        "max_tokens": params.get("maxTokens"),
    })
    return (CallSpec("chat.completions", payload, PROVIDER_OPENAI),)


def _llm_embedding(params: Dict[str, Any]) -> Batch:
    inputs = params.get("input")
    if isinstance(inputs, str):
        inputs = [inputs]
    if not isinstance(inputs, list) or not inputs or not all(isinstance(i, str) for i in inputs):
        raise InvalidRequestError("Parameter 'input' must be a string or a list of strings.")
    payload = _compact({"input": inputs, "model": params.get("model")})
    return (CallSpec("embeddings", payload, PROVIDER_OPENAI),)


class MethodRegistry:
    """Immutable map from logical method name to its handler"""

    def __init__(self, handlers: Iterable[MethodHandler]):
        self._handlers: Mapping[str, MethodHandler] = MappingProxyType(
            {handler.name: handler for handler in handlers}
        )

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    @property
    def names(self) -> List[str]:
        return sorted(self._handlers)

    def get(self, name: str) -> MethodHandler:
        try:
            return self._handlers[name]
        except KeyError:
            raise InvalidMethodError("Invalid API method specified.")

    def build_batch(self, method: Optional[str], params: Optional[Dict[str, Any]]) -> Batch:
        """
        Translate a method and its params into an ordered batch of calls.

        Raises:
            InvalidRequestError: Method missing, or params missing where required
            InvalidMethodError: Method not in the registry
            RuntimeError: A single-shot handler built other than one call
        """
        if not method:
            raise InvalidRequestError("Missing method.")
        handler = self.get(method)
        if handler.requires_params and params is None:
            raise InvalidRequestError("Missing parameters for this method.")
        batch = handler.build(params or {})
        if handler.single_shot and len(batch) != 1:
            raise RuntimeError(f"Single-shot method {method} built {len(batch)} calls")
        return batch


def _build_default_registry() -> MethodRegistry:
    return MethodRegistry([
        MethodHandler("getQuota", _get_quota, requires_params=False, single_shot=True),
        MethodHandler("siteMetrics", _site_metrics),
        MethodHandler("keywordMetrics", _keyword_metrics),
        MethodHandler("brandAuthority", _brand_authority),
        MethodHandler("searchIntent", _keyword_list_method("data.keyword.search.intent.fetch")),
        MethodHandler("rankingKeywords", _ranking_keywords),
        MethodHandler("relatedKeywords", _keyword_list_method("data.keyword.suggestions.list")),
        MethodHandler("keywordCount", _keyword_count),
        MethodHandler("anchorText", _site_list_method("data.site.anchor-text.list")),
        MethodHandler(
            "recentlyGainedLinks",
            _site_list_method("data.site.linking-domain.filter.recently-gained", _date_window),
        ),
        MethodHandler(
            "recentlyLostLinks",
            _site_list_method("data.site.linking-domain.filter.recently-lost", _date_window),
        ),
        MethodHandler("linkingDomains", _site_list_method("data.site.linking-domain.list", _sort_and_filters)),
        MethodHandler("finalRedirect", _final_redirect),
        MethodHandler("topPages", _site_list_method("data.site.top-page.list", _top_page_options)),
        MethodHandler("linkIntersect", _link_intersect, single_shot=True),
        MethodHandler("listLinks", _site_list_method("data.site.link.list", _sort_and_filters)),
        MethodHandler("linkStatus", _link_status, single_shot=True),
        MethodHandler("llmChat", _llm_chat, single_shot=True),
        MethodHandler("llmEmbedding", _llm_embedding, single_shot=True),
    ])


METHOD_REGISTRY = _build_default_registry()
