"""
Core services - request routing and batch execution
"""

from .executor import BatchExecutor, execute_batch
from .router import (
    METHOD_REGISTRY,
    Batch,
    CallSpec,
    MethodHandler,
    MethodRegistry,
    clamp_limit,
    normalize_site_url,
)

__all__ = [
    "METHOD_REGISTRY",
    "MethodRegistry",
    "MethodHandler",
    "CallSpec",
    "Batch",
    "clamp_limit",
    "normalize_site_url",
    "BatchExecutor",
    "execute_batch",
]
