"""
Pydantic schemas for request/response validation
"""

from .proxy import (
    FailureOutcome,
    Outcome,
    ProxyRequest,
    SuccessOutcome,
    envelope,
)

__all__ = [
    "ProxyRequest",
    "SuccessOutcome",
    "FailureOutcome",
    "Outcome",
    "envelope",
]
