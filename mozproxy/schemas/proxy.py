"""
Proxy Request and Outcome Schemas
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ProxyRequest(BaseModel):
    """Inbound proxy call: credential, logical method and its parameters"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_key: Optional[str] = Field(default=None, alias="apiKey")
    method: Optional[str] = None
    params: Optional[Dict[str, Any]] = None


class SuccessOutcome(BaseModel):
    """A call that settled with a result"""
    status: Literal["success"] = "success"
    data: Any = None


class FailureOutcome(BaseModel):
    """A call that settled with an error"""
    status: Literal["error"] = "error"
    reason: str


Outcome = Union[SuccessOutcome, FailureOutcome]


def envelope(outcomes: List[Outcome]) -> List[Dict[str, Any]]:
    """Serialize outcomes as the response body, preserving order"""
    return [outcome.model_dump() for outcome in outcomes]
