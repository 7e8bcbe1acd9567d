"""
Pydantic schemas for gateway requests and replies.
"""

from pydantic import BaseModel, Field

from fleet_registry.store.base import InvokeResponse


class InvokeRequest(BaseModel):
    """A transaction call: operation name followed by string arguments."""

    args: list[str] = Field(
        ...,
        min_length=1,
        description="Operation name followed by its arguments",
        examples=[["ReadAsset", "srv-1"]],
    )


class InvokeReply(BaseModel):
    """Gateway rendering of an InvokeResponse."""

    status: int
    payload: str = ""
    message: str = ""

    @classmethod
    def from_response(cls, response: InvokeResponse) -> "InvokeReply":
        return cls(
            status=response.status,
            payload=response.payload.decode("utf-8"),
            message=response.message,
        )


class HealthResponse(BaseModel):
    """Gateway health and deployed registries."""

    status: str
    version: str
    namespace: str
    backend: str
    registries: list[str]
