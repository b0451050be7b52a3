"""Shared Pydantic base models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FitcoachBase(BaseModel):
    """Base model with shared config for all Fitcoach schemas."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ClientRequest(FitcoachBase):
    """Request body carrying the client to process.

    ``clientId`` is optional at the schema level so that a missing value can
    be reported as ``{"error": ...}`` with a 400 rather than FastAPI's
    default validation envelope.
    """

    client_id: str | None = Field(default=None, alias="clientId")


class ErrorResponse(BaseModel):
    error: str
