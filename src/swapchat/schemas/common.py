"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """Successful response wrapper."""

    result: Literal["success"] = "success"
    data: DataT


class ErrorBody(BaseModel):
    kind: str = Field(..., description="Error kind, e.g. NotFound or Conflict.")
    detail: str


class ErrorEnvelope(BaseModel):
    """Failure response wrapper rendered by the exception handlers."""

    result: Literal["error"] = "error"
    error: ErrorBody
