"""Pydantic schemas for request bodies.

Model documents are open-ended: callers may store any extra fields they like.
The schemas only pin down the types of the fields the service itself reads
and stop keys that Mongo would treat as operators, nested paths or the
primary key.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _ModelFields(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None
    description: str | None = None
    # Defaults never reach the store: fields() drops unset keys. Explicit
    # nulls are rejected so the counter always stays an integer.
    price: float = Field(default=0, ge=0)
    purchased: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def reject_reserved_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            reserved = sorted(
                k for k in data if k == "_id" or str(k).startswith("$") or "." in str(k)
            )
            if reserved:
                raise ValueError(f"reserved field names not allowed: {', '.join(reserved)}")
        return data

    def fields(self) -> dict[str, Any]:
        """Only the keys the caller actually sent, extras included."""
        return self.model_dump(exclude_unset=True)


class ModelCreate(_ModelFields):
    """Request body for `POST /models`."""


class ModelUpdate(_ModelFields):
    """Request body for `PUT /models/{id}`. Every key is optional."""


class PurchaseRequest(BaseModel):
    """Request body for `POST /models/{id}/purchase`. The body itself is optional."""

    buyerEmail: str | None = None


class PurchaseResponse(BaseModel):
    message: str = "Purchase successful"
    updatedModel: dict[str, Any] | None = None
