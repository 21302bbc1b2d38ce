"""Envelope model wrapping every structured cache value."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class StorageValue(BaseModel, Generic[T]):
    """Single-field wrapper ``{"v": value}``.

    The envelope keeps the wire shape stable whatever the caller stores, and
    lets a stored null (``{"v": null}``) be told apart from an absent key.
    """

    model_config = ConfigDict(frozen=True)

    v: T
