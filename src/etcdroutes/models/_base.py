"""Base model shared by the etcd wire models and the route model.

Every model is frozen: instances are snapshots of what the store (or the
codec) returned for a single call and are rebuilt on the next one.
etcd sends camelCase keys (``modifiedIndex``, ``prevNode``); the
``alias_generator`` maps them to snake_case fields automatically.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class EtcdRoutesBaseModel(BaseModel):
    """Base for etcdroutes models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
