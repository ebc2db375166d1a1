"""etcd v2 key-space nodes and responses.

A node is either a leaf carrying a ``value`` or a directory carrying
child ``nodes``; etcd marks directories with ``"dir": true`` and omits
the flag on leaves. The two shapes are separate models joined into the
tagged :data:`EtcdNode` union so code walking the tree has to handle
both explicitly.
"""

from __future__ import annotations

import enum
import posixpath
from typing import Annotated, Any, Literal, Union

from pydantic import Discriminator, Field, Tag, TypeAdapter

from etcdroutes.models._base import EtcdRoutesBaseModel


class EtcdAction(enum.StrEnum):
    """Kind of operation reported by etcd for a response or watch event."""

    UNKNOWN = "unknown"
    GET = "get"
    SET = "set"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    EXPIRE = "expire"
    COMPARE_AND_SWAP = "compareAndSwap"
    COMPARE_AND_DELETE = "compareAndDelete"

    @classmethod
    def _missing_(cls, value: object) -> EtcdAction:
        return cls.UNKNOWN

    @property
    def is_deletion(self) -> bool:
        """Whether the action removed the node from the store."""
        return self in _DELETION_ACTIONS


_DELETION_ACTIONS = frozenset({EtcdAction.DELETE, EtcdAction.EXPIRE, EtcdAction.COMPARE_AND_DELETE})


class _NodeBase(EtcdRoutesBaseModel):
    key: str = ""
    modified_index: int = 0
    created_index: int = 0
    ttl: int | None = None
    expiration: str | None = None

    @property
    def base_name(self) -> str:
        """Last path segment of the key."""
        return posixpath.basename(self.key)

    @property
    def parent_key(self) -> str:
        return posixpath.dirname(self.key)


class EtcdLeaf(_NodeBase):
    """A key holding a value."""

    dir: Literal[False] = False
    value: str = ""


class EtcdDirectory(_NodeBase):
    """A directory key.

    ``nodes`` is only populated for recursive reads; etcd omits it for
    empty directories and in delete/expire events.
    """

    dir: Literal[True] = True
    nodes: list[EtcdNode] = Field(default_factory=list)


def _node_kind(value: Any) -> str:
    if isinstance(value, dict):
        return "dir" if value.get("dir") else "leaf"
    return "dir" if isinstance(value, EtcdDirectory) else "leaf"


EtcdNode = Annotated[
    Union[Annotated[EtcdLeaf, Tag("leaf")], Annotated[EtcdDirectory, Tag("dir")]],  # noqa: UP007
    Discriminator(_node_kind),
]
"""A node of the etcd tree, either :class:`EtcdLeaf` or :class:`EtcdDirectory`."""

EtcdDirectory.model_rebuild()

_NODE_ADAPTER: TypeAdapter[EtcdLeaf | EtcdDirectory] = TypeAdapter(EtcdNode)


def parse_node(data: Any) -> EtcdLeaf | EtcdDirectory:
    """Validate a raw etcd node dict into the matching node model."""
    return _NODE_ADAPTER.validate_python(data)


class EtcdResponse(EtcdRoutesBaseModel):
    """A successful etcd keys API response.

    Parameters
    ----------
    action : EtcdAction
        What happened to ``node``.
    node : EtcdNode
        The node read, written or reported by a watch.
    prev_node : EtcdNode or None
        Previous state of the node for writes and deletes.
    etcd_index : int
        Global store index at response time, taken from the
        ``X-Etcd-Index`` header (``0`` when absent).
    """

    action: EtcdAction = EtcdAction.UNKNOWN
    node: EtcdNode
    prev_node: EtcdNode | None = None
    etcd_index: int = 0
