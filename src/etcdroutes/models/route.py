"""Route definition model."""

from __future__ import annotations

import math

from pydantic import Field, field_validator, model_validator

from etcdroutes.models._base import EtcdRoutesBaseModel


def _escape_slashes(pattern: str) -> str:
    """Escape every bare ``/`` in ``pattern``; existing escapes are kept as they are."""
    out: list[str] = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if char == "\\":
            if index + 1 == len(pattern):
                raise ValueError("regexp pattern must not end with a lone backslash")
            out.append(pattern[index : index + 2])
            index += 2
            continue
        out.append("\\/" if char == "/" else char)
        index += 1
    return "".join(out)


class Regexp(EtcdRoutesBaseModel):
    """A ``/pattern/`` argument, kept apart from plain strings.

    The pattern is stored with every ``/`` escaped as ``\\/``, the form
    it takes between the delimiters, so ``Regexp(pattern="^/a")`` and
    ``Regexp(pattern=r"^\\/a")`` are the same regexp.
    """

    pattern: str

    @field_validator("pattern")
    @classmethod
    def _canonical_pattern(cls, value: str) -> str:
        if "\n" in value:
            raise ValueError("regexp pattern must not contain a newline")
        return _escape_slashes(value)


RouteArg = str | int | float | Regexp


def _check_args(args: list[RouteArg]) -> list[RouteArg]:
    for arg in args:
        if isinstance(arg, float) and not math.isfinite(arg):
            raise ValueError(f"numeric argument must be finite, got {arg!r}")
    return args


class Predicate(EtcdRoutesBaseModel):
    """A request matching condition, e.g. ``Path("/a")``."""

    name: str
    args: list[RouteArg] = Field(default_factory=list)

    @field_validator("args")
    @classmethod
    def _finite_numbers(cls, value: list[RouteArg]) -> list[RouteArg]:
        return _check_args(value)


class Filter(EtcdRoutesBaseModel):
    """A request/response transformation, e.g. ``setPath("/b")``."""

    name: str
    args: list[RouteArg] = Field(default_factory=list)

    @field_validator("args")
    @classmethod
    def _finite_numbers(cls, value: list[RouteArg]) -> list[RouteArg]:
        return _check_args(value)


class Route(EtcdRoutesBaseModel):
    """A single routing rule.

    Parameters
    ----------
    id : str
        Route identifier; the etcd key name below the routes root.
    predicates : list of Predicate
        Conditions that must all match. Empty means match everything
        (written as ``*``).
    filters : list of Filter
        Filters applied in order.
    backend : str or None
        Network address of the backend, e.g. ``"https://example.org"``.
    shunt : bool
        ``True`` when the route answers on its own (``<shunt>``) instead
        of proxying to ``backend``.
    """

    id: str = ""
    predicates: list[Predicate] = Field(default_factory=list)
    filters: list[Filter] = Field(default_factory=list)
    backend: str | None = None
    shunt: bool = False

    @model_validator(mode="after")
    def _check_backend(self) -> Route:
        if self.shunt and self.backend is not None:
            raise ValueError("a shunt route cannot have a backend")
        if not self.shunt and self.backend is None:
            raise ValueError("route needs a backend or shunt=True")
        return self

    def __str__(self) -> str:
        """Route expression without the id, as stored in etcd."""
        from etcdroutes._eskip import serialize_route

        return serialize_route(self)
