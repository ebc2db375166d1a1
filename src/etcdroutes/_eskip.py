"""Reader and writer for the textual route format.

A document is a list of ``;`` separated route definitions::

    // comments run to the end of the line
    a: Path("/a") -> <shunt>;
    b: Host(/^example\\.org$/) && Method("GET")
       -> setRequestHeader("X-Route", "b")
       -> "https://backend.example.org"

Each definition is ``id: predicates -> filter -> ... -> backend`` where
the predicates are joined by ``&&`` (``*`` matches everything), filters
are optional, and the backend is either a quoted address or ``<shunt>``.
Arguments are double-quoted strings, numbers or ``/regexp/`` literals.

It is internal to etcdroutes; use :class:`etcdroutes.codec.EskipCodec`.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass

from etcdroutes.exceptions import InvalidRouteIdError, RouteParseError
from etcdroutes.models.route import Filter, Predicate, Regexp, Route, RouteArg

_TOKEN_SPEC: tuple[tuple[str, str], ...] = (
    ("space", r"\s+"),
    ("comment", r"//[^\n]*"),
    ("and", r"&&"),
    ("arrow", r"->"),
    ("shunt", r"<shunt>"),
    ("string", r'"(?:[^"\\]|\\.)*"'),
    ("regexp", r"/(?:[^/\\\n]|\\.)*/"),
    ("number", r"-?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?"),
    ("symbol", r"[A-Za-z_][A-Za-z0-9_]*"),
    ("colon", r":"),
    ("semicolon", r";"),
    ("lparen", r"\("),
    ("rparen", r"\)"),
    ("comma", r","),
    ("any", r"\*"),
)
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPEC))
_SKIPPED = frozenset({"space", "comment"})

_STRING_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_SYMBOL_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    text: str
    position: int


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    position = 0
    while position < len(text):
        match = _TOKEN_RE.match(text, position)
        if match is None:
            raise RouteParseError(
                f"unexpected character {text[position]!r} at offset {position}",
                position=position,
            )
        kind = match.lastgroup or ""
        if kind not in _SKIPPED:
            tokens.append(_Token(kind, match.group(), position))
        position = match.end()
    tokens.append(_Token("eof", "", len(text)))
    return tokens


def _unquote_string(text: str) -> str:
    return _ESCAPE_RE.sub(lambda m: _STRING_ESCAPES.get(m.group(1), m.group(1)), text[1:-1])


def _unquote_regexp(text: str) -> str:
    # kept escaped; Regexp stores patterns in delimited form
    return text[1:-1]


def _parse_number(token: _Token) -> int | float:
    if re.fullmatch(r"-?\d+", token.text):
        return int(token.text)
    value = float(token.text)
    if not math.isfinite(value):
        raise RouteParseError(f"number {token.text} out of range at offset {token.position}", position=token.position)
    return value


class _Parser:
    def __init__(self, text: str) -> None:
        self._tokens = _tokenize(text)
        self._index = 0

    @property
    def _current(self) -> _Token:
        return self._tokens[self._index]

    def _fail(self, expected: str) -> RouteParseError:
        token = self._current
        found = "end of input" if token.kind == "eof" else repr(token.text)
        return RouteParseError(
            f"expected {expected}, found {found} at offset {token.position}",
            position=token.position,
        )

    def _accept(self, kind: str) -> _Token | None:
        token = self._current
        if token.kind != kind:
            return None
        self._index += 1
        return token

    def _expect(self, kind: str, expected: str) -> _Token:
        token = self._accept(kind)
        if token is None:
            raise self._fail(expected)
        return token

    def parse_document(self) -> list[Route]:
        routes: list[Route] = []
        while True:
            while self._accept("semicolon"):
                pass
            if self._current.kind == "eof":
                return routes
            routes.append(self._parse_definition())
            if self._current.kind != "eof":
                self._expect("semicolon", "';'")

    def _parse_definition(self) -> Route:
        route_id = self._expect("symbol", "route id").text
        self._expect("colon", "':'")
        predicates: list[Predicate] = []
        if not self._accept("any"):
            name, args = self._parse_call("predicate")
            predicates.append(Predicate(name=name, args=args))
            while self._accept("and"):
                name, args = self._parse_call("predicate")
                predicates.append(Predicate(name=name, args=args))

        filters: list[Filter] = []
        self._expect("arrow", "'->'")
        while self._current.kind == "symbol":
            name, args = self._parse_call("filter")
            filters.append(Filter(name=name, args=args))
            self._expect("arrow", "'->'")

        if self._accept("shunt"):
            return Route(id=route_id, predicates=predicates, filters=filters, shunt=True)
        backend = self._expect("string", "backend address or <shunt>")
        return Route(id=route_id, predicates=predicates, filters=filters, backend=_unquote_string(backend.text))

    def _parse_call(self, what: str) -> tuple[str, list[RouteArg]]:
        name = self._expect("symbol", f"{what} name").text
        self._expect("lparen", "'('")
        args: list[RouteArg] = []
        if self._accept("rparen"):
            return name, args
        args.append(self._parse_arg())
        while self._accept("comma"):
            args.append(self._parse_arg())
        self._expect("rparen", "')'")
        return name, args

    def _parse_arg(self) -> RouteArg:
        token = self._current
        if token.kind == "string":
            self._index += 1
            return _unquote_string(token.text)
        if token.kind == "regexp":
            self._index += 1
            return Regexp(pattern=_unquote_regexp(token.text))
        if token.kind == "number":
            self._index += 1
            return _parse_number(token)
        raise self._fail("string, number or regexp argument")


def parse_document(text: str) -> list[Route]:
    """Parse a ``;`` separated list of route definitions.

    Raises :class:`RouteParseError` on the first error; no partial
    result is returned.
    """
    return _Parser(text).parse_document()


def is_route_id(value: str) -> bool:
    """Whether ``value`` can be read back as a route id."""
    return _SYMBOL_RE.match(value) is not None


def _quote_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n").replace("\t", "\\t").replace("\r", "\\r")
    return f'"{escaped}"'


def _format_arg(arg: RouteArg) -> str:
    if isinstance(arg, Regexp):
        return f"/{arg.pattern}/"
    if isinstance(arg, str):
        return _quote_string(arg)
    return repr(arg)


def _format_call(name: str, args: Iterable[RouteArg]) -> str:
    return f"{name}({', '.join(_format_arg(a) for a in args)})"


def serialize_route(route: Route) -> str:
    """Format a route as an expression, without its id."""
    parts = [" && ".join(_format_call(p.name, p.args) for p in route.predicates) or "*"]
    parts.extend(_format_call(f.name, f.args) for f in route.filters)
    parts.append("<shunt>" if route.shunt else _quote_string(route.backend or ""))
    return " -> ".join(parts)


def serialize_document(routes: Iterable[Route]) -> str:
    """Format routes as a document of ``id: expression`` definitions."""
    lines: list[str] = []
    for route in routes:
        if not is_route_id(route.id):
            raise InvalidRouteIdError(f"route id {route.id!r} cannot be written as a definition")
        lines.append(f"{route.id}: {serialize_route(route)};")
    return "\n".join(lines)
