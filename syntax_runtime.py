"""Runtime support for generated syntax node classes.

Generated modules import their base classes and assertion helpers from here.
Raw storage is immutable and positional; `SyntaxData` wraps it with a parent
link and lazily realized children; `Syntax` views pair a root with one data
node.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TypeVar

# ===--- Raw storage ---=== #


class SourcePresence(Enum):
    PRESENT = "present"
    MISSING = "missing"


@dataclass(frozen=True)
class RawSyntax:
    """Kind-tagged, cursor-addressed storage for one node.

    Equality is structural: two blank nodes built independently compare
    equal while remaining distinct objects.
    """

    kind: str
    layout: tuple[RawSyntax, ...] = ()
    presence: SourcePresence = SourcePresence.PRESENT

    @classmethod
    def make(
        cls,
        kind: str,
        layout,
        presence: SourcePresence = SourcePresence.PRESENT,
    ) -> RawSyntax:
        return cls(kind=kind, layout=tuple(layout), presence=presence)

    @classmethod
    def missing(cls, kind: str) -> RawSyntax:
        return cls(kind=kind, layout=(), presence=SourcePresence.MISSING)

    @property
    def is_missing(self) -> bool:
        return self.presence is SourcePresence.MISSING

    @property
    def is_token(self) -> bool:
        return False

    def get_child(self, cursor: int) -> RawSyntax:
        return self.layout[cursor]

    def replace_child(self, cursor: int, new_child: RawSyntax) -> RawSyntax:
        """Return new storage with one child swapped; siblings are shared."""
        if not 0 <= cursor < len(self.layout):
            raise IndexError(f"cursor {cursor} out of range for {self.kind}")
        layout = self.layout[:cursor] + (new_child,) + self.layout[cursor + 1 :]
        return replace(self, layout=layout)


@dataclass(frozen=True)
class RawTokenSyntax(RawSyntax):
    kind: str = "Token"
    token_kind: str = ""
    text: str = ""

    @property
    def is_token(self) -> bool:
        return True


def make_token(
    token_kind: str,
    text: str,
    presence: SourcePresence = SourcePresence.PRESENT,
) -> RawTokenSyntax:
    return RawTokenSyntax(token_kind=token_kind, text=text, presence=presence)


def missing_token(token_kind: str, text: str) -> RawTokenSyntax:
    return make_token(token_kind, text, SourcePresence.MISSING)


# ===--- Structural assertions ---=== #
# Violations mean a producer built a corrupt tree. These always raise,
# independent of the interpreter's -O flag.


def syntax_assert(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


def syntax_assert_kind_is(raw: RawSyntax, kind: str) -> None:
    syntax_assert(raw.kind == kind, f"expected {kind} node, got {raw.kind}")


def syntax_assert_layout_size(raw: RawSyntax, size: int) -> None:
    syntax_assert(
        len(raw.layout) == size,
        f"{raw.kind} expects {size} children, got {len(raw.layout)}",
    )


def syntax_assert_token_kind(raw: RawSyntax, token_kind: str) -> None:
    syntax_assert(raw.is_token, f"expected {token_kind} token, got {raw.kind} node")
    syntax_assert(
        raw.token_kind == token_kind,
        f"expected {token_kind} token, got {raw.token_kind}",
    )


def syntax_assert_token_is(raw: RawSyntax, token_kind: str, text: str) -> None:
    syntax_assert_token_kind(raw, token_kind)
    syntax_assert(raw.text == text, f"expected {text!r} token, got {raw.text!r}")


def syntax_assert_child_kind(raw: RawSyntax, kind: str, accepted) -> None:
    """`accepted` is the full set of raw kinds allowed in the slot."""
    syntax_assert(
        not raw.is_token and raw.kind in accepted,
        f"expected {kind} child, got {raw.kind}",
    )


def token_matches(raw: RawSyntax, token_kind: str, text: str | None = None) -> bool:
    if not raw.is_token or raw.token_kind != token_kind:
        return False
    return text is None or raw.text == text


# ===--- Kind registry ---=== #

_VIEW_CLASSES: dict[str, type[Syntax]] = {}
_DATA_CLASSES: dict[str, type[SyntaxData]] = {}

SyntaxT = TypeVar("SyntaxT", bound="Syntax")
DataT = TypeVar("DataT", bound="SyntaxData")


def syntax_node(cls: type[SyntaxT]) -> type[SyntaxT]:
    """Register a view class under its `kind`. Re-registration replaces."""
    _VIEW_CLASSES[cls.kind] = cls
    return cls


def syntax_data(cls: type[DataT]) -> type[DataT]:
    """Register a data class under its `kind`. Re-registration replaces."""
    _DATA_CLASSES[cls.kind] = cls
    return cls


def view_class_for(kind: str) -> type[Syntax]:
    return _VIEW_CLASSES.get(kind, Syntax)


def data_class_for(kind: str) -> type[SyntaxData]:
    return _DATA_CLASSES.get(kind, SyntaxData)


def is_kind_of(kind: str, expected: str) -> bool:
    """True when `kind` is `expected` or a registered subkind of it."""
    if kind == expected:
        return True
    view = _VIEW_CLASSES.get(kind)
    base = _VIEW_CLASSES.get(expected)
    if view is None or base is None:
        return False
    return issubclass(view, base)


# ===--- Data nodes ---=== #


class ChildCell:
    """Publish-once slot for a lazily realized child.

    Starts unrealized. `publish` stores the candidate only if the slot is
    still empty and returns whichever value won; `dict.setdefault` is a
    single atomic operation, so racing readers all adopt the same child.
    """

    __slots__ = ("_box",)

    def __init__(self) -> None:
        self._box: dict[int, SyntaxData] = {}

    def get(self) -> SyntaxData | None:
        return self._box.get(0)

    def publish(self, candidate: SyntaxData) -> SyntaxData:
        return self._box.setdefault(0, candidate)


class SyntaxData:
    kind = "Syntax"

    def __init__(
        self,
        raw: RawSyntax,
        parent: SyntaxData | None = None,
        index_in_parent: int = 0,
    ):
        self.raw = raw
        self.parent = parent
        self.index_in_parent = index_in_parent
        self._cells = tuple(ChildCell() for _ in raw.layout)

    @classmethod
    def make(
        cls,
        raw: RawSyntax,
        parent: SyntaxData | None = None,
        index_in_parent: int = 0,
    ) -> SyntaxData:
        return cls(raw, parent, index_in_parent)

    @classmethod
    def classof(cls, data: SyntaxData) -> bool:
        return True

    def realize_child(self, cursor: int) -> SyntaxData:
        """Return the cached child at `cursor`, building it on first access."""
        cell = self._cells[cursor]
        child = cell.get()
        if child is None:
            candidate = make_data(self.raw.get_child(cursor), self, cursor)
            child = cell.publish(candidate)
        return child

    def replace_child(self, new_raw_child: RawSyntax, cursor: int, view_class):
        """Build a new tree with one child replaced; return a `view_class` view."""
        new_raw = self.raw.replace_child(cursor, new_raw_child)
        data, root = self._rebuild(new_raw)
        return view_class(root, data)

    def _rebuild(self, new_raw: RawSyntax) -> tuple[SyntaxData, SyntaxData]:
        if self.parent is None:
            data = make_data(new_raw)
            return data, data
        parent_raw = self.parent.raw.replace_child(self.index_in_parent, new_raw)
        parent, root = self.parent._rebuild(parent_raw)
        return parent.realize_child(self.index_in_parent), root


class TokenData(SyntaxData):
    kind = "Token"


def make_data(
    raw: RawSyntax, parent: SyntaxData | None = None, index_in_parent: int = 0
) -> SyntaxData:
    if raw.is_token:
        return TokenData.make(raw, parent, index_in_parent)
    return data_class_for(raw.kind).make(raw, parent, index_in_parent)


# ===--- Views ---=== #


@dataclass(frozen=True, eq=False)
class Syntax:
    kind = "Syntax"

    root: SyntaxData
    data: SyntaxData = field(repr=False)

    @property
    def raw(self) -> RawSyntax:
        return self.data.raw

    @property
    def is_missing(self) -> bool:
        return self.raw.is_missing

    @property
    def parent(self) -> Syntax | None:
        if self.data.parent is None:
            return None
        return make_syntax(self.root, self.data.parent)

    @classmethod
    def classof(cls, syntax: Syntax) -> bool:
        return is_kind_of(syntax.raw.kind, cls.kind)


def make_syntax(root: SyntaxData, data: SyntaxData) -> Syntax:
    if data.raw.is_token:
        return Token(root, data)
    return view_class_for(data.raw.kind)(root, data)


def make_root(data: SyntaxData) -> Syntax:
    return make_syntax(data, data)


@syntax_node
class Token(Syntax):
    kind = "Token"

    @classmethod
    def make(cls, token_kind: str, text: str) -> Token:
        data = TokenData.make(make_token(token_kind, text))
        return cls(data, data)

    @property
    def token_kind(self) -> str:
        return self.raw.token_kind

    @property
    def text(self) -> str:
        return self.raw.text

    @classmethod
    def classof(cls, syntax: Syntax) -> bool:
        return syntax.raw.is_token


@syntax_node
class Decl(Syntax):
    kind = "Decl"


@syntax_node
class Stmt(Syntax):
    kind = "Stmt"


@syntax_node
class Expr(Syntax):
    kind = "Expr"


@syntax_node
class Type(Syntax):
    kind = "Type"


@syntax_node
class Pattern(Syntax):
    kind = "Pattern"


@syntax_node
class SyntaxCollection(Syntax):
    kind = "SyntaxCollection"


@syntax_node
class MissingDecl(Decl):
    kind = "MissingDecl"


@syntax_node
class MissingStmt(Stmt):
    kind = "MissingStmt"


@syntax_node
class MissingExpr(Expr):
    kind = "MissingExpr"


@syntax_node
class MissingType(Type):
    kind = "MissingType"


@syntax_node
class MissingPattern(Pattern):
    kind = "MissingPattern"


@syntax_node
class MissingSyntaxCollection(SyntaxCollection):
    kind = "MissingSyntaxCollection"
