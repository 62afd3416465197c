"""Syntax node class generator.

Generates typed view and data classes for an immutable syntax tree from an
XML dump of the syntax schema records. Output targets the `syntax_runtime`
module and is written to a single stream.

Usage:
    python syntax_gen.py --implementation --category Stmt > stmt_nodes.py
    python syntax_gen.py --interface --category Expr -o expr_nodes.pyi
"""

import argparse
import re
import sys
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

GENERATOR_ROOT = Path(__file__).parent
DEFAULT_SCHEMA = GENERATOR_ROOT / "schema" / "syntax.xml"
STDOUT_MARKER = "-"


# ===--- Categories ---=== #


class Category(Enum):
    DECL = "Decl"
    STMT = "Stmt"
    EXPR = "Expr"
    TYPE = "Type"
    PATTERN = "Pattern"
    SYNTAX_COLLECTION = "SyntaxCollection"
    TOKEN = "Token"


class PseudoTarget(Enum):
    SYNTAX_FACTORY = "SyntaxFactory"
    SYNTAX_REWRITER = "SyntaxRewriter"


MISSING_KINDS = {
    Category.DECL: "MissingDecl",
    Category.STMT: "MissingStmt",
    Category.EXPR: "MissingExpr",
    Category.TYPE: "MissingType",
    Category.PATTERN: "MissingPattern",
    Category.SYNTAX_COLLECTION: "MissingSyntaxCollection",
}

SUPPORTED_LANGUAGES = ("python",)

LAYOUT_CLASS = "Layout"
TOKEN_CLASS = "Token"
IDENTIFIER_CLASS = "Identifier"


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class GenerateConfig:
    action: str
    target: Category | PseudoTarget
    language: str
    schema: Path
    output: Path | None


@dataclass(frozen=True)
class DiscoveryConfig:
    command: str
    category: Category | None
    info_kind: str | None
    schema: Path


VALID_ERROR_CODES = {
    "MISSING_ACTION",
    "MISSING_CATEGORY",
    "UNKNOWN_CATEGORY",
    "UNSUPPORTED_LANGUAGE",
    "CONFLICT_GENERATE_DISCOVERY",
    "PATH_NOT_FOUND",
}


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


class SchemaError(Exception):
    """The schema records are inconsistent with what the generator expects."""


class GenerationNotImplemented(NotImplementedError):
    """The requested target has no emitter yet."""


def _target_names() -> list[str]:
    return [c.value for c in Category] + [p.value for p in PseudoTarget]


def resolve_target(raw: str) -> Category | PseudoTarget:
    for category in Category:
        if category.value == raw:
            return category
    for pseudo in PseudoTarget:
        if pseudo.value == raw:
            return pseudo
    raise ConfigError(
        "UNKNOWN_CATEGORY",
        f"{raw} is an unknown category!",
        f"Use one of: {', '.join(_target_names())}.",
    )


def validate_path_exists(
    path: Path | None, flag: str, suggestion: str | None = None
) -> Path:
    if path is None:
        raise ConfigError(
            "PATH_NOT_FOUND",
            f"{flag} is required: no path provided.",
            suggestion or f"Pass the path explicitly: {flag} /path/to/resource",
        )
    if path.exists():
        return path
    raise ConfigError(
        "PATH_NOT_FOUND",
        f"Path for {flag} does not exist: {path}",
        suggestion or "Provide an existing path for this flag.",
    )


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="syntax-gen", description="Generate syntax node classes"
    )

    action_group = parser.add_mutually_exclusive_group()
    action_group.add_argument(
        "--interface",
        dest="action",
        action="store_const",
        const="interface",
        help="Generate the interface for the given syntax category",
    )
    action_group.add_argument(
        "--implementation",
        dest="action",
        action="store_const",
        const="implementation",
        help="Generate the implementation for the given syntax category",
    )

    parser.add_argument("--category", type=str, default=None)
    parser.add_argument("--language", type=str, default="python")
    parser.add_argument("--schema", type=Path, default=DEFAULT_SCHEMA)
    parser.add_argument("-o", "--output", type=str, default=STDOUT_MARKER)

    discovery_group = parser.add_mutually_exclusive_group()
    discovery_group.add_argument("--list-kinds", action="store_true", default=False)
    discovery_group.add_argument("--info", type=str, default=None)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def validate_config(args: argparse.Namespace) -> GenerateConfig | DiscoveryConfig:
    has_discovery_command = bool(args.list_kinds or args.info)

    if args.action is not None and has_discovery_command:
        raise ConfigError(
            "CONFLICT_GENERATE_DISCOVERY",
            "Generate flags cannot be combined with discovery flags.",
            "Choose either --interface/--implementation or one discovery command.",
        )

    if has_discovery_command:
        category = None
        if args.category is not None:
            target = resolve_target(args.category)
            if not isinstance(target, Category):
                raise ConfigError(
                    "UNKNOWN_CATEGORY",
                    f"{args.category} has no node kinds to list.",
                    f"Use one of: {', '.join(c.value for c in Category)}.",
                )
            category = target
        schema = validate_path_exists(args.schema, "--schema")
        return DiscoveryConfig(
            command="list-kinds" if args.list_kinds else "info",
            category=category,
            info_kind=args.info,
            schema=schema,
        )

    if args.action is None:
        raise ConfigError(
            "MISSING_ACTION",
            "action required",
            "Pass --interface or --implementation.",
        )
    if args.category is None:
        raise ConfigError(
            "MISSING_CATEGORY",
            "Generate mode requires --category.",
            f"Use one of: {', '.join(_target_names())}.",
        )
    target = resolve_target(args.category)

    if args.language not in SUPPORTED_LANGUAGES:
        raise ConfigError(
            "UNSUPPORTED_LANGUAGE",
            f"Unsupported target language: {args.language}",
            f"Use one of: {', '.join(SUPPORTED_LANGUAGES)}.",
        )

    schema = validate_path_exists(args.schema, "--schema")
    output = None if args.output == STDOUT_MARKER else Path(args.output)

    return GenerateConfig(
        action=args.action,
        target=target,
        language=args.language,
        schema=schema,
        output=output,
    )


def build_config(argv: list[str] | None = None) -> GenerateConfig | DiscoveryConfig:
    return validate_config(parse_args(argv))


# ===--- Schema record store ---=== #


@dataclass(frozen=True)
class RecordField:
    """One typed value on a schema record.

    Attributes:
        name: Field name, unique within the record.
        type_name: Schema class or scalar type name ("string", "bit", ...).
        value: Scalar text, for scalar fields.
        ref: Name of the referenced definition, for record-typed fields.
    """

    name: str
    type_name: str
    value: str | None = None
    ref: str | None = None


@dataclass(frozen=True)
class Record:
    name: str
    base: str | None
    fields: tuple[RecordField, ...]
    is_class: bool


class SchemaStore:
    """Read-only, queryable view over the loaded schema records.

    Classes and definitions share one namespace. Definitions keep document
    order, which is the order node kinds are emitted in.
    """

    def __init__(self, records: list[Record]):
        self._records: dict[str, Record] = {}
        for record in records:
            if record.name in self._records:
                raise SchemaError(f"Duplicate schema record: {record.name}")
            self._records[record.name] = record

        for record in records:
            if record.base is not None:
                base = self._records.get(record.base)
                if base is None:
                    raise SchemaError(
                        f"Record {record.name} derives from unknown class {record.base}"
                    )
                if not base.is_class:
                    raise SchemaError(
                        f"Record {record.name} derives from definition {record.base}"
                    )
            for f in record.fields:
                if f.ref is not None and f.ref not in self._records:
                    raise SchemaError(
                        f"Field {record.name}.{f.name} references unknown record {f.ref}"
                    )

        self.classes = tuple(r for r in records if r.is_class)
        self.definitions = tuple(r for r in records if not r.is_class)

    def has_class(self, name: str) -> bool:
        record = self._records.get(name)
        return record is not None and record.is_class

    def get(self, name: str) -> Record | None:
        return self._records.get(name)

    def get_definition(self, name: str) -> Record | None:
        record = self._records.get(name)
        if record is None or record.is_class:
            return None
        return record

    def superclasses(self, record: Record) -> tuple[str, ...]:
        """Return the superclass chain, most general first, immediate last."""
        chain: list[str] = []
        seen = {record.name}
        base = record.base
        while base is not None:
            if base in seen:
                raise SchemaError(f"Cyclic superclass chain at {record.name}")
            seen.add(base)
            chain.append(base)
            base = self._records[base].base
        chain.reverse()
        return tuple(chain)

    def is_subclass_of(self, name: str, class_name: str) -> bool:
        record = self._records.get(name)
        if record is None:
            return False
        return name == class_name or class_name in self.superclasses(record)

    def derived_definitions(self, class_name: str) -> list[Record]:
        return [d for d in self.definitions if class_name in self.superclasses(d)]

    def descendants(self, class_name: str) -> list[str]:
        """Names of every class and definition deriving from `class_name`."""
        return [
            r.name for r in self._records.values() if class_name in self.superclasses(r)
        ]

    def fields_of(self, record: Record) -> tuple[RecordField, ...]:
        """Return inherited and own fields; a redefinition replaces in place."""
        merged: dict[str, RecordField] = {}
        for class_name in self.superclasses(record):
            for f in self._records[class_name].fields:
                merged[f.name] = f
        for f in record.fields:
            merged[f.name] = f
        return tuple(merged.values())

    def value_of(self, record: Record, field_name: str) -> str | None:
        for f in self.fields_of(record):
            if f.name == field_name:
                return f.value
        return None


def parse_record(el: ET.Element) -> Record:
    name = el.get("name")
    if not name:
        raise SchemaError(f"<{el.tag}> element without a name attribute")
    fields = []
    seen = set()
    for f in el.findall("field"):
        field_name = f.get("name")
        if not field_name:
            raise SchemaError(f"Field without a name on record {name}")
        if field_name in seen:
            raise SchemaError(f"Duplicate field {field_name} on record {name}")
        seen.add(field_name)
        fields.append(
            RecordField(
                name=field_name,
                type_name=f.get("type", "string"),
                value=f.text.strip() if f.text is not None else None,
                ref=f.get("ref"),
            )
        )
    return Record(
        name=name,
        base=el.get("base"),
        fields=tuple(fields),
        is_class=el.tag == "class",
    )


def parse_schema(root: ET.Element) -> SchemaStore:
    records = [parse_record(el) for el in root if el.tag in ("class", "def")]
    return SchemaStore(records)


def load_schema(path: Path) -> SchemaStore:
    return parse_schema(ET.parse(path).getroot())


# ===--- Category classification ---=== #


def classify(store: SchemaStore, record: Record) -> Category:
    """Return the first category class found in the record's superclass chain.

    Raises:
        SchemaError: When no superclass is a category class. There is no
            default category.
    """
    names = {c.value: c for c in Category}
    for class_name in store.superclasses(record):
        if class_name in names and store.has_class(class_name):
            return names[class_name]
    raise SchemaError(f"{record.name} does not belong to any syntax category")


def missing_kind_for(category: Category) -> str:
    try:
        return MISSING_KINDS[category]
    except KeyError:
        raise SchemaError(
            f"{category.value} has no missing placeholder kind"
        ) from None


# ===--- Layout extraction ---=== #


@dataclass(frozen=True)
class TokenChild:
    """Token-shaped child slot.

    Attributes:
        name: Slot name as declared in the schema.
        cursor: Zero-based position in the raw layout.
        kind: Token kind the raw child must carry.
        spelling: Exact text the raw child must carry, or None for the
            open-ended identifier variant (kind check only).
    """

    name: str
    cursor: int
    kind: str
    spelling: str | None


@dataclass(frozen=True)
class NodeChild:
    """Node-shaped child slot.

    Attributes:
        name: Slot name as declared in the schema.
        cursor: Zero-based position in the raw layout.
        kind: Expected nested kind (immediate superclass of the referenced
            definition).
        missing_kind: Placeholder kind used for blank construction.
        accepted_kinds: Every raw kind the slot accepts: `kind`, the schema
            records deriving from it, and `missing_kind`.
        view_kind: View class named in signatures. Falls back to the
            category base when `kind` is only emitted by another category.
    """

    name: str
    cursor: int
    kind: str
    missing_kind: str
    accepted_kinds: tuple[str, ...]
    view_kind: str


ChildSlot = TokenChild | NodeChild


@dataclass(frozen=True)
class NodeDefinition:
    """One emitted kind.

    Token definitions carry `token_kind` and, unless identifier-like,
    `spelling`; they have no children.
    """

    name: str
    superclass: str
    category: Category
    children: tuple[ChildSlot, ...]
    token_kind: str | None = None
    spelling: str | None = None

    @property
    def is_token(self) -> bool:
        return self.token_kind is not None

    @property
    def token_children(self) -> tuple[TokenChild, ...]:
        return tuple(c for c in self.children if isinstance(c, TokenChild))

    @property
    def node_children(self) -> tuple[NodeChild, ...]:
        return tuple(c for c in self.children if isinstance(c, NodeChild))


def structural_fields(store: SchemaStore, record: Record) -> list[RecordField]:
    """Drop bookkeeping fields; keep only Layout-typed children."""
    return [
        f for f in store.fields_of(record) if store.is_subclass_of(f.type_name, LAYOUT_CLASS)
    ]


def token_signature(store: SchemaStore, record: Record) -> tuple[str, str | None]:
    """Return (token kind, spelling) for a token record.

    Identifier-derived tokens have no fixed spelling.
    """
    kind = store.value_of(record, "Kind")
    if not kind:
        raise SchemaError(f"Token {record.name} has no Kind")
    if store.is_subclass_of(record.name, IDENTIFIER_CLASS):
        return kind, None
    spelling = store.value_of(record, "Spelling")
    if spelling is None:
        raise SchemaError(f"Token {record.name} has no Spelling")
    return kind, spelling


def node_child(
    store: SchemaStore, owner: Record, name: str, cursor: int, child_def: Record
) -> NodeChild:
    if child_def.base is None:
        raise SchemaError(f"Node {child_def.name} has no superclass")
    kind = child_def.base
    category = classify(store, child_def)
    missing_kind = missing_kind_for(category)
    accepted = [kind]
    accepted.extend(n for n in store.descendants(kind) if n not in accepted)
    if missing_kind not in accepted:
        accepted.append(missing_kind)
    view_kind = kind
    if kind not in RUNTIME_VIEWS and classify(store, owner) is not category:
        view_kind = category.value
    return NodeChild(name, cursor, kind, missing_kind, tuple(accepted), view_kind)


def extract_layout(store: SchemaStore, record: Record) -> tuple[ChildSlot, ...]:
    children: list[ChildSlot] = []
    for cursor, f in enumerate(structural_fields(store, record)):
        if f.ref is None:
            raise SchemaError(f"Layout field {record.name}.{f.name} has no node reference")
        child_def = store.get(f.ref)
        if store.is_subclass_of(child_def.name, TOKEN_CLASS):
            kind, spelling = token_signature(store, child_def)
            children.append(TokenChild(f.name, cursor, kind, spelling))
            continue
        children.append(node_child(store, record, f.name, cursor, child_def))
    return tuple(children)


def build_definition(store: SchemaStore, record: Record) -> NodeDefinition:
    category = classify(store, record)
    token_kind = spelling = None
    if category is Category.TOKEN:
        token_kind, spelling = token_signature(store, record)
    return NodeDefinition(
        name=record.name,
        superclass=record.base,
        category=category,
        children=extract_layout(store, record),
        token_kind=token_kind,
        spelling=spelling,
    )


def umbrella_name(category: Category) -> str:
    return f"Any{category.value}"


def nodes_in_category(store: SchemaStore, category: Category) -> list[NodeDefinition]:
    """Return the category's node kinds in schema order, minus its umbrella node."""
    umbrella = umbrella_name(category)
    return [
        build_definition(store, record)
        for record in store.derived_definitions(category.value)
        if record.name != umbrella
    ]


def intermediate_classes(
    store: SchemaStore, nodes: list[NodeDefinition]
) -> list[tuple[str, str]]:
    """Return (class, base) pairs for non-category classes between a
    category and its emitted kinds, most general first, without repeats."""
    pairs: list[tuple[str, str]] = []
    seen: set[str] = set()
    for node in nodes:
        chain = store.superclasses(store.get(node.name))
        start = chain.index(node.category.value) + 1
        for i in range(start, len(chain)):
            if chain[i] not in seen:
                seen.add(chain[i])
                pairs.append((chain[i], chain[i - 1]))
    return pairs


# ===--- Naming helpers ---=== #


def to_snake_case(name: str) -> str:
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", "_", name).lower()


def cursor_member(slot: ChildSlot) -> str:
    return to_snake_case(slot.name).upper()


def py_string(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def data_class_name(node: NodeDefinition) -> str:
    return f"{node.name}Data"


RUNTIME_VIEWS = frozenset(
    {
        "Syntax",
        "Token",
        "Decl",
        "Stmt",
        "Expr",
        "Type",
        "Pattern",
        "SyntaxCollection",
        *MISSING_KINDS.values(),
    }
)

INIT_SIGNATURE = (
    "raw: RawSyntax, parent: SyntaxData | None = None, index_in_parent: int = 0"
)
STUB_INIT_SIGNATURE = (
    "raw: RawSyntax, parent: SyntaxData | None = ..., index_in_parent: int = ..."
)


# ===--- View emitter ---=== #


def emit_cursor_enum(node: NodeDefinition) -> list[str]:
    """Emit the nested Cursor enum shared by the view and data classes.

    Members follow declared child order and take the cursor index as value,
    so the data class can address raw children through the same enum.
    """
    lines = ["    class Cursor(IntEnum):"]
    if not node.children:
        lines.append("        pass")
    for slot in node.children:
        lines.append(f"        {cursor_member(slot)} = {slot.cursor}")
    lines.append("")
    return lines


def token_check(variable: str, token_kind: str, spelling: str | None) -> str:
    if spelling is None:
        return f"syntax_assert_token_kind({variable}, {py_string(token_kind)})"
    return (
        f"syntax_assert_token_is({variable}, {py_string(token_kind)}, "
        f"{py_string(spelling)})"
    )


def token_assertion(variable: str, slot: TokenChild) -> str:
    return token_check(variable, slot.kind, slot.spelling)


def token_predicate(variable: str, node: NodeDefinition) -> str:
    args = [variable, py_string(node.token_kind)]
    if node.spelling is not None:
        args.append(py_string(node.spelling))
    return f"token_matches({', '.join(args)})"


def kind_set(kinds: tuple[str, ...]) -> str:
    return "{" + ", ".join(py_string(k) for k in kinds) + "}"


def child_annotation(slot: ChildSlot) -> str:
    if isinstance(slot, TokenChild):
        return "Token"
    return f"{slot.view_kind} | None"


def child_parameter(slot: ChildSlot) -> str:
    return "Token" if isinstance(slot, TokenChild) else slot.view_kind


def emit_token_view_interface(node: NodeDefinition) -> list[str]:
    return [
        f"class {node.name}({node.superclass}):",
        "    TOKEN_KIND: str",
        "    SPELLING: str | None",
        "    @classmethod",
        "    def classof(cls, syntax: Syntax) -> bool: ...",
        "",
    ]


def emit_token_view_implementation(node: NodeDefinition) -> list[str]:
    """Token kinds share the runtime's `Token` storage; they are told apart
    by token kind and spelling, not by the raw kind tag."""
    spelling = "None" if node.spelling is None else py_string(node.spelling)
    return [
        "@syntax_node",
        f"class {node.name}({node.superclass}):",
        f"    kind = {py_string(node.name)}",
        f"    TOKEN_KIND = {py_string(node.token_kind)}",
        f"    SPELLING = {spelling}",
        "",
        "    @classmethod",
        "    def classof(cls, syntax: Syntax) -> bool:",
        f"        return {token_predicate('syntax.raw', node)}",
    ]


def emit_view_interface(node: NodeDefinition) -> list[str]:
    if node.is_token:
        return emit_token_view_interface(node)
    lines = [f"class {node.name}({node.superclass}):"]
    lines.extend(emit_cursor_enum(node))
    for slot in node.children:
        snake = to_snake_case(slot.name)
        lines.append(f"    def get_{snake}(self) -> {child_annotation(slot)}: ...")
        lines.append(
            f"    def with_{snake}(self, new_{snake}: {child_parameter(slot)})"
            f" -> {node.name}: ..."
        )
    lines.append("    @classmethod")
    lines.append("    def classof(cls, syntax: Syntax) -> bool: ...")
    lines.append("")
    return lines


def emit_accessor(node: NodeDefinition, slot: ChildSlot) -> list[str]:
    snake = to_snake_case(slot.name)
    cursor = f"self.Cursor.{cursor_member(slot)}"
    lines = [f"    def get_{snake}(self) -> {child_annotation(slot)}:"]
    if isinstance(slot, TokenChild):
        lines.append(f"        return Token(self.root, self.data.realize_child({cursor}))")
    else:
        lines.append(f"        raw_child = self.raw.get_child({cursor})")
        lines.append("        if raw_child.is_missing:")
        lines.append("            return None")
        lines.append(
            f"        return make_syntax(self.root, self.data.realize_child({cursor}))"
        )
    lines.append("")
    return lines


def emit_builder(node: NodeDefinition, slot: ChildSlot) -> list[str]:
    snake = to_snake_case(slot.name)
    arg = f"new_{snake}"
    cursor = f"self.Cursor.{cursor_member(slot)}"
    lines = [
        f"    def with_{snake}(self, {arg}: {child_parameter(slot)}) -> {node.name}:"
    ]
    if isinstance(slot, TokenChild):
        lines.append(f"        {token_assertion(f'{arg}.raw', slot)}")
    lines.append(
        f"        return self.data.replace_child({arg}.raw, {cursor}, {node.name})"
    )
    lines.append("")
    return lines


def emit_view_implementation(node: NodeDefinition) -> list[str]:
    if node.is_token:
        return emit_token_view_implementation(node)
    lines = [
        "@syntax_node",
        f"class {node.name}({node.superclass}):",
        f"    kind = {py_string(node.name)}",
        "",
    ]
    lines.extend(emit_cursor_enum(node))
    for slot in node.children:
        lines.extend(emit_accessor(node, slot))
        lines.extend(emit_builder(node, slot))
    lines.append("    @classmethod")
    lines.append("    def classof(cls, syntax: Syntax) -> bool:")
    lines.append(f"        return syntax.raw.kind == {py_string(node.name)}")
    return lines


# ===--- Data emitter ---=== #


def data_base_class(node: NodeDefinition) -> str:
    return "TokenData" if node.is_token else "SyntaxData"


def emit_data_interface(node: NodeDefinition) -> list[str]:
    name = data_class_name(node)
    return [
        f"class {name}({data_base_class(node)}):",
        f"    def __init__(self, {STUB_INIT_SIGNATURE}) -> None: ...",
        "    @classmethod",
        f"    def make(cls, {STUB_INIT_SIGNATURE}) -> {name}: ...",
        "    @classmethod",
        f"    def make_blank(cls) -> {name}: ...",
        "    @classmethod",
        "    def classof(cls, data: SyntaxData) -> bool: ...",
        "",
    ]


def emit_validation(node: NodeDefinition) -> list[str]:
    """Emit the constructor's structural checks.

    Arity is checked before any child is addressed so a short layout fails
    on the size check rather than on an index lookup. Node slots check
    against the kinds the schema derives from the slot kind, so validation
    does not depend on which other generated modules are loaded.
    """
    if node.is_token:
        return [f"        {token_check('raw', node.token_kind, node.spelling)}"]
    lines = [
        f"        syntax_assert_kind_is(raw, {py_string(node.name)})",
        f"        syntax_assert_layout_size(raw, {len(node.children)})",
    ]
    for slot in node.children:
        child = f"raw.get_child({node.name}.Cursor.{cursor_member(slot)})"
        if isinstance(slot, TokenChild):
            lines.append(f"        {token_assertion(child, slot)}")
        else:
            lines.append(
                f"        syntax_assert_child_kind({child}, {py_string(slot.kind)}, "
                f"{kind_set(slot.accepted_kinds)})"
            )
    return lines


def blank_child(slot: ChildSlot) -> str:
    if isinstance(slot, TokenChild):
        return f"missing_token({py_string(slot.kind)}, {py_string(slot.spelling or '')})"
    return f"RawSyntax.missing({py_string(slot.missing_kind)})"


def emit_make_blank(node: NodeDefinition) -> list[str]:
    name = data_class_name(node)
    if node.is_token:
        return [
            "    @classmethod",
            f"    def make_blank(cls) -> {name}:",
            f"        return cls.make(missing_token({py_string(node.token_kind)}, "
            f"{py_string(node.spelling or '')}))",
            "",
        ]
    lines = [
        "    @classmethod",
        f"    def make_blank(cls) -> {name}:",
        "        return cls.make(",
        "            RawSyntax.make(",
        f"                {py_string(node.name)},",
    ]
    if node.children:
        lines.append("                [")
        for slot in node.children:
            lines.append(f"                    {blank_child(slot)},")
        lines.append("                ],")
    else:
        lines.append("                [],")
    lines.extend(
        [
            "                SourcePresence.PRESENT,",
            "            )",
            "        )",
            "",
        ]
    )
    return lines


def emit_data_implementation(node: NodeDefinition) -> list[str]:
    name = data_class_name(node)
    lines = [
        "@syntax_data",
        f"class {name}({data_base_class(node)}):",
        f"    kind = {py_string(node.name)}",
        "",
        f"    def __init__(self, {INIT_SIGNATURE}):",
        "        super().__init__(raw, parent, index_in_parent)",
    ]
    lines.extend(emit_validation(node))
    lines.extend(
        [
            "",
            "    @classmethod",
            f"    def make(cls, {INIT_SIGNATURE}) -> {name}:",
            "        return cls(raw, parent, index_in_parent)",
            "",
        ]
    )
    lines.extend(emit_make_blank(node))
    if node.is_token:
        predicate = token_predicate("data.raw", node)
    else:
        predicate = f"data.raw.kind == {py_string(node.name)}"
    lines.extend(
        [
            "    @classmethod",
            "    def classof(cls, data: SyntaxData) -> bool:",
            f"        return {predicate}",
        ]
    )
    return lines


def emit_intermediate_class(name: str, base: str, action: str) -> list[str]:
    if action == "interface":
        return [f"class {name}({base}): ...", ""]
    return [
        "@syntax_node",
        f"class {name}({base}):",
        f"    kind = {py_string(name)}",
    ]


# ===--- Module writer ---=== #


@dataclass(frozen=True)
class WriteConfig:
    """Run metadata embedded in the generated file header.

    Attributes:
        schema_label: Schema file name, e.g. "syntax.xml".
        target: Category or pseudo-category being generated.
        action: "interface" or "implementation".
        language: Target language name.
    """

    schema_label: str
    target: Category | PseudoTarget
    action: str
    language: str


@dataclass(frozen=True)
class ExternalImport:
    """Renders as `from <module> import <name1>, <name2>, ...`."""

    module: str
    names: tuple[str, ...]


@dataclass(frozen=True)
class ModuleSpec:
    external_imports: tuple[ExternalImport, ...]
    content_lines: tuple[str, ...]


@dataclass(frozen=True)
class OutputWriteResult:
    """Result of writing the generated source.

    Attributes:
        destination: "<stdout>" or the resolved output path as a string.
        line_count: Number of newline characters written.
        byte_count: Number of UTF-8 bytes written.
    """

    destination: str
    line_count: int
    byte_count: int


_HEADER_BORDER: str = "# x-------------------------------------------x #"


def format_file_header(config: WriteConfig) -> list[str]:
    """Return comment-block lines for the generated file header.

    Output format:
        # x-------------------------------------------x #
        # | Stmt syntax nodes (implementation)
        # | Generated by syntax-gen
        # | Source: syntax.xml
        # | Language: python
        # x-------------------------------------------x #

    Raises:
        ValueError: If config.schema_label is empty.
    """
    if not config.schema_label:
        raise ValueError("schema_label must not be empty")

    return [
        _HEADER_BORDER,
        f"# | {config.target.value} syntax nodes ({config.action})",
        "# | Generated by syntax-gen",
        f"# | Source: {config.schema_label}",
        f"# | Language: {config.language}",
        _HEADER_BORDER,
    ]


def format_import_block(external_imports: tuple[ExternalImport, ...]) -> list[str]:
    """Return one import line per ExternalImport, in declaration order.

    Raises:
        ValueError: If any import has an empty names tuple.
    """
    for imp in external_imports:
        if not imp.names:
            raise ValueError(
                f"ExternalImport for module '{imp.module}' has empty names tuple"
            )
    return [f"from {imp.module} import {', '.join(imp.names)}" for imp in external_imports]


def assemble_module_source(config: WriteConfig, spec: ModuleSpec) -> str:
    """Assemble header, imports and body into one source string.

    Sections are separated by a blank line; the result ends with exactly one
    newline.
    """
    parts: list[str] = list(format_file_header(config))

    if spec.external_imports:
        parts.append("")
        parts.extend(format_import_block(spec.external_imports))

    if spec.content_lines:
        parts.append("")
        parts.extend(spec.content_lines)

    while parts and parts[-1] == "":
        parts.pop()
    return "\n".join(parts) + "\n"


def write_output(output: Path | None, source: str) -> OutputWriteResult:
    """Write the assembled source to `output`, or to stdout when None.

    Raises:
        OSError: Propagated directly if the filesystem write fails.
    """
    byte_count = len(source.encode("utf-8"))
    if output is None:
        sys.stdout.write(source)
        sys.stdout.flush()
        destination = "<stdout>"
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(source, encoding="utf-8")
        destination = str(output.resolve())
    return OutputWriteResult(
        destination=destination,
        line_count=source.count("\n"),
        byte_count=byte_count,
    )


# ===--- Orchestration ---=== #


def runtime_imports(nodes: list[NodeDefinition], bases: list[str], action: str) -> tuple[str, ...]:
    """Names the generated module needs from syntax_runtime."""
    names = {"RawSyntax", "Syntax", "SyntaxData"}
    if action == "implementation":
        names |= {"syntax_data", "syntax_node"}

    for node in nodes:
        if node.is_token:
            names |= {"Token", "TokenData"}
            if action == "implementation":
                names |= {"missing_token", "token_matches"}
                if node.spelling is None:
                    names.add("syntax_assert_token_kind")
                else:
                    names.add("syntax_assert_token_is")
            continue
        if action == "implementation":
            names |= {"SourcePresence", "syntax_assert_kind_is", "syntax_assert_layout_size"}
        for slot in node.children:
            if isinstance(slot, TokenChild):
                names.add("Token")
                if action == "implementation":
                    names.add("missing_token")
                    if slot.spelling is None:
                        names.add("syntax_assert_token_kind")
                    else:
                        names.add("syntax_assert_token_is")
            else:
                if slot.view_kind in RUNTIME_VIEWS:
                    names.add(slot.view_kind)
                if action == "implementation":
                    names |= {"make_syntax", "syntax_assert_child_kind"}
    names |= {b for b in bases if b in RUNTIME_VIEWS}
    return tuple(sorted(names))


def build_module_spec(
    store: SchemaStore, nodes: list[NodeDefinition], action: str
) -> ModuleSpec:
    """Build imports and body for one category and action.

    Interface output is stub-shaped (`...` bodies); implementation output is
    an importable module. Both emit kinds in the order given.
    """
    intermediates = intermediate_classes(store, nodes)
    bases = [n.superclass for n in nodes] + [base for _, base in intermediates]

    content: list[str] = []
    for name, base in intermediates:
        content.extend(emit_intermediate_class(name, base, action))
        content.extend(["", ""] if action == "implementation" else [])

    for node in nodes:
        if action == "interface":
            content.extend(emit_view_interface(node))
            content.extend(emit_data_interface(node))
            continue
        content.append(f"# ===--- {node.name} API ---=== #")
        content.extend(["", ""])
        content.extend(emit_view_implementation(node))
        content.extend(["", ""])
        content.append(f"# ===--- {node.name} Data ---=== #")
        content.extend(["", ""])
        content.extend(emit_data_implementation(node))
        content.extend(["", ""])

    imports = []
    if action == "implementation":
        imports.append(ExternalImport("__future__", ("annotations",)))
    imports.append(ExternalImport("enum", ("IntEnum",)))
    imports.append(
        ExternalImport("syntax_runtime", runtime_imports(nodes, bases, action))
    )
    if content:
        content = ["", *content]

    return ModuleSpec(external_imports=tuple(imports), content_lines=tuple(content))


def generate_source(store: SchemaStore, config: WriteConfig) -> tuple[str, list[NodeDefinition]]:
    """Generate the complete output text for one target and action.

    The whole text is built before anything is written, so a failure part
    way through leaves no partial output behind.

    Returns:
        (source text, node definitions that were emitted)

    Raises:
        GenerationNotImplemented: For SyntaxFactory and SyntaxRewriter.
        SchemaError: When the schema is inconsistent.
    """
    if isinstance(config.target, PseudoTarget):
        raise GenerationNotImplemented(
            f"{config.target.value} {config.action} generation is not implemented"
        )
    if not store.has_class(config.target.value):
        raise SchemaError(f"Schema does not declare the {config.target.value} class")

    nodes = nodes_in_category(store, config.target)
    spec = build_module_spec(store, nodes, config.action)
    return assemble_module_source(config, spec), nodes


def run_generate(config: GenerateConfig) -> OutputWriteResult:
    """Load the schema, generate one category and write it.

    Raises:
        OSError: Schema not readable or output write failure.
        ET.ParseError: Malformed schema XML.
        SchemaError: Inconsistent schema records.
        GenerationNotImplemented: Factory/rewriter targets.
    """
    print(f"Parsing: {config.schema}", file=sys.stderr)
    store = load_schema(config.schema)
    print(
        f"  Schema: {len(store.classes)} classes, {len(store.definitions)} definitions",
        file=sys.stderr,
    )

    write_config = WriteConfig(
        schema_label=config.schema.name,
        target=config.target,
        action=config.action,
        language=config.language,
    )
    source, nodes = generate_source(store, write_config)
    result = write_output(config.output, source)

    summary = build_generation_summary(write_config, str(config.schema), nodes, result)
    print_generation_summary(summary)
    return result


# ===--- Discovery ---=== #


@dataclass(frozen=True)
class KindSummary:
    name: str
    category: Category
    superclass: str
    token_count: int
    node_count: int


def gather_kind_summaries(
    store: SchemaStore, category: Category | None = None
) -> list[KindSummary]:
    """Summaries for one category, or every declared category in enum order."""
    categories = [category] if category is not None else list(Category)
    summaries = []
    for cat in categories:
        if not store.has_class(cat.value):
            continue
        for node in nodes_in_category(store, cat):
            summaries.append(
                KindSummary(
                    name=node.name,
                    category=cat,
                    superclass=node.superclass,
                    token_count=len(node.token_children),
                    node_count=len(node.node_children),
                )
            )
    return summaries


def gather_kind_detail(store: SchemaStore, name: str) -> NodeDefinition | None:
    record = store.get_definition(name)
    if record is None:
        return None
    return build_definition(store, record)


def format_kinds_table(summaries: list[KindSummary], schema_label: str) -> str:
    """Return the complete --list-kinds output.

    Output format:

        3 node kinds in syntax.xml:

          IfStmt       Stmt    3 children  (1 tokens, 2 nodes)
          ...
    """
    lines = [f"{len(summaries)} node kinds in {schema_label}:", ""]
    name_width = max((len(s.name) for s in summaries), default=0)
    cat_width = max((len(s.category.value) for s in summaries), default=0)
    for s in summaries:
        total = s.token_count + s.node_count
        lines.append(
            f"  {s.name.ljust(name_width)}  {s.category.value.ljust(cat_width)}"
            f"  {total:>2} children  ({s.token_count} tokens, {s.node_count} nodes)"
        )
    lines.append("")
    return "\n".join(lines)


def format_kind_detail(node: NodeDefinition) -> str:
    """Return the complete --info output for one node kind.

    Output format:

        IfStmt (Stmt, base Stmt)

          Children (3):
            0  IfKeyword  token kw_if "if"
            1  Condition  node  Expr  blank: MissingExpr
    """
    lines = [f"{node.name} ({node.category.value}, base {node.superclass})", ""]
    if node.is_token:
        spelling = py_string(node.spelling) if node.spelling is not None else "<any>"
        lines.append(f"  Token: {node.token_kind} {spelling}")
    lines.append(f"  Children ({len(node.children)}):")
    name_width = max((len(c.name) for c in node.children), default=0)
    for slot in node.children:
        prefix = f"    {slot.cursor}  {slot.name.ljust(name_width)}"
        if isinstance(slot, TokenChild):
            spelling = py_string(slot.spelling) if slot.spelling is not None else "<any>"
            lines.append(f"{prefix}  token {slot.kind} {spelling}")
        else:
            lines.append(f"{prefix}  node  {slot.kind}  blank: {slot.missing_kind}")
    lines.append("")
    return "\n".join(lines)


def run_discovery(config: DiscoveryConfig) -> None:
    """Execute --list-kinds or --info and print the result to stdout.

    Raises:
        SystemExit(1): When --info names a definition not in the schema.
    """
    store = load_schema(config.schema)

    if config.command == "list-kinds":
        summaries = gather_kind_summaries(store, config.category)
        print(format_kinds_table(summaries, config.schema.name), end="")
        return

    assert config.info_kind is not None
    detail = gather_kind_detail(store, config.info_kind)
    if detail is None:
        print(
            f"Error: node kind '{config.info_kind}' not found in {config.schema.name}",
            file=sys.stderr,
        )
        raise SystemExit(1)
    print(format_kind_detail(detail), end="")


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class GenerationCounts:
    """Emitted item counts. Invariant: token_slots + node_slots == slots."""

    kinds: int
    slots: int
    token_slots: int
    node_slots: int


@dataclass(frozen=True)
class GenerationSummary:
    heading: str
    schema_path: str
    language: str
    destination: str
    counts: GenerationCounts
    line_count: int


def build_generation_counts(nodes: list[NodeDefinition]) -> GenerationCounts:
    token_slots = sum(len(n.token_children) for n in nodes)
    node_slots = sum(len(n.node_children) for n in nodes)
    slots = sum(len(n.children) for n in nodes)
    assert token_slots + node_slots == slots, (
        f"GenerationCounts invariant violated: {token_slots}+{node_slots}!={slots}"
    )
    return GenerationCounts(
        kinds=len(nodes),
        slots=slots,
        token_slots=token_slots,
        node_slots=node_slots,
    )


def build_generation_summary(
    write_config: WriteConfig,
    schema_path: str,
    nodes: list[NodeDefinition],
    result: OutputWriteResult,
) -> GenerationSummary:
    return GenerationSummary(
        heading=f"{write_config.target.value} {write_config.action} generated:",
        schema_path=schema_path,
        language=write_config.language,
        destination=result.destination,
        counts=build_generation_counts(nodes),
        line_count=result.line_count,
    )


def format_generation_summary(summary: GenerationSummary) -> str:
    c = summary.counts
    lines = [
        summary.heading,
        "",
        f"  Schema:     {summary.schema_path}",
        f"  Language:   {summary.language}",
        f"  Output:     {summary.destination}",
        "",
        f"  Node kinds:   {c.kinds:>6}",
        f"  Child slots:  {c.slots:>6}  ({c.token_slots} tokens + {c.node_slots} nodes)",
        f"  Lines:        {summary.line_count:>6,}",
        "",
    ]
    return "\n".join(lines)


def print_generation_summary(summary: GenerationSummary) -> None:
    """Print the summary to stderr; stdout may be carrying generated source."""
    print(format_generation_summary(summary), end="", file=sys.stderr)


# ===--- Main ---=== #


def main(argv: list[str] | None = None) -> None:
    try:
        config = build_config(argv)
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}", file=sys.stderr)
        if err.suggestion:
            print(f"Hint: {err.suggestion}", file=sys.stderr)
        raise SystemExit(1) from err

    try:
        if isinstance(config, DiscoveryConfig):
            run_discovery(config)
            return
        run_generate(config)
    except GenerationNotImplemented as err:
        print(f"Not implemented: {err}", file=sys.stderr)
        raise SystemExit(1) from err
    except (OSError, ET.ParseError, SchemaError) as err:
        print(f"Error: {err}", file=sys.stderr)
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()
