import argparse
import sys
import xml.etree.ElementTree as ET
from collections.abc import Callable
from pathlib import Path

import pytest

GENERATOR_DIR = Path(__file__).resolve().parent.parent
if str(GENERATOR_DIR) not in sys.path:
    sys.path.insert(0, str(GENERATOR_DIR))

import syntax_gen  # noqa: E402

SAMPLE_SCHEMA = GENERATOR_DIR / "schema" / "syntax.xml"

SCHEMA_PRELUDE = """
<class name="Syntax"/>
<class name="Layout"/>
<class name="Decl" base="Syntax"/>
<class name="Stmt" base="Syntax"/>
<class name="Expr" base="Syntax"/>
<class name="Type" base="Syntax"/>
<class name="Pattern" base="Syntax"/>
<class name="SyntaxCollection" base="Syntax"/>
<class name="Token" base="Syntax"/>
<class name="Identifier" base="Token"/>
<def name="AnyDecl" base="Decl"/>
<def name="AnyStmt" base="Stmt"/>
<def name="AnyExpr" base="Expr"/>
<def name="AnyType" base="Type"/>
<def name="AnyPattern" base="Pattern"/>
<def name="AnySyntaxCollection" base="SyntaxCollection"/>
<def name="AnyToken" base="Token"/>
"""

IF_STMT_XML = """
<def name="IfKeyword" base="Token">
  <field name="Kind">kw_if</field>
  <field name="Spelling">if</field>
</def>
<def name="IfStmt" base="Stmt">
  <field name="IfKeyword" type="Layout" ref="IfKeyword"/>
  <field name="Condition" type="Layout" ref="AnyExpr"/>
  <field name="Body" type="Layout" ref="AnyStmt"/>
  <field name="IsRequired" type="bit">1</field>
</def>
"""


@pytest.fixture
def existing_paths(tmp_path: Path) -> dict[str, Path]:
    schema = tmp_path / "syntax.xml"
    schema.write_text(f"<schema>{SCHEMA_PRELUDE}{IF_STMT_XML}</schema>\n", encoding="utf-8")
    return {"schema": schema, "output": tmp_path / "out" / "stmt_nodes.py"}


@pytest.fixture
def sample_schema() -> Path:
    return SAMPLE_SCHEMA


@pytest.fixture
def missing_path(tmp_path: Path) -> Path:
    return tmp_path / "missing"


@pytest.fixture
def make_args(existing_paths: dict[str, Path]) -> Callable[..., argparse.Namespace]:
    def _make_args(**overrides: object) -> argparse.Namespace:
        base_args: dict[str, object] = {
            "action": None,
            "category": None,
            "language": "python",
            "schema": existing_paths["schema"],
            "output": "-",
            "list_kinds": False,
            "info": None,
        }
        base_args.update(overrides)
        return argparse.Namespace(**base_args)

    return _make_args


@pytest.fixture
def make_schema_root() -> Callable[..., ET.Element]:
    def _make_schema_root(inner_xml: str, prelude: bool = True) -> ET.Element:
        head = SCHEMA_PRELUDE if prelude else ""
        return ET.fromstring(f"<schema>{head}{inner_xml}</schema>")

    return _make_schema_root


@pytest.fixture
def make_store(
    make_schema_root: Callable[..., ET.Element],
) -> Callable[..., syntax_gen.SchemaStore]:
    def _make_store(inner_xml: str, prelude: bool = True) -> syntax_gen.SchemaStore:
        return syntax_gen.parse_schema(make_schema_root(inner_xml, prelude))

    return _make_store


@pytest.fixture
def if_stmt_store(make_store: Callable[..., syntax_gen.SchemaStore]) -> syntax_gen.SchemaStore:
    return make_store(IF_STMT_XML)


@pytest.fixture
def sample_store() -> syntax_gen.SchemaStore:
    return syntax_gen.load_schema(SAMPLE_SCHEMA)


def make_write_config(
    target: syntax_gen.Category | syntax_gen.PseudoTarget = syntax_gen.Category.STMT,
    action: str = "implementation",
    schema_label: str = "syntax.xml",
) -> syntax_gen.WriteConfig:
    return syntax_gen.WriteConfig(
        schema_label=schema_label,
        target=target,
        action=action,
        language="python",
    )


def execute_source(source: str, module_name: str) -> dict[str, object]:
    namespace: dict[str, object] = {"__name__": module_name}
    exec(compile(source, f"<{module_name}>", "exec"), namespace)
    return namespace


@pytest.fixture(scope="session")
def generated() -> dict[str, object]:
    """Every sample-schema category's implementation, executed, merged by name."""
    store = syntax_gen.load_schema(SAMPLE_SCHEMA)
    merged: dict[str, object] = {}
    for category in syntax_gen.Category:
        source, _nodes = syntax_gen.generate_source(
            store, make_write_config(category)
        )
        merged.update(execute_source(source, f"generated_{category.value.lower()}"))
    return merged


@pytest.fixture
def execute_category() -> Callable[[syntax_gen.Category], dict[str, object]]:
    """Execute one sample-schema category's implementation on its own."""
    store = syntax_gen.load_schema(SAMPLE_SCHEMA)

    def _execute(category: syntax_gen.Category) -> dict[str, object]:
        source, _nodes = syntax_gen.generate_source(store, make_write_config(category))
        return execute_source(source, f"standalone_{category.value.lower()}")

    return _execute
