from __future__ import annotations

import pytest

import syntax_gen

Category = syntax_gen.Category


def _make_summary(
    *,
    kinds: int = 4,
    token_slots: int = 5,
    node_slots: int = 8,
    line_count: int = 1234,
) -> syntax_gen.GenerationSummary:
    return syntax_gen.GenerationSummary(
        heading="Stmt implementation generated:",
        schema_path="schema/syntax.xml",
        language="python",
        destination="<stdout>",
        counts=syntax_gen.GenerationCounts(
            kinds=kinds,
            slots=token_slots + node_slots,
            token_slots=token_slots,
            node_slots=node_slots,
        ),
        line_count=line_count,
    )


def test_t_01_build_generation_counts_splits_slots(
    sample_store: syntax_gen.SchemaStore,
) -> None:
    nodes = syntax_gen.nodes_in_category(sample_store, Category.STMT)

    counts = syntax_gen.build_generation_counts(nodes)

    assert counts == syntax_gen.GenerationCounts(
        kinds=4, slots=13, token_slots=5, node_slots=8
    )


def test_t_02_build_generation_counts_empty() -> None:
    counts = syntax_gen.build_generation_counts([])

    assert counts == syntax_gen.GenerationCounts(0, 0, 0, 0)


def test_t_03_build_generation_summary_uses_target_and_action(
    sample_store: syntax_gen.SchemaStore,
) -> None:
    write_config = syntax_gen.WriteConfig(
        schema_label="syntax.xml",
        target=Category.EXPR,
        action="interface",
        language="python",
    )
    nodes = syntax_gen.nodes_in_category(sample_store, Category.EXPR)
    result = syntax_gen.OutputWriteResult(
        destination="/tmp/expr.pyi", line_count=80, byte_count=2048
    )

    summary = syntax_gen.build_generation_summary(
        write_config, "schema/syntax.xml", nodes, result
    )

    assert summary.heading == "Expr interface generated:"
    assert summary.destination == "/tmp/expr.pyi"
    assert summary.line_count == 80
    assert summary.counts.kinds == 3


def test_t_04_format_generation_summary_layout() -> None:
    text = syntax_gen.format_generation_summary(_make_summary())

    assert text.splitlines() == [
        "Stmt implementation generated:",
        "",
        "  Schema:     schema/syntax.xml",
        "  Language:   python",
        "  Output:     <stdout>",
        "",
        "  Node kinds:        4",
        "  Child slots:      13  (5 tokens + 8 nodes)",
        "  Lines:         1,234",
    ]
    assert text.endswith("\n")


def test_t_05_print_generation_summary_goes_to_stderr(
    capsys: pytest.CaptureFixture[str],
) -> None:
    syntax_gen.print_generation_summary(_make_summary())

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("Stmt implementation generated:")
