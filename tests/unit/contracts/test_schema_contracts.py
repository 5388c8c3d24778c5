"""Tests for schema and request contracts."""

import pytest

from tests.fixtures.graphs import make_node
from toucan.contracts import (
    CatalogError,
    CompileIssue,
    CompileResult,
    ConnectionRef,
    InputSlot,
    IssueCode,
    IssueSeverity,
    NodeSchema,
    OutputSlot,
    RequestNode,
    SlotGroup,
    index_nodes,
    request_graph_payload,
)


class TestNodeSchema:
    """NodeSchema lookups and invariants."""

    def test_duplicate_input_names_rejected(self) -> None:
        slot = InputSlot(name="x", group=SlotGroup.REQUIRED, value_type="INT")
        with pytest.raises(CatalogError, match="Duplicate input slot 'x'"):
            NodeSchema(name="N", inputs=(slot, slot))

    def test_duplicate_output_names_rejected(self) -> None:
        out = OutputSlot(name="IMAGE", type="IMAGE")
        with pytest.raises(CatalogError, match="Duplicate output slot"):
            NodeSchema(name="N", outputs=(out, out))

    def test_inputs_and_outputs_are_separate_namespaces(self) -> None:
        schema = NodeSchema(
            name="N",
            inputs=(InputSlot(name="image", group=SlotGroup.REQUIRED, value_type="IMAGE"),),
            outputs=(OutputSlot(name="image", type="IMAGE"),),
        )
        assert schema.get_input("image") is not None
        assert schema.get_output("image") is not None

    def test_output_index_follows_declaration_order(self) -> None:
        schema = NodeSchema(
            name="Loader",
            outputs=(OutputSlot("MODEL", "MODEL"), OutputSlot("CLIP", "CLIP"), OutputSlot("VAE", "VAE")),
        )
        assert schema.output_index("VAE") == 2
        assert schema.output_index("missing") is None

    def test_label_prefers_display_name(self) -> None:
        assert NodeSchema(name="KSampler", display_name="Sampler").label == "Sampler"
        assert NodeSchema(name="KSampler").label == "KSampler"


class TestInputSlot:
    """Widget-backed slot detection."""

    def test_force_input_disables_widget(self) -> None:
        slot = InputSlot(name="seed", group=SlotGroup.REQUIRED, value_type="INT", supports_widget=True, force_input=True)
        assert slot.is_widget_backed is False

    def test_plain_widget_slot(self) -> None:
        slot = InputSlot(name="seed", group=SlotGroup.REQUIRED, value_type="INT", supports_widget=True)
        assert slot.is_widget_backed is True


class TestCompileResult:
    """Derived views over compile issues."""

    def test_errors_and_warnings_split_by_severity(self) -> None:
        result = CompileResult(
            request_graph={},
            issues=(
                CompileIssue(IssueSeverity.WARNING, IssueCode.MISSING_TYPE, "w1", "n1"),
                CompileIssue(IssueSeverity.ERROR, IssueCode.MISSING_INPUT, "e1", "n2"),
            ),
        )
        assert result.errors == ["e1"]
        assert result.warnings == ["w1"]
        assert result.is_submittable is False

    def test_warnings_only_is_submittable(self) -> None:
        result = CompileResult(
            request_graph={},
            issues=(CompileIssue(IssueSeverity.WARNING, IssueCode.MISSING_SCHEMA, "w", "n"),),
        )
        assert result.is_submittable is True


class TestRequestGraphPayload:
    """JSON-ready rendering of request graphs."""

    def test_connections_become_lists(self) -> None:
        graph = {
            "2": RequestNode(
                class_type="KSampler",
                inputs={
                    "seed": 7,
                    "model": ConnectionRef("1", 0),
                    "extra": [ConnectionRef("1", 1), ConnectionRef("3", 0)],
                },
            )
        }
        assert request_graph_payload(graph) == {
            "2": {
                "class_type": "KSampler",
                "inputs": {"seed": 7, "model": ["1", 0], "extra": [["1", 1], ["3", 0]]},
            }
        }


class TestIndexNodes:
    def test_later_duplicate_wins(self) -> None:
        first = make_node("n", "A")
        second = make_node("n", "B")
        assert index_nodes([first, second])["n"] is second
