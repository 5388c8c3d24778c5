"""Tests for the graph -> execution request compiler."""

from tests.fixtures.graphs import make_edge, make_node
from toucan.contracts import ConnectionRef, GraphEdge, IssueCode, IssueSeverity
from toucan.core.catalog import SchemaCatalog
from toucan.core.compiler import compile_request, merge_connection


class TestEndToEnd:
    """The minimal A -> B graph."""

    def test_connected_graph_compiles(self, image_catalog: SchemaCatalog) -> None:
        nodes = [make_node("a1", "A"), make_node("b1", "B")]
        edges = [make_edge("a1", "IMAGE", "b1", "image")]

        result = compile_request(nodes, edges, image_catalog)

        assert result.errors == []
        assert result.warnings == []
        assert result.request_graph["b1"].inputs["image"] == ConnectionRef("a1", 0)
        assert result.request_graph["b1"].inputs["image"] == ("a1", 0)
        assert result.request_graph["a1"].class_type == "A"

    def test_removing_edge_reports_missing_input(self, image_catalog: SchemaCatalog) -> None:
        nodes = [make_node("a1", "A"), make_node("b1", "B")]

        result = compile_request(nodes, [], image_catalog)

        assert result.errors == ["Missing required input image on B (b1)."]
        assert result.is_submittable is False
        assert result.issues[0].code == IssueCode.MISSING_INPUT


class TestFieldResolution:
    """Phase 1: widget values and defaults."""

    def test_stored_values_and_defaults(self, sampler_catalog: SchemaCatalog) -> None:
        nodes = [make_node("k", "KSampler", {"seed": "42", "cfg": 7.5})]

        inputs = compile_request(nodes, [], sampler_catalog).request_graph["k"].inputs

        assert inputs["seed"] == 42
        assert inputs["cfg"] == 7.5
        assert inputs["steps"] == 20
        assert inputs["denoise"] == 1.0
        assert "sampler_name" not in inputs

    def test_hidden_and_connection_slots_skipped(self, sampler_catalog: SchemaCatalog) -> None:
        nodes = [make_node("k", "KSampler", {"unique_id": "x", "model": "not a model"})]

        inputs = compile_request(nodes, [], sampler_catalog).request_graph["k"].inputs

        assert "unique_id" not in inputs
        assert "model" not in inputs

    def test_unresolvable_value_left_out(self, sampler_catalog: SchemaCatalog) -> None:
        nodes = [make_node("k", "KSampler", {"steps": "many"})]

        result = compile_request(nodes, [], sampler_catalog)

        assert "steps" not in result.request_graph["k"].inputs
        assert "Missing required input steps on KSampler (k)." in result.errors

    def test_stored_none_does_not_fall_back_to_default(self, sampler_catalog: SchemaCatalog) -> None:
        nodes = [make_node("k", "KSampler", {"steps": None})]

        result = compile_request(nodes, [], sampler_catalog)

        assert "steps" not in result.request_graph["k"].inputs

    def test_missing_type_warns_and_skips_node(self, sampler_catalog: SchemaCatalog) -> None:
        result = compile_request([make_node("n1", None)], [], sampler_catalog)

        assert result.request_graph == {}
        assert result.warnings == ["Node n1 is missing a type."]
        assert result.issues[0].severity == IssueSeverity.WARNING

    def test_missing_schema_passes_values_through(self, sampler_catalog: SchemaCatalog) -> None:
        nodes = [make_node("x", "Mystery", {"foo": 1, "bar": None})]

        result = compile_request(nodes, [], sampler_catalog)

        assert result.request_graph["x"].inputs == {"foo": 1}
        assert result.warnings == ["Missing schema for Mystery (x)."]
        assert result.errors == []


class TestEdgeWiring:
    """Phase 2: connections."""

    def test_connection_replaces_literal(self) -> None:
        catalog = SchemaCatalog.from_object_info(
            {
                "Seed": {"output": ["INT"], "output_name": ["seed"]},
                "Sampler": {"input": {"required": {"seed": ["INT", {"default": 0}]}}},
            }
        )
        nodes = [make_node("s", "Seed"), make_node("k", "Sampler", {"seed": 99})]

        result = compile_request(nodes, [make_edge("s", "seed", "k", "seed")], catalog)

        assert result.request_graph["k"].inputs["seed"] == ConnectionRef("s", 0)

    def test_output_index_from_schema(self, sampler_catalog: SchemaCatalog) -> None:
        nodes = [make_node("ckpt", "CheckpointLoader"), make_node("k", "KSampler")]
        edges = [make_edge("ckpt", "MODEL", "k", "model")]

        inputs = compile_request(nodes, edges, sampler_catalog).request_graph["k"].inputs

        assert inputs["model"] == ConnectionRef("ckpt", 0)

    def test_repeated_connections_accumulate_in_arrival_order(self, image_catalog: SchemaCatalog) -> None:
        nodes = [make_node("a1", "A"), make_node("a2", "A"), make_node("a3", "A"), make_node("b", "B")]
        edges = [
            make_edge("a2", "IMAGE", "b", "image"),
            make_edge("a1", "IMAGE", "b", "image"),
            make_edge("a3", "IMAGE", "b", "image"),
        ]

        inputs = compile_request(nodes, edges, image_catalog).request_graph["b"].inputs

        assert inputs["image"] == [ConnectionRef("a2", 0), ConnectionRef("a1", 0), ConnectionRef("a3", 0)]

    def test_partial_edges_silently_dropped(self, image_catalog: SchemaCatalog) -> None:
        nodes = [make_node("a", "A"), make_node("b", "B")]
        edges = [
            GraphEdge(source="a", source_handle="out-IMAGE", target=None, target_handle=None),
            GraphEdge(source="a", source_handle="IMAGE", target="b", target_handle="in-image"),
            make_edge("a", "IMAGE", "ghost", "image"),
        ]

        result = compile_request(nodes, edges, image_catalog)

        assert result.warnings == []
        assert result.errors == ["Missing required input image on B (b)."]

    def test_unknown_output_warns_once_per_slot(self, image_catalog: SchemaCatalog) -> None:
        nodes = [make_node("a", "A"), make_node("b", "B"), make_node("b2", "B")]
        edges = [make_edge("a", "MASK", "b", "image"), make_edge("a", "MASK", "b2", "image")]

        result = compile_request(nodes, edges, image_catalog)

        assert result.warnings == ["Unknown output MASK on A (a)."]
        assert len(result.errors) == 2

    def test_missing_source_schema_warned_once(self, image_catalog: SchemaCatalog) -> None:
        nodes = [make_node("m", "Mystery"), make_node("b", "B"), make_node("b2", "B")]
        edges = [make_edge("m", "IMAGE", "b", "image"), make_edge("m", "IMAGE", "b2", "image")]

        result = compile_request(nodes, edges, image_catalog)

        assert result.warnings == ["Missing schema for Mystery (m)."]

    def test_schema_less_target_still_wired(self, image_catalog: SchemaCatalog) -> None:
        nodes = [make_node("a", "A"), make_node("m", "Mystery")]

        result = compile_request(nodes, [make_edge("a", "IMAGE", "m", "anything")], image_catalog)

        assert result.request_graph["m"].inputs["anything"] == ConnectionRef("a", 0)
        assert result.errors == []


class TestPurity:
    def test_inputs_not_mutated(self, image_catalog: SchemaCatalog) -> None:
        nodes = [make_node("a", "A"), make_node("b", "B", {"image": None})]
        edges = [make_edge("a", "IMAGE", "b", "image")]
        snapshot = (list(nodes), list(edges), dict(nodes[1].widget_values))

        compile_request(nodes, edges, image_catalog)

        assert (list(nodes), list(edges), dict(nodes[1].widget_values)) == snapshot


class TestMergeConnection:
    def test_first_connection(self) -> None:
        assert merge_connection(None, ConnectionRef("a", 0)) == ConnectionRef("a", 0)

    def test_second_connection_makes_list(self) -> None:
        assert merge_connection(ConnectionRef("a", 0), ConnectionRef("b", 1)) == [
            ConnectionRef("a", 0),
            ConnectionRef("b", 1),
        ]

    def test_list_is_extended_without_mutation(self) -> None:
        existing = [ConnectionRef("a", 0), ConnectionRef("b", 0)]
        merged = merge_connection(existing, ConnectionRef("c", 0))
        assert merged == [ConnectionRef("a", 0), ConnectionRef("b", 0), ConnectionRef("c", 0)]
        assert len(existing) == 2

    def test_literal_replaced(self) -> None:
        assert merge_connection(42, ConnectionRef("a", 0)) == ConnectionRef("a", 0)
