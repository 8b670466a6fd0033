#!/usr/bin/env python3
"""
Tests for the call flow graph built from entry-point traces.

Test Categories:
1. CallNode: signature parsing, serialization, hash/equality
2. CallFlowGraph: node/edge management, queries, traversals, cycle detection
3. Building from traces: suppressed calls, shared callees, framework leaves
4. Edge cases: empty graph, missing nodes, self-references
"""

import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from codedoc_callflow.core.models import FieldRecord, MethodRecord, TypeRecord
from codedoc_callflow.flow.analyzer import CallFlowAnalyzer
from codedoc_callflow.flow.graph import CallFlowGraph, CallNode
from codedoc_callflow.flow.traversal import FlowStep, FlowTrace


# ============================================================================
# TEST DATA
# ============================================================================

def make_trace(entry: str, *edges, suppressed=None) -> FlowTrace:
    """Helper: a trace rooted at entry with (caller, target) steps."""
    steps = [FlowStep(entry)]
    steps.extend(FlowStep(target, caller=caller) for caller, target in edges)
    return FlowTrace(entry=entry, steps=steps, suppressed=list(suppressed or []))


# ============================================================================
# UNIT TESTS: CallNode
# ============================================================================

class TestCallNode:
    """CallNode parsing and identity."""

    def test_from_signature(self):
        node = CallNode.from_signature("com.acme.UserService.find(Long)")

        assert node.class_name == "com.acme.UserService"
        assert node.method_name == "find"
        assert not node.framework

    def test_from_framework_signature(self):
        node = CallNode.from_signature("Framework method: Repository.save()")

        assert node.class_name == "Repository"
        assert node.method_name == "save"
        assert node.framework

    def test_roundtrip(self):
        original = CallNode.from_signature("A.x()")
        restored = CallNode.from_dict(original.to_dict())

        assert restored == original
        assert restored.method_name == "x"

    def test_hash_equality_by_signature(self):
        a = CallNode("A.x()", "A", "x")
        b = CallNode("A.x()", "Other", "other")

        assert a == b
        assert len({a, b}) == 1
        assert a != "A.x()"


# ============================================================================
# UNIT TESTS: CallFlowGraph management
# ============================================================================

class TestCallFlowGraphEdges:
    """Node and edge bookkeeping."""

    def test_add_edge(self):
        graph = CallFlowGraph()

        assert graph.add_edge("A.x()", "B.y()")
        assert not graph.add_edge("A.x()", "B.y()")
        assert graph.edges["A.x()"] == ["B.y()"]
        assert graph.reverse_edges["B.y()"] == ["A.x()"]

    def test_self_loop_skipped_by_default(self):
        graph = CallFlowGraph()

        assert not graph.add_edge("A.x()", "A.x()")
        assert graph.add_edge("A.x()", "A.x()", allow_self_loops=True)

    def test_add_node_idempotent(self):
        graph = CallFlowGraph()
        graph.add_node(CallNode.from_signature("A.x()"))
        graph.add_node(CallNode("A.x()", "changed", "changed"))

        assert graph.get_node("A.x()").class_name == "A"


# ============================================================================
# UNIT TESTS: Queries
# ============================================================================

class TestCallFlowGraphQueries:
    """Caller/callee queries, paths and reachability."""

    @pytest.fixture
    def graph(self) -> CallFlowGraph:
        trace = make_trace(
            "Api.get()",
            ("Api.get()", "Service.load()"),
            ("Service.load()", "Repo.find()"),
            ("Service.load()", "Framework method: Optional.orElse()"),
        )
        return CallFlowGraph.from_traces([trace])

    def test_entry_points(self, graph):
        assert graph.entry_points == ["Api.get()"]

    def test_callers_and_callees(self, graph):
        assert [n.signature for n in graph.get_callees("Service.load()")] == [
            "Repo.find()",
            "Framework method: Optional.orElse()",
        ]
        assert [n.signature for n in graph.get_callers("Repo.find()")] == ["Service.load()"]

    def test_find_call_path(self, graph):
        assert graph.find_call_path("Api.get()", "Repo.find()") == ["Api.get()", "Service.load()", "Repo.find()"]
        assert graph.find_call_path("Repo.find()", "Api.get()") is None
        assert graph.find_call_path("Api.get()", "Missing.x()") is None

    def test_reachable(self, graph):
        assert set(graph.get_reachable("Api.get()")) == {
            "Service.load()", "Repo.find()", "Framework method: Optional.orElse()"
        }
        assert graph.get_reachable("Api.get()", max_depth=1) == ["Service.load()"]
        assert set(graph.get_reachable("Repo.find()", direction="callers")) == {"Service.load()", "Api.get()"}
        assert graph.get_reachable("Missing.x()") == []

    def test_find_nodes(self, graph):
        assert [n.signature for n in graph.find_nodes("find")] == ["Repo.find()"]
        assert [n.signature for n in graph.find_nodes("*.load()")] == ["Service.load()"]

    def test_stats(self, graph):
        assert graph.get_stats() == {
            "total_nodes": 4,
            "total_edges": 3,
            "entry_points": 1,
            "framework_nodes": 1,
            "leaf_nodes": 2,
        }

    def test_acyclic(self, graph):
        assert not graph.has_cycles()
        assert graph.find_cycles() == []


# ============================================================================
# BUILDING FROM TRACES
# ============================================================================

class TestFromTraces:
    """Suppressed calls keep cycles and shared callees visible."""

    def test_suppressed_cycle(self):
        types = [
            TypeRecord(name="A", kind="controller", methods=[MethodRecord(name="x", called_methods=["B.y()"])]),
            TypeRecord(name="B", methods=[MethodRecord(name="y", called_methods=["A.x()"])]),
        ]
        traces = CallFlowAnalyzer().trace_entry_points(types)
        graph = CallFlowGraph.from_traces(traces.values())

        assert graph.has_cycles()
        assert sorted(graph.find_cycles()[0]) == ["A.x()", "B.y()"]

    def test_shared_callee_has_two_callers(self):
        types = [
            TypeRecord(
                name="Api", kind="controller",
                fields=[FieldRecord("svc", "Svc")],
                methods=[MethodRecord(name="a", called_methods=["svc.run()"]),
                         MethodRecord(name="b", called_methods=["svc.run()"])],
            ),
            TypeRecord(name="Svc", methods=[MethodRecord(name="run")]),
        ]
        traces = CallFlowAnalyzer().trace_entry_points(types)
        graph = CallFlowGraph.from_traces(traces.values())

        assert [n.signature for n in graph.get_callers("Svc.run()")] == ["Api.a()", "Api.b()"]
        assert graph.entry_points == ["Api.a()", "Api.b()"]

    def test_self_recursion_suppressed_edge(self):
        trace = make_trace("A.x()", suppressed=[("A.x()", "A.x()")])
        graph = CallFlowGraph.from_traces([trace])

        assert graph.find_cycles() == [["A.x()"]]


# ============================================================================
# EDGE CASES
# ============================================================================

class TestEdgeCases:
    """Empty graphs, serialization, clear."""

    def test_empty_graph(self):
        graph = CallFlowGraph()

        assert graph.get_stats()["total_nodes"] == 0
        assert graph.find_cycles() == []
        assert graph.get_callers("A.x()") == []

    def test_serialization_roundtrip(self):
        trace = make_trace("A.x()", ("A.x()", "B.y()"), suppressed=[("B.y()", "A.x()")])
        graph = CallFlowGraph.from_traces([trace])
        restored = CallFlowGraph.from_dict(graph.to_dict())

        assert restored.to_dict() == graph.to_dict()
        assert restored.has_cycles()

    def test_clear(self):
        graph = CallFlowGraph.from_traces([make_trace("A.x()", ("A.x()", "B.y()"))])
        graph.clear()

        assert graph.nodes == {}
        assert graph.entry_points == []
        assert not graph.has_cycles()
