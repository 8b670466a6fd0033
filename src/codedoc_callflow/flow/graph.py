"""
Call graph assembled from entry-point flow traces.

Flows are flat, pre-order node lists. This graph keeps the caller of every
step, plus the calls a traversal suppressed because their target was
already visited, so cycles and shared callees stay visible.
"""

import fnmatch
import logging
from typing import Dict, Iterable, List, Optional, Any
from dataclasses import dataclass
import networkx as nx

from .expressions import split_member, strip_params
from .resolver import FRAMEWORK_PREFIX
from .traversal import FlowTrace

logger = logging.getLogger(__name__)


@dataclass
class CallNode:
    """
    A node in the call graph.

    Attributes:
        signature: Display signature ("com.acme.UserService.find(Long)") or
                   framework leaf text
        class_name: Declaring type FQN, or the framework category
        method_name: Simple method name
        framework: True for synthetic framework leaves
    """
    signature: str
    class_name: str
    method_name: str
    framework: bool = False

    def __hash__(self):
        return hash(self.signature)

    def __eq__(self, other):
        if not isinstance(other, CallNode):
            return False
        return self.signature == other.signature

    @classmethod
    def from_signature(cls, signature: str) -> "CallNode":
        framework = signature.startswith(FRAMEWORK_PREFIX)
        text = signature[len(FRAMEWORK_PREFIX):] if framework else signature
        class_name, method_name = split_member(strip_params(text) or text)
        return cls(signature=signature, class_name=class_name, method_name=method_name, framework=framework)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature": self.signature,
            "class_name": self.class_name,
            "method_name": self.method_name,
            "framework": self.framework,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CallNode":
        return cls(
            signature=data["signature"],
            class_name=data.get("class_name", ""),
            method_name=data.get("method_name", ""),
            framework=data.get("framework", False),
        )


class CallFlowGraph:
    """
    Caller -> callee relationships across all traced entry points.

    Attributes:
        nodes: signature -> CallNode
        edges: caller signature -> callee signatures
        reverse_edges: callee signature -> caller signatures
        entry_points: signatures of traversal roots
    """

    def __init__(self):
        self.nodes: Dict[str, CallNode] = {}
        self.edges: Dict[str, List[str]] = {}
        self.reverse_edges: Dict[str, List[str]] = {}
        self.entry_points: List[str] = []
        self._graph: Optional[nx.DiGraph] = None

    @classmethod
    def from_traces(cls, traces: Iterable[FlowTrace]) -> "CallFlowGraph":
        """Build a graph from FlowTraces (e.g. CallFlowAnalyzer.trace_entry_points().values())."""
        graph = cls()
        for trace in traces:
            graph.add_trace(trace)
        logger.debug(f"Built call flow graph: {len(graph.nodes)} nodes")
        return graph

    def add_trace(self, trace: FlowTrace) -> None:
        for step in trace.steps:
            self.add_node(CallNode.from_signature(step.target))
            if step.caller is None:
                if step.target not in self.entry_points:
                    self.entry_points.append(step.target)
                continue
            self.add_node(CallNode.from_signature(step.caller))
            self.add_edge(step.caller, step.target)
        for caller, target in trace.suppressed:
            self.add_node(CallNode.from_signature(caller))
            self.add_node(CallNode.from_signature(target))
            self.add_edge(caller, target, allow_self_loops=True)

    def add_node(self, node: CallNode) -> None:
        if node.signature not in self.nodes:
            self.nodes[node.signature] = node
            self.edges.setdefault(node.signature, [])
            self.reverse_edges.setdefault(node.signature, [])
            self._graph = None

    def add_edge(self, caller: str, callee: str, allow_self_loops: bool = False) -> bool:
        """
        Record caller -> callee.

        Returns:
            True if edge was added, False if skipped (self-loop or duplicate)
        """
        if caller == callee and not allow_self_loops:
            logger.debug(f"Skipping self-loop: {caller}")
            return False

        callees = self.edges.setdefault(caller, [])
        if callee in callees:
            return False
        callees.append(callee)

        callers = self.reverse_edges.setdefault(callee, [])
        if caller not in callers:
            callers.append(caller)

        self._graph = None
        return True

    def get_node(self, signature: str) -> Optional[CallNode]:
        return self.nodes.get(signature)

    def get_callers(self, signature: str) -> List[CallNode]:
        return [self.nodes[name] for name in self.reverse_edges.get(signature, []) if name in self.nodes]

    def get_callees(self, signature: str) -> List[CallNode]:
        return [self.nodes[name] for name in self.edges.get(signature, []) if name in self.nodes]

    def _build_networkx_graph(self) -> nx.DiGraph:
        """Build NetworkX directed graph from the edges."""
        if self._graph is not None:
            return self._graph

        self._graph = nx.DiGraph()
        for signature, node in self.nodes.items():
            self._graph.add_node(signature, **node.to_dict())
        for caller, callees in self.edges.items():
            for callee in callees:
                self._graph.add_edge(caller, callee)

        logger.debug(f"Built NetworkX graph: {len(self._graph.nodes)} nodes, {len(self._graph.edges)} edges")
        return self._graph

    def find_call_path(self, from_signature: str, to_signature: str) -> Optional[List[str]]:
        """Shortest call path between two nodes, or None."""
        graph = self._build_networkx_graph()
        if from_signature not in graph or to_signature not in graph:
            return None
        try:
            return nx.shortest_path(graph, from_signature, to_signature)
        except nx.NetworkXNoPath:
            return None

    def find_cycles(self) -> List[List[str]]:
        """All elementary cycles, e.g. recursion suppressed during traversal."""
        graph = self._build_networkx_graph()
        cycles = list(nx.simple_cycles(graph))
        if cycles:
            logger.debug(f"Found {len(cycles)} cycles in call flow graph")
        return cycles

    def has_cycles(self) -> bool:
        return not nx.is_directed_acyclic_graph(self._build_networkx_graph())

    def get_reachable(self, signature: str, direction: str = "callees", max_depth: Optional[int] = None) -> List[str]:
        """
        Nodes reachable from a node, excluding itself.

        Args:
            direction: "callees" for downstream, "callers" for upstream
            max_depth: Maximum traversal depth (None for unlimited)
        """
        graph = self._build_networkx_graph()
        if signature not in graph:
            return []
        if direction == "callers":
            graph = graph.reverse()
        lengths = nx.single_source_shortest_path_length(graph, signature, cutoff=max_depth)
        return [node for node in lengths if node != signature]

    def find_nodes(self, pattern: str) -> List[CallNode]:
        """Nodes whose method name or signature matches a glob or substring, sorted."""
        has_wildcard = '*' in pattern or '?' in pattern
        matches = []
        for node in self.nodes.values():
            if has_wildcard:
                matched = fnmatch.fnmatch(node.method_name, pattern) or fnmatch.fnmatch(node.signature, pattern)
            else:
                matched = pattern in node.method_name or pattern in node.signature
            if matched:
                matches.append(node)
        matches.sort(key=lambda n: n.signature)
        return matches

    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_nodes": len(self.nodes),
            "total_edges": sum(len(callees) for callees in self.edges.values()),
            "entry_points": len(self.entry_points),
            "framework_nodes": sum(1 for node in self.nodes.values() if node.framework),
            "leaf_nodes": sum(1 for name in self.nodes if not self.edges.get(name)),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": {name: node.to_dict() for name, node in self.nodes.items()},
            "edges": {caller: list(callees) for caller, callees in self.edges.items()},
            "entry_points": list(self.entry_points),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CallFlowGraph":
        graph = cls()
        for name, node_data in data.get("nodes", {}).items():
            graph.add_node(CallNode.from_dict(node_data))
        for caller, callees in data.get("edges", {}).items():
            for callee in callees:
                graph.add_edge(caller, callee, allow_self_loops=True)
        graph.entry_points = list(data.get("entry_points", []))
        return graph

    def clear(self) -> None:
        self.nodes.clear()
        self.edges.clear()
        self.reverse_edges.clear()
        self.entry_points.clear()
        self._graph = None
