"""Call flow resolution engine"""

from .index import MetadataIndex, build_maps
from .entry_points import EntryPoint, EntryPointSelector
from .chain import CallContext, ChainResolver
from .resolver import NameResolver, Resolution, ResolutionKind, FRAMEWORK_PREFIX
from .traversal import (
    FlowStep,
    FlowTrace,
    FlowTraversal,
    EDGE_MARKER,
    ENTRY_POINT_SUFFIX,
    UNRESOLVED_PREFIX,
)
from .analyzer import CallFlowAnalyzer, compute_entry_point_flows
from .graph import CallNode, CallFlowGraph

__all__ = [
    "MetadataIndex", "build_maps",
    "EntryPoint", "EntryPointSelector",
    "CallContext", "ChainResolver",
    "NameResolver", "Resolution", "ResolutionKind", "FRAMEWORK_PREFIX",
    "FlowStep", "FlowTrace", "FlowTraversal",
    "EDGE_MARKER", "ENTRY_POINT_SUFFIX", "UNRESOLVED_PREFIX",
    "CallFlowAnalyzer", "compute_entry_point_flows",
    "CallNode", "CallFlowGraph",
]
