"""
codedoc-callflow - entry-point call flow resolution for Java codebases

Parses Java sources into type records, selects controller and SOAP entry
points and resolves the methods each one transitively calls.
"""

__version__ = "0.1.0"

from .core.models import TypeRecord, MethodRecord, FieldRecord, ParameterRecord, VariableRecord
from .core.exceptions import CallFlowError, ConfigError
from .config.analysis import AnalysisConfig
from .flow.analyzer import CallFlowAnalyzer, compute_entry_point_flows
from .flow.graph import CallFlowGraph

__all__ = [
    "TypeRecord",
    "MethodRecord",
    "FieldRecord",
    "ParameterRecord",
    "VariableRecord",
    "CallFlowError",
    "ConfigError",
    "AnalysisConfig",
    "CallFlowAnalyzer",
    "compute_entry_point_flows",
    "CallFlowGraph",
]
