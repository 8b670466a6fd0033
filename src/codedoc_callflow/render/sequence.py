"""
PlantUML sequence diagrams for entry-point call flows.

Participants are the declaring types of the methods in a trace, in order
of first appearance; framework leaves get a participant named after their
category with a <<framework>> stereotype. Only diagram source text is
produced; turning it into an image is left to PlantUML itself.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from ..flow.graph import CallNode
from ..flow.traversal import ENTRY_POINT_SUFFIX, FlowTrace

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[^A-Za-z0-9_.-]+')


def _participant_for(signature: str) -> CallNode:
    if signature.endswith(ENTRY_POINT_SUFFIX):
        signature = signature[:-len(ENTRY_POINT_SUFFIX)]
    return CallNode.from_signature(signature)


def render_sequence_diagram(trace: FlowTrace, title: str = "") -> str:
    """
    PlantUML source for one trace.

    Returns an empty string for a trace without steps.
    """
    if not trace.steps:
        logger.info("No call flow provided for sequence diagram generation.")
        return ""

    aliases: Dict[str, str] = {}
    declarations: List[str] = []
    messages: List[str] = []

    def alias_for(signature: str) -> str:
        node = _participant_for(signature)
        name = node.class_name or node.method_name
        if name not in aliases:
            aliases[name] = f"P{len(aliases) + 1}"
            stereotype = " <<framework>>" if node.framework else ""
            declarations.append(f'participant "{name}" as {aliases[name]}{stereotype}')
        return aliases[name]

    for step in trace.steps:
        target_alias = alias_for(step.target)
        if step.caller is None:
            continue
        caller_alias = alias_for(step.caller)
        method_name = _participant_for(step.target).method_name
        arrow = "-->" if step.terminal else "->"
        messages.append(f"{caller_alias} {arrow} {target_alias}: {method_name}()")

    lines = ["@startuml"]
    if title or trace.entry:
        lines.append(f"title {title or trace.entry}")
    lines.append("autonumber")
    lines.extend(declarations)
    lines.extend(messages)
    lines.append("@enduml")
    return "\n".join(lines) + "\n"


def diagram_file_name(entry: str) -> str:
    """Filesystem-safe .puml name for an entry signature."""
    stem = _UNSAFE_FILENAME_CHARS.sub('_', entry).strip('_') or "flow"
    return f"{stem}.puml"


def write_sequence_diagrams(traces: Mapping[str, FlowTrace], output_dir: str) -> List[Tuple[str, Path]]:
    """
    Write one .puml file per trace.

    Returns:
        (entry signature, written path) pairs in input order
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    written: List[Tuple[str, Path]] = []
    for entry, trace in traces.items():
        source = render_sequence_diagram(trace, title=entry)
        if not source:
            continue
        path = out / diagram_file_name(entry)
        path.write_text(source, encoding='utf-8')
        written.append((entry, path))

    logger.info(f"Wrote {len(written)} sequence diagrams to {out}")
    return written
