"""Diagram rendering for call flows"""

from .sequence import render_sequence_diagram, write_sequence_diagrams, diagram_file_name

__all__ = ["render_sequence_diagram", "write_sequence_diagrams", "diagram_file_name"]
