"""
FlowScribe - Diagram Assembly

Canonical layout, fixed edge topology and the assembler that turns
extraction results into positioned components.
"""

from flowscribe.diagram.assembler import AssembledDiagram, DiagramAssembler
from flowscribe.diagram.layout import CANONICAL_POSITIONS, EDGE_TEMPLATES, EdgeTemplate

__all__ = [
    "AssembledDiagram",
    "CANONICAL_POSITIONS",
    "DiagramAssembler",
    "EDGE_TEMPLATES",
    "EdgeTemplate",
]
