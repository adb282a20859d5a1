"""
Canonical diagram layout.

Every component type has a fixed canvas position and the edge topology
between types is fixed. The main request flow runs left to right on one
row; the event handler and view update sit on a second row.
"""

from typing import NamedTuple

from flowscribe.models.base import COMPONENT_TYPES, MAIN_FLOW_TYPES, ArchitectureComponentType as T
from flowscribe.models.base import EdgeType
from flowscribe.models.diagram import Position

MAIN_ROW_Y = 300.0
SECONDARY_ROW_Y = 450.0
COLUMN_START_X = 100.0
COLUMN_SPACING = 150.0

CANONICAL_POSITIONS: dict[T, Position] = {
    component_type: Position(x=COLUMN_START_X + index * COLUMN_SPACING, y=MAIN_ROW_Y)
    for index, component_type in enumerate(MAIN_FLOW_TYPES)
}
CANONICAL_POSITIONS[T.EVENT_HANDLER] = Position(x=1150.0, y=SECONDARY_ROW_Y)
CANONICAL_POSITIONS[T.VIEW_UPDATE] = Position(x=250.0, y=SECONDARY_ROW_Y)


class EdgeTemplate(NamedTuple):
    """Typed connection between two component slots."""

    source: T
    target: T
    edge_type: EdgeType
    label: str


EDGE_TEMPLATES: tuple[EdgeTemplate, ...] = (
    # Request flow
    EdgeTemplate(T.USER_ACTION, T.CLIENT_CODE, EdgeType.REQUEST, "triggers"),
    EdgeTemplate(T.CLIENT_CODE, T.FIREWALL, EdgeType.REQUEST, "sends request"),
    EdgeTemplate(T.FIREWALL, T.WAF, EdgeType.REQUEST, "forwards"),
    EdgeTemplate(T.WAF, T.LOAD_BALANCER, EdgeType.REQUEST, "passes"),
    EdgeTemplate(T.LOAD_BALANCER, T.API_GATEWAY, EdgeType.REQUEST, "routes"),
    EdgeTemplate(T.API_GATEWAY, T.API_ENDPOINT, EdgeType.REQUEST, "forwards"),
    EdgeTemplate(T.API_ENDPOINT, T.BACKEND_LOGIC, EdgeType.REQUEST, "calls"),
    EdgeTemplate(T.BACKEND_LOGIC, T.DATABASE, EdgeType.REQUEST, "queries"),
    EdgeTemplate(T.BACKEND_LOGIC, T.EVENT_HANDLER, EdgeType.REQUEST, "emits event"),
    # Response flow
    EdgeTemplate(T.DATABASE, T.BACKEND_LOGIC, EdgeType.RESPONSE, "returns data"),
    EdgeTemplate(T.BACKEND_LOGIC, T.API_ENDPOINT, EdgeType.RESPONSE, "responds"),
    EdgeTemplate(T.API_ENDPOINT, T.API_GATEWAY, EdgeType.RESPONSE, "returns"),
    EdgeTemplate(T.API_GATEWAY, T.CLIENT_CODE, EdgeType.RESPONSE, "delivers"),
    EdgeTemplate(T.EVENT_HANDLER, T.VIEW_UPDATE, EdgeType.RESPONSE, "triggers update"),
    EdgeTemplate(T.VIEW_UPDATE, T.CLIENT_CODE, EdgeType.RESPONSE, "updates UI"),
)


def _check_layout() -> None:
    """Fail at import time if the layout is incomplete or overlapping."""
    missing = set(COMPONENT_TYPES) - set(CANONICAL_POSITIONS)
    if missing:
        raise RuntimeError(f"No canonical position for {sorted(t.value for t in missing)}")

    coordinates = {(p.x, p.y) for p in CANONICAL_POSITIONS.values()}
    if len(coordinates) != len(CANONICAL_POSITIONS):
        raise RuntimeError("Canonical positions overlap")


_check_layout()
