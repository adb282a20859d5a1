"""
Component type weight table.

Weighted scoring multiplies every validation result by the weight of
its component's type. The table starts from the defaults and only ever
merges updates on top; unknown types use the ``DEFAULT`` entry.
"""

import logging
import math
import threading
from collections.abc import Mapping
from enum import Enum
from typing import Optional

from flowscribe.config.models import DEFAULT_COMPONENT_WEIGHTS

logger = logging.getLogger(__name__)

DEFAULT_KEY = "DEFAULT"


def _type_key(component_type: str | Enum) -> str:
    value = component_type.value if isinstance(component_type, Enum) else component_type
    return str(value).strip().upper()


class ComponentWeights:
    """Thread-safe, merge-only weight table.

    Writers are serialized by a lock and swap in a new dict; readers use
    whichever table is current when they look.
    """

    def __init__(self, overrides: Optional[Mapping[str, float]] = None) -> None:
        self._lock = threading.Lock()
        self._weights: dict[str, float] = dict(DEFAULT_COMPONENT_WEIGHTS)
        if overrides:
            self.update(overrides)

    def snapshot(self) -> dict[str, float]:
        """Copy of the current table."""
        return dict(self._weights)

    def update(self, partial: Mapping[str, float]) -> dict[str, float]:
        """Merge weights into the table.

        Args:
            partial: Weights by component type; other entries are kept

        Returns:
            The merged table

        Raises:
            ValueError: If a weight is negative or not finite
        """
        normalized: dict[str, float] = {}
        for component_type, weight in partial.items():
            weight = float(weight)
            if not math.isfinite(weight) or weight < 0:
                raise ValueError(
                    f"Weight for {component_type} must be a finite non-negative number, got {weight}"
                )
            normalized[_type_key(component_type)] = weight

        with self._lock:
            self._weights = {**self._weights, **normalized}
            merged = dict(self._weights)

        logger.info("Component weights updated: %s", normalized)
        return merged

    def reset(self) -> None:
        """Restore the default table."""
        with self._lock:
            self._weights = dict(DEFAULT_COMPONENT_WEIGHTS)

    def weight_for(self, component_type: Optional[str | Enum]) -> float:
        """Weight of a component type, falling back to ``DEFAULT``."""
        weights = self._weights
        if component_type is not None:
            key = _type_key(component_type)
            if key in weights:
                return weights[key]
        return weights.get(DEFAULT_KEY, 1.0)
