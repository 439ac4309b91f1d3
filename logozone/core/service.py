# logozone/core/service.py
"""
Store-bound constraint application: the operations of placement.py keyed by
(product_id, placement_type, side) instead of an in-hand constraint.
Only validated constraints are served.
"""

from __future__ import annotations

import logging

from logozone.core.placement import apply_constraints, batch_apply_constraints, recommended_placement
from logozone.core.store import ConstraintStore
from logozone.core.types import (
    ApplicationOptions,
    ConstraintApplication,
    LogoPlacement,
    PlacementConstraint,
)

logger = logging.getLogger(__name__)


class ConstraintApplicationService:
    def __init__(self, store: ConstraintStore) -> None:
        self.store = store

    def load_constraints(self, product_id: str) -> list[PlacementConstraint]:
        """Validated constraints for a product, ordered by placement type."""
        return self.store.list(product_id, validated_only=True)

    def get_constraint_for_placement(
        self,
        product_id: str,
        placement_type: str,
        side: str = "front",
    ) -> PlacementConstraint | None:
        """The validated constraint for the key, or None when there is none."""
        c = self.store.get(product_id, placement_type, side)
        if c is None or not c.is_validated:
            logger.debug("No validated constraint for %s/%s/%s", product_id, placement_type, side)
            return None
        return c

    def apply(
        self,
        product_id: str,
        requested: LogoPlacement,
        options: ApplicationOptions | None = None,
        side: str = "front",
    ) -> ConstraintApplication | None:
        """apply_constraints for the constraint matching options.placement_type; None if missing."""
        options = options or ApplicationOptions()
        c = self.get_constraint_for_placement(product_id, options.placement_type, side)
        if c is None:
            return None
        return apply_constraints(c, requested, options)

    def recommended_placement_for(
        self,
        product_id: str,
        placement_type: str,
        aspect_ratio: float | None = None,
        side: str = "front",
    ) -> LogoPlacement | None:
        c = self.get_constraint_for_placement(product_id, placement_type, side)
        if c is None:
            return None
        return recommended_placement(c, aspect_ratio)

    def batch_apply(
        self,
        product_id: str,
        requests: list[tuple[str, LogoPlacement, ApplicationOptions | None]],
    ) -> list[ConstraintApplication]:
        """batch_apply_constraints over the product's validated constraints."""
        return batch_apply_constraints(self.load_constraints(product_id), requests)
