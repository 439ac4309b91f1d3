# logozone/core/store.py
"""
Keyed store of persisted PlacementConstraints.
Key: (product_id, placement_type, side). At most one constraint per key;
upsert replaces. JsonConstraintStore keeps the whole store in one JSON file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from logozone.core.types import LogoPlacement, PlacementConstraint, Rect

logger = logging.getLogger(__name__)

StoreKey = tuple[str, str, str]


class ConstraintStore(Protocol):
    def get(self, product_id: str, placement_type: str, side: str = "front") -> PlacementConstraint | None: ...

    def list(self, product_id: str, validated_only: bool = True) -> list[PlacementConstraint]: ...

    def upsert(self, constraint: PlacementConstraint) -> None: ...


def constraint_key(constraint: PlacementConstraint) -> StoreKey:
    return (constraint.product_id, constraint.placement_type, constraint.side)


def constraint_to_dict(c: PlacementConstraint) -> dict:
    """JSON-ready dict for one constraint."""
    d = c.default_placement
    return {
        "id": c.id,
        "product_id": c.product_id,
        "placement_type": c.placement_type,
        "side": c.side,
        "bounds": {"x": c.bounds.x, "y": c.bounds.y, "width": c.bounds.width, "height": c.bounds.height},
        "default_placement": {"x": d.x, "y": d.y, "width": d.width, "height": d.height, "rotation": d.rotation},
        "margins": {"top": c.margin_top, "right": c.margin_right, "bottom": c.margin_bottom, "left": c.margin_left},
        "logo_limits": {
            "min_width": c.min_logo_width,
            "max_width": c.max_logo_width,
            "min_height": c.min_logo_height,
            "max_height": c.max_logo_height,
        },
        "is_validated": c.is_validated,
        "guidelines_text": c.guidelines_text,
        "detected_area_pixels": c.detected_area_pixels,
        "detected_area_percentage": c.detected_area_percentage,
    }


def constraint_from_dict(data: dict) -> PlacementConstraint:
    """Inverse of constraint_to_dict. Missing optional sections fall back to defaults."""
    b = data["bounds"]
    d = data["default_placement"]
    margins = data.get("margins", {})
    limits = data.get("logo_limits", {})
    return PlacementConstraint(
        id=data.get("id"),
        product_id=str(data["product_id"]),
        placement_type=data["placement_type"],
        side=data.get("side", "front"),
        bounds=Rect(float(b["x"]), float(b["y"]), float(b["width"]), float(b["height"])),
        default_placement=LogoPlacement(
            x=float(d["x"]),
            y=float(d["y"]),
            width=float(d["width"]),
            height=float(d["height"]),
            rotation=d.get("rotation"),
        ),
        margin_top=float(margins.get("top", 0.0)),
        margin_right=float(margins.get("right", 0.0)),
        margin_bottom=float(margins.get("bottom", 0.0)),
        margin_left=float(margins.get("left", 0.0)),
        min_logo_width=limits.get("min_width"),
        max_logo_width=limits.get("max_width"),
        min_logo_height=limits.get("min_height"),
        max_logo_height=limits.get("max_height"),
        is_validated=bool(data.get("is_validated", False)),
        guidelines_text=data.get("guidelines_text", ""),
        detected_area_pixels=data.get("detected_area_pixels"),
        detected_area_percentage=data.get("detected_area_percentage"),
    )


class InMemoryConstraintStore:
    """Dict-backed store. Listing is ordered by placement type, then side."""

    def __init__(self, constraints: list[PlacementConstraint] | None = None) -> None:
        self._items: dict[StoreKey, PlacementConstraint] = {}
        for c in constraints or []:
            self.upsert(c)

    def get(self, product_id: str, placement_type: str, side: str = "front") -> PlacementConstraint | None:
        return self._items.get((product_id, placement_type, side))

    def list(self, product_id: str, validated_only: bool = True) -> list[PlacementConstraint]:
        out = [
            c for (pid, _, _), c in self._items.items()
            if pid == product_id and (c.is_validated or not validated_only)
        ]
        return sorted(out, key=lambda c: (c.placement_type, c.side))

    def upsert(self, constraint: PlacementConstraint) -> None:
        self._items[constraint_key(constraint)] = constraint

    def __len__(self) -> int:
        return len(self._items)


class JsonConstraintStore(InMemoryConstraintStore):
    """
    Store persisted as {"constraints": [...]} in one JSON file.
    A missing file is an empty store; the file is rewritten on every upsert.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__()
        if self.path.exists():
            data = json.loads(self.path.read_text(encoding="utf-8"))
            for item in data.get("constraints", []):
                c = constraint_from_dict(item)
                self._items[constraint_key(c)] = c
            logger.debug("Loaded %d constraints from %s", len(self._items), self.path)

    def upsert(self, constraint: PlacementConstraint) -> None:
        super().upsert(constraint)
        self.save()

    def save(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {"constraints": [constraint_to_dict(c) for c in self._items.values()]}
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return self.path
