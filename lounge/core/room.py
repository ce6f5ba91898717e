"""Lounge room builder — floor, walls, ceiling and entry point placement.

A lounge is a box-shaped room centred on its own origin: the floor sits at
-height/2 and the ceiling at +height/2. Each side is a full wall, a glass
wall, a low barrier or left open.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

import structlog

from lounge.core.geometry import Vec3
from lounge.core.scene import BoxGeometry, Entity, Scene

logger = structlog.get_logger()

SideKind = Literal["wall", "open", "barrier", "glass"]

WALL_THICKNESS = 0.3
FLOOR_COLOR = "#808080"
WALL_ROTATIONS = {"north": 0.0, "east": 90.0, "south": 180.0, "west": 270.0}


@dataclass
class LoungeLayout:
    """Dimensions and side configuration of a lounge."""

    width: float = 10.0
    height: float = 4.0
    depth: float = 7.0
    north: SideKind = "wall"
    east: SideKind = "wall"
    south: SideKind = "wall"
    west: SideKind = "wall"
    wall_color: str = "#aaa4a4"
    floor_color: str = ""
    floor_texture: str = ""
    ceiling_color: str = "#808080"
    glass_opacity: float = 0.4  # applies to 'glass' and 'barrier'
    barrier_height: float = 1.4
    ceiling: bool = True
    entry_point: Optional[Vec3] = None


@dataclass(frozen=True)
class WallSpec:
    """Placement of one side of the lounge, in lounge space."""

    facing: str
    x: float
    y: float
    z: float
    width: float
    height: float
    opacity: float


def wall_specs(layout: LoungeLayout) -> list[WallSpec]:
    """Compute the walls to build; 'open' sides produce nothing."""
    directions = {
        "north": (0.0, -layout.depth / 2, layout.width),
        "east": (layout.width / 2, 0.0, layout.depth),
        "south": (0.0, layout.depth / 2, layout.width),
        "west": (-layout.width / 2, 0.0, layout.depth),
    }
    specs = []
    for facing, (x, z, width) in directions.items():
        kind = getattr(layout, facing)
        if kind == "open":
            continue
        if kind not in ("wall", "glass", "barrier"):
            raise ValueError(f"Unknown side kind for {facing}: {kind!r}")
        if kind == "barrier":
            height = layout.barrier_height
            y = (height - layout.height) / 2
        else:
            height = layout.height
            y = 0.0
        opacity = layout.glass_opacity if kind in ("glass", "barrier") else 1.0
        specs.append(WallSpec(facing=facing, x=x, y=y, z=z, width=width, height=height, opacity=opacity))
    return specs


class Lounge:
    """A built lounge and the entities that make it up."""

    def __init__(self, root: Entity, layout: LoungeLayout) -> None:
        self.root = root
        self.layout = layout
        self.floor: Optional[Entity] = None
        self.ceiling: Optional[Entity] = None
        self.walls: dict[str, Entity] = {}

    def entry_point(self) -> Vec3:
        """World position where a visitor enters the lounge, on the floor by default."""
        point = self.layout.entry_point
        if point is None:
            point = Vec3(0.0, -self.layout.height / 2, self.layout.depth / 4)
        return self.root.local_to_world(point)

    def floor_level(self) -> Vec3:
        """World position of the floor's centre."""
        return self.root.local_to_world(Vec3(0.0, -self.layout.height / 2, 0.0))


def build_lounge(
    scene: Scene,
    layout: Optional[LoungeLayout] = None,
    parent: Optional[Entity] = None,
    lounge_id: str = "lounge",
    position: Optional[Vec3] = None,
) -> Lounge:
    """Create a lounge entity with its floor, walls and ceiling and add it to the scene."""
    layout = layout or LoungeLayout()
    root = Entity(
        id=lounge_id,
        position=position.copy() if position is not None else Vec3(),
        attributes={"lounge": {"width": layout.width, "height": layout.height, "depth": layout.depth}},
    )
    lounge = Lounge(root, layout)

    floor_color = layout.floor_color
    if not floor_color and not layout.floor_texture:
        floor_color = FLOOR_COLOR
    lounge.floor = Entity(
        tag="a-plane",
        position=Vec3(0.0, -layout.height / 2, 0.0),
        rotation=Vec3(270.0, 0.0, 0.0),
        geometry=BoxGeometry(layout.width, layout.depth, 0.0),
        classes={"lounge-floor"},
        attributes={"material": {"color": floor_color, "src": layout.floor_texture, "side": "double"}},
    )
    root.append(lounge.floor)

    for side in wall_specs(layout):
        material = {"color": layout.wall_color}
        if side.opacity < 1:
            material.update(transparent=True, opacity=side.opacity)
        wall = Entity(
            tag="a-box",
            position=Vec3(side.x, side.y, side.z),
            rotation=Vec3(0.0, WALL_ROTATIONS[side.facing], 0.0),
            geometry=BoxGeometry(side.width, side.height, WALL_THICKNESS),
            classes={"lounge-wall"},
            attributes={"material": material, "facing": side.facing},
        )
        root.append(wall)
        lounge.walls[side.facing] = wall

    if layout.ceiling:
        lounge.ceiling = Entity(
            tag="a-plane",
            position=Vec3(0.0, layout.height / 2, 0.0),
            rotation=Vec3(90.0, 0.0, 0.0),
            geometry=BoxGeometry(layout.width, layout.depth, 0.0),
            classes={"lounge-ceiling"},
            attributes={"material": {"color": layout.ceiling_color, "side": "double"}},
        )
        root.append(lounge.ceiling)

    scene.add(root, parent=parent)
    logger.info(
        "lounge_built",
        lounge_id=lounge_id,
        walls=sorted(lounge.walls),
        ceiling=layout.ceiling,
    )
    return lounge


def place_at_entry_point(entity: Entity, lounge: Lounge) -> None:
    """Move an entity (usually the camera rig) to the lounge's entry point."""
    point = lounge.entry_point()
    local = entity.parent.world_to_local(point) if entity.parent is not None else point
    entity.position.copy_from(local)
    logger.info("entity_placed_at_entry_point", entity_id=entity.id, lounge_id=lounge.root.id)


def make_plinth(
    width: float = 1.0,
    depth: float = 1.0,
    height: float = 0.5,
    color: str = "#404040",
    entity_id: str = "",
) -> Entity:
    """Create a box-shaped plinth for placing objects on."""
    return Entity(
        id=entity_id,
        geometry=BoxGeometry(width, height, depth),
        classes={"lounge-plinth"},
        attributes={"material": {"color": color}, "plinth": {"height": height}},
    )


def settle_on_floor(entity: Entity, lounge: Lounge, height: Optional[float] = None) -> None:
    """Move an entity vertically so its base rests on the lounge floor.

    Args:
        entity: Entity to move; its x and z are kept.
        lounge: Lounge whose floor is used.
        height: Entity height; defaults to its geometry height (0 without geometry).
    """
    if height is None:
        height = entity.geometry.height if entity.geometry is not None else 0.0
    floor = lounge.floor_level()
    local = entity.parent.world_to_local(floor) if entity.parent is not None else floor
    entity.position.y = local.y + height / 2
