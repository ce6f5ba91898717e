"""Unit tests for the lounge room builder."""

from __future__ import annotations

import pytest

from lounge.bus.event_bus import EventBus
from lounge.core.collider import AABBCollider
from lounge.core.geometry import Vec3
from lounge.core.room import (
    LoungeLayout,
    build_lounge,
    make_plinth,
    place_at_entry_point,
    settle_on_floor,
    wall_specs,
)
from lounge.core.scene import BoxGeometry, Entity, Scene


def test_default_lounge_has_floor_four_walls_and_ceiling():
    """Test the default layout."""
    scene = Scene()
    lounge = build_lounge(scene)

    assert lounge.root in scene.children
    assert sorted(lounge.walls) == ["east", "north", "south", "west"]
    assert lounge.floor is not None
    assert lounge.ceiling is not None
    assert len(scene.query_selector_all(".lounge-wall")) == 4


def test_open_sides_and_no_ceiling():
    """Test that 'open' sides and ceiling=False produce no entities."""
    scene = Scene()
    lounge = build_lounge(scene, LoungeLayout(north="open", west="open", ceiling=False))

    assert sorted(lounge.walls) == ["east", "south"]
    assert lounge.ceiling is None
    assert scene.query_selector(".lounge-ceiling") is None


def test_barrier_and_glass_specs():
    """Test barrier height/placement and glass opacity."""
    layout = LoungeLayout(height=4, north="barrier", east="glass", barrier_height=1.4, glass_opacity=0.4)
    specs = {s.facing: s for s in wall_specs(layout)}

    assert specs["north"].height == 1.4
    assert specs["north"].y == pytest.approx(-1.3)
    assert specs["north"].opacity == 0.4
    assert specs["east"].height == 4
    assert specs["east"].opacity == 0.4
    assert specs["south"].opacity == 1.0


def test_unknown_side_kind_rejected():
    """Test that unknown side kinds raise."""
    with pytest.raises(ValueError):
        wall_specs(LoungeLayout(north="door"))  # type: ignore[arg-type]


def test_walls_are_rotated_into_place():
    """Test the world boxes of the north and east walls."""
    scene = Scene()
    lounge = build_lounge(scene, LoungeLayout(width=10, height=4, depth=7))

    north = lounge.walls["north"].world_box()
    assert (north.min.x, north.max.x) == pytest.approx((-5.0, 5.0))
    assert (north.min.z, north.max.z) == pytest.approx((-3.65, -3.35))

    east = lounge.walls["east"].world_box()
    assert (east.min.x, east.max.x) == pytest.approx((4.85, 5.15))
    assert (east.min.z, east.max.z) == pytest.approx((-3.5, 3.5))


def test_floor_lies_at_bottom_of_lounge():
    """Test that the floor plane is rotated flat at -height/2."""
    scene = Scene()
    lounge = build_lounge(scene, LoungeLayout(width=10, height=4, depth=7))

    floor = lounge.floor.world_box()
    assert (floor.min.y, floor.max.y) == pytest.approx((-2.0, -2.0))
    assert (floor.min.z, floor.max.z) == pytest.approx((-3.5, 3.5))


def test_entry_point_defaults_and_override():
    """Test the default entry point and a configured one, in world space."""
    scene = Scene()
    lounge = build_lounge(scene, LoungeLayout(height=4, depth=8), position=Vec3(10, 0, 0))
    point = lounge.entry_point()
    assert (point.x, point.y, point.z) == pytest.approx((10.0, -2.0, 2.0))

    custom = build_lounge(scene, LoungeLayout(entry_point=Vec3(1, 0, 1)), lounge_id="other")
    assert custom.entry_point() == Vec3(1, 0, 1)


def test_place_at_entry_point_uses_parent_space():
    """Test that a nested rig ends up at the entry point in world space."""
    scene = Scene()
    lounge = build_lounge(scene, LoungeLayout(height=4, depth=8), position=Vec3(10, 0, 0))
    rig = scene.add(Entity(id="rig", position=Vec3(-5, 0, 0)))
    camera = scene.add(Entity(id="camera"), parent=rig)

    place_at_entry_point(camera, lounge)

    world = camera.world_position()
    assert (world.x, world.y, world.z) == pytest.approx((10.0, -2.0, 2.0))


def test_settle_on_floor_rests_base_on_floor():
    """Test that a plinth is lifted by half its height above the floor."""
    scene = Scene()
    lounge = build_lounge(scene, LoungeLayout(height=4))
    plinth = scene.add(make_plinth(height=0.5, entity_id="plinth"))
    plinth.position.set(2, 3, 1)

    settle_on_floor(plinth, lounge)

    assert plinth.position.y == pytest.approx(-1.75)
    assert (plinth.position.x, plinth.position.z) == (2, 1)
    assert plinth.world_box().min.y == pytest.approx(-2.0)


def test_building_a_lounge_dirties_attached_colliders():
    """Test that room construction is a scene mutation colliders react to."""
    scene = Scene()
    camera = scene.add(Entity(id="camera", geometry=BoxGeometry()))
    collider = AABBCollider(camera, scene, EventBus())
    collider.attach()
    collider.on_tick(0)

    build_lounge(scene)

    assert collider.dirty is True
