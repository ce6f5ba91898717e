"""Tests for the demo scene runner."""

import pytest

from lounge.bus.channels import Channels
from lounge.bus.events import HitStart
from lounge.config import Settings
from lounge.main import EXHIBITS, SceneRunner


@pytest.fixture
def runner():
    runner = SceneRunner(Settings(_env_file=None))
    runner.build()
    runner.engine.begin_session()
    return runner


def test_build_places_camera_and_exhibits(runner):
    """Test that the camera starts at the entry point and every exhibit is monitored."""
    camera = runner.camera

    assert (camera.position.x, camera.position.y, camera.position.z) == pytest.approx((0.0, -1.2, 1.75))
    assert len(runner.engine.monitors) == len(EXHIBITS)
    assert all(m.active for m in runner.engine.monitors)
    assert len(runner.engine.colliders) == 1


def test_walking_into_an_exhibit_starts_a_hit(runner):
    """Test that the camera collider reports the plinth it walks into."""
    received = []
    runner.bus.subscribe(Channels.HIT_START, received.append)
    runner.engine.step(0.0)
    assert received == []
    assert len(runner.engine.colliders[0].registry) == len(EXHIBITS)

    runner.camera.position.x = 3.0
    runner.camera.position.z = 2.0
    runner.engine.step(100.0)

    assert [e.entity.id for e in received] == ["elephant"]
    assert isinstance(received[0], HitStart)


@pytest.mark.asyncio
async def test_walk_camera_requires_build():
    """Test that walking before build() raises instead of failing later."""
    runner = SceneRunner(Settings(_env_file=None))

    with pytest.raises(RuntimeError):
        await runner.walk_camera()
