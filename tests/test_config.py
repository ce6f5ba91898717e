"""Tests for environment-driven settings."""

from lounge.config import Settings


def test_defaults():
    """Test the default values."""
    settings = Settings(_env_file=None)

    assert settings.tick_rate_ms == 16
    assert settings.collider_interval_ms == 80.0
    assert settings.collider_objects == ""
    assert settings.distance_limit == 10.0
    assert settings.proximity_frame_stride == 60


def test_env_overrides(monkeypatch):
    """Test that LOUNGE_ prefixed variables override defaults."""
    monkeypatch.setenv("LOUNGE_COLLIDER_INTERVAL_MS", "120")
    monkeypatch.setenv("LOUNGE_COLLIDER_OBJECTS", ".exhibit")
    monkeypatch.setenv("LOUNGE_DISTANCE_LIMIT", "4.5")

    settings = Settings(_env_file=None)

    assert settings.collider_interval_ms == 120.0
    assert settings.collider_objects == ".exhibit"
    assert settings.distance_limit == 4.5
