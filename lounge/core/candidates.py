"""Candidate registry — the dirty-tracked list of entities a collider tests against."""

from __future__ import annotations

from typing import Optional

import structlog

from lounge.core.scene import Entity, Scene, parse_selector

logger = structlog.get_logger()


class CandidateRegistry:
    """Flat candidate list rebuilt wholesale from the scene when marked dirty.

    The registry starts dirty so the first check always builds the list.
    The excluded entity (a collider's reference) never appears in it.
    """

    def __init__(self, scene: Scene, selector: Optional[str] = None, exclude: Optional[Entity] = None) -> None:
        """Initialize the registry.

        Args:
            scene: Scene graph the candidates are drawn from.
            selector: Selector expression; None or "" means all direct scene children.
            exclude: Entity never included in the candidate list.
        """
        self.scene = scene
        self.exclude = exclude
        self._selector: Optional[str] = None
        self._candidates: tuple[Entity, ...] = ()
        self.dirty = True
        self.rebuild_count = 0
        self.selector = selector

    @property
    def selector(self) -> Optional[str]:
        return self._selector

    @selector.setter
    def selector(self, value: Optional[str]) -> None:
        if value:
            parse_selector(value)  # fail on a bad expression now, not at the next rebuild
        self._selector = value or None
        self.dirty = True

    @property
    def candidates(self) -> tuple[Entity, ...]:
        return self._candidates

    def mark_dirty(self) -> None:
        self.dirty = True

    def refresh_if_dirty(self) -> bool:
        """Rebuild the list if dirty.

        Returns:
            bool: True if a rebuild happened.
        """
        if not self.dirty:
            return False
        self.refresh()
        return True

    def refresh(self) -> None:
        if self._selector:
            found = self.scene.query_selector_all(self._selector)
        else:
            found = list(self.scene.children)
        self._candidates = tuple(e for e in found if e is not self.exclude)
        self.dirty = False
        self.rebuild_count += 1
        logger.debug(
            "collider_candidates_refreshed",
            selector=self._selector,
            candidate_count=len(self._candidates),
        )

    def __len__(self) -> int:
        return len(self._candidates)
