"""
Scene Collection

Host-side store of the scene blocks the session publishes. Views such as
a caption overlay listen to its signals.
"""

import logging
from typing import List, Optional, Iterable, Tuple

from PySide6.QtCore import QObject, Signal

from script_editor.models.project import SceneBlock

logger = logging.getLogger("ScriptCut.Scenes")


class SceneCollection(QObject):
    """
    Signals:
        scene_added(SceneBlock)
        scene_removed(str): id of the removed scene
    """

    scene_added = Signal(object)
    scene_removed = Signal(str)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._scenes: List[SceneBlock] = []

    @property
    def scenes(self) -> Tuple[SceneBlock, ...]:
        return tuple(self._scenes)

    def add(self, scene: SceneBlock) -> None:
        self._scenes.append(scene)
        self.scene_added.emit(scene)

    def remove(self, scene_id: str) -> bool:
        for index, scene in enumerate(self._scenes):
            if scene.id == scene_id:
                del self._scenes[index]
                self.scene_removed.emit(scene_id)
                return True
        return False

    def replace_all(self, scenes: Iterable[SceneBlock]) -> None:
        """Removes every scene, then adds the new set in order."""
        for scene in list(self._scenes):
            self.remove(scene.id)
        for scene in scenes:
            self.add(scene)
        logger.debug(f"Scene collection now holds {len(self._scenes)} scene(s)")

    def scene_at(self, time: float) -> Optional[SceneBlock]:
        """First scene whose range includes ``time``."""
        for scene in self._scenes:
            if scene.contains_time(time):
                return scene
        return None

    def total_duration(self) -> float:
        """Sum of scene lengths; degenerate scenes count as zero."""
        return sum(max(0.0, scene.duration) for scene in self._scenes)

    def __len__(self) -> int:
        return len(self._scenes)

    def __iter__(self):
        return iter(tuple(self._scenes))
