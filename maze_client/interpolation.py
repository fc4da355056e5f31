"""
Snapshot interpolation - keeps both players moving smoothly.
We buffer server updates and lerp between them, rendering a little in
the past so there's nearly always a real sample on either side.
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

from maze_shared.constants import (
    SNAPSHOT_BUFFER_SIZE, INTERPOLATION_DELAY, MIN_INTERPOLATION_SPAN
)
from maze_shared.protocol import Vector2


@dataclass(frozen=True)
class Snapshot:
    """Both player positions at one point in (client) time."""
    capture_time: float
    p0_position: Vector2
    p1_position: Vector2


class SnapshotBuffer:
    """
    Bounded history of snapshots, oldest first.
    The deque drops the oldest entry on its own once capacity is hit.
    """

    def __init__(self, capacity: int = SNAPSHOT_BUFFER_SIZE,
                 render_delay: float = INTERPOLATION_DELAY):
        self.snapshots: Deque[Snapshot] = deque(maxlen=capacity)
        self.render_delay = render_delay

    def __len__(self):
        return len(self.snapshots)

    def append(self, snapshot: Snapshot):
        self.snapshots.append(snapshot)

    def latest(self) -> Optional[Snapshot]:
        return self.snapshots[-1] if self.snapshots else None

    def clear(self):
        self.snapshots.clear()

    def find_bracket(self, render_time: float) -> Tuple[Snapshot, Snapshot]:
        """
        Find the pair of neighbouring snapshots that straddle render_time.
        Falls back to (oldest, newest) when nothing straddles it.
        """
        snapshots = self.snapshots
        for i in range(len(snapshots) - 1):
            before, after = snapshots[i], snapshots[i + 1]
            if before.capture_time <= render_time <= after.capture_time:
                return before, after
        return snapshots[0], snapshots[-1]

    def interpolate(self, render_time: float) -> Optional[Tuple[Vector2, Vector2]]:
        """
        Get both players' positions at render_time.
        Returns None with fewer than two snapshots - callers just keep
        whatever they drew last.
        """
        if len(self.snapshots) < 2:
            return None

        before, after = self.find_bracket(render_time)

        span = after.capture_time - before.capture_time
        t = 0.0
        if span > MIN_INTERPOLATION_SPAN:
            t = (render_time - before.capture_time) / span
        t = max(0.0, min(1.0, t))  # No extrapolation past the samples we have

        return (
            before.p0_position.lerp(after.p0_position, t),
            before.p1_position.lerp(after.p1_position, t)
        )

    def get_render_positions(self, current_time: float) -> Optional[Tuple[Vector2, Vector2]]:
        """Interpolated positions for the frame being drawn at current_time."""
        return self.interpolate(current_time - self.render_delay)
