"""Translate local controls (or the autopilot) into INPUT records."""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import pygame

from maze_shared.constants import (
    KEEPALIVE_INTERVAL, AUTOPILOT_X_FREQUENCY, AUTOPILOT_Y_FREQUENCY,
    AUTOPILOT_X_DEADZONE, AUTOPILOT_Y_THRESHOLD
)
from maze_shared.protocol import create_input_message


@dataclass(frozen=True)
class InputState:
    """Movement intent, each axis in {-1, 0, 1}."""
    x: int = 0
    y: int = 0

    @property
    def idle(self) -> bool:
        return self.x == 0 and self.y == 0


def read_keyboard(pressed: Sequence[bool], player_id: Optional[int]) -> InputState:
    """Map held keys to axes. Player 0 plays on WASD; player 1 on the
    arrows, mirrored since they look at the maze from the other side."""
    x = y = 0
    if player_id == 0:
        if pressed[pygame.K_w]:
            y = 1
        if pressed[pygame.K_s]:
            y = -1
        if pressed[pygame.K_a]:
            x = -1
        if pressed[pygame.K_d]:
            x = 1
    elif player_id == 1:
        if pressed[pygame.K_UP]:
            y = -1
        if pressed[pygame.K_DOWN]:
            y = 1
        if pressed[pygame.K_LEFT]:
            x = 1
        if pressed[pygame.K_RIGHT]:
            x = -1
    return InputState(x, y)


def autopilot_input(elapsed: float) -> InputState:
    """Deterministic wandering pattern, handy for demos and soak tests."""
    wave_x = math.sin(elapsed * AUTOPILOT_X_FREQUENCY)
    wave_y = math.cos(elapsed * AUTOPILOT_Y_FREQUENCY)

    x = 0
    if wave_x > AUTOPILOT_X_DEADZONE:
        x = 1
    elif wave_x < -AUTOPILOT_X_DEADZONE:
        x = -1

    y = 0
    if wave_y > AUTOPILOT_Y_THRESHOLD:
        y = 1
    elif wave_y < -AUTOPILOT_Y_THRESHOLD:
        y = -1

    return InputState(x, y)


class InputSampler:
    """Samples intent once per tick and fires it at the server."""

    def __init__(self, keepalive_interval: int = KEEPALIVE_INTERVAL):
        self.keepalive_interval = keepalive_interval
        self.autopilot = False
        self.tick_count = 0
        self.last_state = InputState()

    def toggle_autopilot(self) -> bool:
        self.autopilot = not self.autopilot
        return self.autopilot

    def sample(self, manual: InputState, elapsed: float) -> InputState:
        self.last_state = autopilot_input(elapsed) if self.autopilot else manual
        return self.last_state

    def tick(self, network, manual: InputState, elapsed: float) -> bool:
        """Sample and send. Idle ticks still send every Nth tick as a
        keep-alive. Returns True if a record went out."""
        self.tick_count += 1
        state = self.sample(manual, elapsed)

        if state.idle and self.tick_count % self.keepalive_interval != 0:
            return False
        return network.send(create_input_message(state.x, state.y))
