"""
Main game client for Diamond Maze.
Ties together pygame input/rendering, the network thread, the message
dispatcher and snapshot interpolation. The server is authoritative -
this client just shows what it's told, smoothed out a little.
"""

import argparse
import logging
import time
from typing import Optional, Tuple

import pygame

from maze_shared.constants import (
    SERVER_HOST, SERVER_PORT, WINDOW_WIDTH, WINDOW_HEIGHT, CLIENT_TICK_RATE,
    PROXIMITY_DISTANCE, PICKUP_FLASH_SECONDS
)
from maze_shared.protocol import Vector2

from maze_client.dispatcher import MessageDispatcher
from maze_client.input import InputSampler, read_keyboard
from maze_client.network import ConnectError, NetworkClient
from maze_client.renderer import GameRenderer
from maze_client.session import EventType, GameEvent, GameSession

logger = logging.getLogger(__name__)


class Panel:
    """Which screen is showing."""
    START = "start"
    WAITING = "waiting"
    HUD = "hud"
    GAME_OVER = "game_over"
    DISCONNECTED = "disconnected"


class MazeClient:
    """Main game client class."""

    def __init__(self, host: str = SERVER_HOST, port: int = SERVER_PORT,
                 autopilot: bool = False):
        self.host = host
        self.port = port

        pygame.init()
        pygame.display.set_caption("Diamond Maze")
        self.screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
        self.clock = pygame.time.Clock()

        self.renderer = GameRenderer(self.screen)
        self.network = NetworkClient()
        self.session = GameSession()
        self.dispatcher = MessageDispatcher(self.network, self.session)
        self.input_sampler = InputSampler()
        if autopilot:
            self.input_sampler.toggle_autopilot()

        self.panel = Panel.START
        self.running = True
        self.disconnect_reason = "Connection Lost!"

        # Last interpolated positions; held when there's nothing new
        self.positions: Optional[Tuple[Vector2, Vector2]] = None
        self.pickup_flash_until = 0.0
        self.start_time = time.time()

    def run(self):
        """Main game loop."""
        while self.running:
            self.handle_events()
            self.send_input()
            self.process_network_messages()
            self.update()
            self.render()

            pygame.display.flip()
            self.clock.tick(CLIENT_TICK_RATE)

        self.cleanup()

    # -------------------------------------------------------------------------
    # Operator actions
    # -------------------------------------------------------------------------

    def handle_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                self.handle_key_down(event.key)

    def handle_key_down(self, key):
        if key in (pygame.K_SPACE, pygame.K_RETURN) and self.panel == Panel.START:
            self.on_start()
        elif key in (pygame.K_ESCAPE, pygame.K_x):
            self.on_exit()
        elif key == pygame.K_p and self.session.player_id is not None:
            enabled = self.input_sampler.toggle_autopilot()
            logger.info("Auto-Pilot: %s", enabled)

    def on_start(self):
        """Connect and wait for the maze."""
        try:
            self.network.connect(self.host, self.port)
        except ConnectError:
            self.disconnect_reason = "Connection Failed!"
            self.panel = Panel.DISCONNECTED
            return
        self.panel = Panel.WAITING

    def on_exit(self):
        """Tell the server we're leaving (if we can) and stop."""
        if self.network.connected:
            self.network.send_exit()
        self.running = False

    # -------------------------------------------------------------------------
    # Per-tick work
    # -------------------------------------------------------------------------

    def send_input(self):
        if self.session.player_id is None or not self.network.connected:
            return
        if self.session.is_over:
            return
        manual = read_keyboard(pygame.key.get_pressed(), self.session.player_id)
        self.input_sampler.tick(self.network, manual, time.time() - self.start_time)

    def process_network_messages(self):
        """Drain the inbox and react to whatever came out of it."""
        for event in self.dispatcher.dispatch():
            self.handle_game_event(event)

    def handle_game_event(self, event: GameEvent):
        if event.type == EventType.MAZE_BUILT:
            self.renderer.flip = self.session.player_id == 1
            self.panel = Panel.HUD

        elif event.type == EventType.PICKUP:
            self.pickup_flash_until = time.time() + PICKUP_FLASH_SECONDS

        elif event.type == EventType.GAME_OVER:
            # Nothing after GAMEOVER matters; keep the socket for EXIT though
            self.network.stop_receiving()
            self.panel = Panel.GAME_OVER

        elif event.type == EventType.SHUTDOWN:
            self.running = False

        elif event.type == EventType.DISCONNECTED:
            self.panel = Panel.DISCONNECTED

    def update(self):
        positions = self.session.snapshots.get_render_positions(time.time())
        if positions is not None:
            self.positions = positions

    def players_close(self) -> bool:
        if self.positions is None:
            return False
        p0, p1 = self.positions
        return p0.distance_to(p1) < PROXIMITY_DISTANCE

    def render(self):
        if self.panel == Panel.START:
            self.renderer.render_start()

        elif self.panel == Panel.WAITING:
            self.renderer.render_waiting()

        elif self.panel in (Panel.HUD, Panel.GAME_OVER):
            self.render_game()
            if self.panel == Panel.GAME_OVER and self.session.outcome is not None:
                self.renderer.render_game_over(self.session.outcome)

        elif self.panel == Panel.DISCONNECTED:
            self.renderer.render_disconnected(self.disconnect_reason)

    def render_game(self):
        maze = self.session.maze
        if maze is None:
            return
        self.renderer.render_maze(maze)

        if self.positions is not None:
            for index, position in enumerate(self.positions):
                self.renderer.render_player(
                    maze, position, index, is_local=index == self.session.player_id
                )

        self.renderer.render_hud(
            self.session.scores,
            close_contact=self.players_close(),
            pickup_flash=time.time() < self.pickup_flash_until,
            autopilot=self.input_sampler.autopilot
        )

    def cleanup(self):
        logger.info("Shutting down...")
        self.network.close()
        pygame.quit()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Diamond Maze client")
    parser.add_argument("--host", default=SERVER_HOST, help="Server host")
    parser.add_argument("--port", type=int, default=SERVER_PORT, help="Server port")
    parser.add_argument("--autopilot", action="store_true", help="Start with auto-pilot on")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args()


def main():
    """Entry point for the client."""
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s"
    )

    client = MazeClient(args.host, args.port, autopilot=args.autopilot)
    client.run()


if __name__ == "__main__":
    main()
