"""
Pygame renderer for Diamond Maze.
Draws the maze, diamonds, both players, the HUD and the menu panels.
Everything here is presentation only - it reads state, never changes it.
"""

from typing import List, Tuple

import pygame

from maze_shared.constants import (
    CELL_SIZE, PLAYER_SIZE, DIAMOND_SIZE, PLAYER_COLORS, PLAYER_NAMES,
    WALL_COLOR, DIAMOND_COLOR
)
from maze_shared.protocol import Vector2

from maze_client.session import GameOutcome, MazeModel


# Color definitions
BACKGROUND_COLOR = (30, 30, 40)
FLOOR_COLOR = (45, 45, 55)
TEXT_COLOR = (255, 255, 255)
HINT_COLOR = (150, 150, 150)
PANEL_BG_COLOR = (40, 40, 50)


class GameRenderer:
    """Handles all Pygame rendering for the game."""

    def __init__(self, screen: pygame.Surface):
        self.screen = screen
        self.width = screen.get_width()
        self.height = screen.get_height()

        pygame.font.init()
        self.font_large = pygame.font.Font(None, 48)
        self.font_medium = pygame.font.Font(None, 36)
        self.font_small = pygame.font.Font(None, 24)

        self.title_text = self.font_large.render("DIAMOND MAZE", True, DIAMOND_COLOR)

        # Player 1 sees the board from the opposite side
        self.flip = False

    def to_screen(self, maze: MazeModel, position: Vector2) -> Tuple[int, int]:
        """Maze units -> pixels, maze centred in the window."""
        if self.flip:
            mx, my = maze.width - position.x, position.y
        else:
            mx, my = position.x, maze.height - position.y
        offset_x = (self.width - maze.width * CELL_SIZE) / 2
        offset_y = (self.height - maze.height * CELL_SIZE) / 2
        return int(offset_x + mx * CELL_SIZE), int(offset_y + my * CELL_SIZE)

    def render_maze(self, maze: MazeModel):
        """Floor, walls and whichever diamonds are still active."""
        self.screen.fill(BACKGROUND_COLOR)

        top_left = self.to_screen(maze, Vector2(0, 0))
        bottom_right = self.to_screen(maze, Vector2(maze.width, maze.height))
        floor = pygame.Rect(
            min(top_left[0], bottom_right[0]), min(top_left[1], bottom_right[1]),
            maze.width * CELL_SIZE, maze.height * CELL_SIZE
        )
        pygame.draw.rect(self.screen, FLOOR_COLOR, floor)

        for x, y in maze.wall_cells():
            cx, cy = self.to_screen(maze, Vector2(x + 0.5, y + 0.5))
            rect = pygame.Rect(0, 0, CELL_SIZE, CELL_SIZE)
            rect.center = (cx, cy)
            pygame.draw.rect(self.screen, WALL_COLOR, rect)

        radius = max(2, int(DIAMOND_SIZE * CELL_SIZE / 2))
        for position, active in zip(maze.diamonds, maze.diamonds_active):
            if not active:
                continue
            cx, cy = self.to_screen(maze, position)
            points = [(cx, cy - radius), (cx + radius, cy), (cx, cy + radius), (cx - radius, cy)]
            pygame.draw.polygon(self.screen, DIAMOND_COLOR, points)

    def render_player(self, maze: MazeModel, position: Vector2, player_index: int,
                      is_local: bool = False):
        """Render a player circle, with a glow ring for the local one."""
        color = PLAYER_COLORS[player_index % len(PLAYER_COLORS)]
        x, y = self.to_screen(maze, position)
        radius = max(3, int(PLAYER_SIZE * CELL_SIZE / 2))

        if is_local:
            glow_color = tuple(min(255, c + 50) for c in color)
            pygame.draw.circle(self.screen, glow_color, (x, y), radius + 3)

        pygame.draw.circle(self.screen, color, (x, y), radius)
        border_color = tuple(min(255, c + 80) for c in color)
        pygame.draw.circle(self.screen, border_color, (x, y), radius, 2)

    def render_hud(self, scores: List[int], close_contact: bool = False,
                   pickup_flash: bool = False, autopilot: bool = False):
        """Score line at the top, plus any transient feedback."""
        score_text = f"{PLAYER_NAMES[0]}: {scores[0]}  |  {PLAYER_NAMES[1]}: {scores[1]}"
        color = DIAMOND_COLOR if pickup_flash else TEXT_COLOR
        score_surface = self.font_medium.render(score_text, True, color)
        self.screen.blit(score_surface, score_surface.get_rect(centerx=self.width // 2, y=10))

        if close_contact:
            feedback = self.font_small.render("Too close!", True, (255, 180, 80))
            self.screen.blit(feedback, feedback.get_rect(centerx=self.width // 2, y=45))

        if autopilot:
            auto_surface = self.font_small.render("AUTO-PILOT", True, HINT_COLOR)
            self.screen.blit(auto_surface, (10, self.height - 30))

    def render_start(self):
        self.screen.fill(PANEL_BG_COLOR)
        self.screen.blit(self.title_text, self.title_text.get_rect(centerx=self.width // 2, y=200))

        hint = self.font_medium.render("Press SPACE to start", True, TEXT_COLOR)
        self.screen.blit(hint, hint.get_rect(centerx=self.width // 2, y=280))

    def render_waiting(self):
        """Connected, waiting for the server to send the maze."""
        self.screen.fill(PANEL_BG_COLOR)
        self.screen.blit(self.title_text, self.title_text.get_rect(centerx=self.width // 2, y=200))

        dots = "." * ((pygame.time.get_ticks() // 500) % 4)
        wait_surface = self.font_medium.render(f"Waiting for the other player{dots}", True, TEXT_COLOR)
        self.screen.blit(wait_surface, wait_surface.get_rect(centerx=self.width // 2, y=280))

    def render_game_over(self, outcome: GameOutcome):
        """Darken the board and show the result."""
        overlay = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 180))
        self.screen.blit(overlay, (0, 0))

        go_text = self.font_large.render(outcome.winner_label, True, (255, 215, 0))
        self.screen.blit(go_text, go_text.get_rect(centerx=self.width // 2, y=180))

        scores_title = self.font_medium.render("Final Score:", True, TEXT_COLOR)
        self.screen.blit(scores_title, scores_title.get_rect(centerx=self.width // 2, y=250))

        scores_text = f"Blue: {outcome.score0} - Green: {outcome.score1}"
        scores_surface = self.font_medium.render(scores_text, True, TEXT_COLOR)
        self.screen.blit(scores_surface, scores_surface.get_rect(centerx=self.width // 2, y=290))

        hint = self.font_small.render("Press ESC to exit", True, HINT_COLOR)
        self.screen.blit(hint, hint.get_rect(centerx=self.width // 2, y=self.height - 50))

    def render_disconnected(self, reason: str = "Connection Lost!"):
        self.screen.fill((50, 30, 30))

        error_surface = self.font_large.render(reason, True, (255, 100, 100))
        self.screen.blit(error_surface, error_surface.get_rect(centerx=self.width // 2, y=250))

        hint = self.font_small.render("Press ESC to quit", True, HINT_COLOR)
        self.screen.blit(hint, hint.get_rect(centerx=self.width // 2, y=320))
