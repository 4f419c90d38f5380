from typing import List, Optional

import pygame

from .machine import IntcodeVM
from .visualizer import StepSession

# Constants
SCREEN_WIDTH = 1200
SCREEN_HEIGHT = 760
BACKGROUND_COLOR = (240, 240, 240)
FONT_COLOR = (10, 10, 10)
PC_COLOR = (200, 255, 200)
INPUT_COLOR = (255, 240, 170)
ERROR_COLOR = (180, 30, 30)
FONT_SIZE = 18
LINE_HEIGHT = 22
MARGIN = 20
LISTING_ROWS = 24


class VMVisualizer:
    """pygame window showing the listing, buffers and event log of a running VM.

    SPACE steps, P toggles auto-run, R reboots, Q quits. While the VM waits
    for input, digits typed into the window are collected and queued on Enter.
    """

    def __init__(self, vm: IntcodeVM, max_steps: Optional[int] = None):
        self.session = StepSession(vm, max_steps=max_steps)
        pygame.init()
        self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
        pygame.display.set_caption("Intcode VM Visualizer")
        self.font = pygame.font.SysFont("monospace", FONT_SIZE)
        self.clock = pygame.time.Clock()
        self.running = True
        self.input_text = ""

    def _draw_text(self, text: str, x: int, y: int, color=FONT_COLOR, background=None):
        surface = self.font.render(text, True, color, background)
        self.screen.blit(surface, (x, y))

    def _draw_section(self, title: str, lines: List[str], x: int, y: int, width: int) -> int:
        height = LINE_HEIGHT * (len(lines) + 1) + 10
        pygame.draw.rect(self.screen, (220, 220, 220), (x, y, width, height), border_radius=5)
        pygame.draw.rect(self.screen, (180, 180, 180), (x, y, width, LINE_HEIGHT + 4), border_radius=5)
        self._draw_text(title, x + 8, y + 2)
        for i, line in enumerate(lines):
            self._draw_text(line, x + 8, y + LINE_HEIGHT * (i + 1) + 6)
        return y + height + MARGIN

    def _draw_ui(self):
        session = self.session
        self.screen.fill(BACKGROUND_COLOR)

        listing, cursor = session.listing_window(LISTING_ROWS)
        left_width = SCREEN_WIDTH // 2
        y = MARGIN
        self._draw_text("Listing", MARGIN, y)
        y += LINE_HEIGHT + 4
        for index, line in enumerate(listing):
            background = PC_COLOR if index == cursor else None
            self._draw_text(str(line), MARGIN, y, background=background)
            y += LINE_HEIGHT

        right_x = left_width + MARGIN
        right_width = SCREEN_WIDTH - right_x - MARGIN
        y = MARGIN
        y = self._draw_section("Status", [session.status_line()], right_x, y, right_width)
        output = ", ".join(str(value) for value in session.vm.peek_output())
        y = self._draw_section("Output", [output or "<empty>"], right_x, y, right_width)
        recent = list(reversed(session.event_log[-10:])) or ["<none>"]
        y = self._draw_section("Events", recent, right_x, y, right_width)

        if session.blocked:
            prompt = f"Input> {self.input_text}_"
            self._draw_text(prompt, right_x, y, background=INPUT_COLOR)

        color = ERROR_COLOR if session.error else (100, 100, 100)
        self._draw_text(session.message, MARGIN, SCREEN_HEIGHT - LINE_HEIGHT - MARGIN, color=color)
        pygame.display.flip()

    def _handle_events(self):
        session = self.session
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            if event.type != pygame.KEYDOWN:
                continue
            if session.blocked and self._handle_input_key(event):
                continue
            if event.key == pygame.K_q:
                self.running = False
            elif event.key == pygame.K_SPACE:
                session.auto_run = False
                session.advance()
            elif event.key == pygame.K_p:
                session.toggle_auto()
            elif event.key == pygame.K_r:
                self.input_text = ""
                session.reset()

    def _handle_input_key(self, event: "pygame.event.Event") -> bool:
        if event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            if self.session.provide_input(self.input_text):
                self.input_text = ""
            return True
        if event.key == pygame.K_BACKSPACE:
            self.input_text = self.input_text[:-1]
            return True
        if event.unicode and (event.unicode.isdigit() or (event.unicode == "-" and not self.input_text)):
            self.input_text += event.unicode
            return True
        return False

    def run(self):
        while self.running:
            self._handle_events()
            if self.session.auto_run:
                self.session.advance(auto=True)
            self._draw_ui()
            self.clock.tick(10)  # Limit frame rate
        pygame.quit()


__all__ = ["VMVisualizer"]
