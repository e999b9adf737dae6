"""Pygame dashboard rendering the four signal heads and accepting keyboard input."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Tuple

from .base import PresentationSink
from ..events import AddCrowd, AddEmergencyVehicle, AddVehicle, InputSource, LaneEvent, ResetCounts
from ..lane import LANE_ORDER, LaneSnapshot, LightState

logger = logging.getLogger(__name__)

try:  # pragma: no cover - optional runtime dependency
    import pygame
except Exception as exc:  # pragma: no cover - degrade gracefully
    pygame = None  # type: ignore[assignment]
    _PYGAME_IMPORT_ERROR = exc
else:  # pragma: no cover - environment dependent
    _PYGAME_IMPORT_ERROR = None

COLOR_BACKGROUND = (25, 28, 33)
COLOR_PANEL = (45, 48, 54)
COLOR_PANEL_EDGE = (10, 10, 12)
COLOR_EMERGENCY_EDGE = (230, 60, 60)
COLOR_TEXT = (235, 235, 235)
COLOR_MUTED = (150, 150, 150)
COLOR_LIGHT_HOUSING = (32, 32, 36)
COLOR_LIGHT_OFF = (70, 70, 70)
COLOR_LIGHT_GREEN = (0, 200, 0)
COLOR_LIGHT_RED = (200, 0, 0)
COLOR_LIGHT_YELLOW = (230, 210, 0)

KEY_HELP = "1-4 vehicle | Q W E R crowd(5) | A S D F emergency | SPACE reset all | ESC quit"
# keys per approach, in scan order
_VEHICLE_KEYS = ("1", "2", "3", "4")
_CROWD_KEYS = ("q", "w", "e", "r")
_EMERGENCY_KEYS = ("a", "s", "d", "f")


def key_bindings() -> Dict[str, LaneEvent]:
    """Return the mapping from pygame key names to input events."""

    bindings: Dict[str, LaneEvent] = {"space": ResetCounts()}
    for direction, vehicle, crowd, emergency in zip(
        LANE_ORDER, _VEHICLE_KEYS, _CROWD_KEYS, _EMERGENCY_KEYS
    ):
        bindings[vehicle] = AddVehicle(direction.value)
        bindings[crowd] = AddCrowd(direction.value, 5)
        bindings[emergency] = AddEmergencyVehicle(direction.value)
    return bindings


class PygameDashboard(PresentationSink, InputSource):
    """Render lane panels in a 2x2 grid and translate key presses into events.

    ``publish`` and ``publish_status`` only store data under a lock, so the
    controller thread never waits on rendering. ``render`` and ``poll`` must be
    called from the main thread, which owns the pygame display.
    """

    def __init__(self, width: int = 900, height: int = 650) -> None:
        if pygame is None:  # pragma: no cover - executed when dependency missing
            raise RuntimeError(
                "pygame is required for PygameDashboard but could not be imported"
            ) from _PYGAME_IMPORT_ERROR

        self._lock = threading.Lock()
        self._snapshots: Dict[str, LaneSnapshot] = {}
        self._status = "Status: Initializing..."
        self._bindings = key_bindings()
        self.quit_requested = False

        pygame.init()
        self.surface = pygame.display.set_mode((width, height))
        pygame.display.set_caption("Smart Traffic Control System")
        self.clock = pygame.time.Clock()
        self.width = width
        self.height = height
        self.font_title = pygame.font.Font(None, 30)
        self.font_label = pygame.font.Font(None, 24)
        self.font_small = pygame.font.Font(None, 20)

    def publish(self, snapshot: LaneSnapshot) -> None:
        with self._lock:
            self._snapshots[snapshot.name] = snapshot

    def publish_status(self, text: str) -> None:
        with self._lock:
            self._status = text

    def poll(self) -> List[LaneEvent]:  # pragma: no cover - interactive loop
        events: List[LaneEvent] = []
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.quit_requested = True
            elif event.type == pygame.KEYDOWN:
                name = pygame.key.name(event.key)
                if name == "escape":
                    self.quit_requested = True
                elif name in self._bindings:
                    logger.debug("Key %s mapped to %s", name, self._bindings[name])
                    events.append(self._bindings[name])
        return events

    def _panel_rects(self) -> List[Tuple[str, "pygame.Rect"]]:
        margin = 16
        top = 70
        bottom = 40
        panel_w = (self.width - margin * 3) // 2
        panel_h = (self.height - top - bottom - margin) // 2
        rects = []
        for idx, direction in enumerate(LANE_ORDER):
            row, col = divmod(idx, 2)
            rect = pygame.Rect(
                margin + col * (panel_w + margin),
                top + row * (panel_h + margin),
                panel_w,
                panel_h,
            )
            rects.append((direction.value, rect))
        return rects

    def _draw_panel(self, name: str, rect: "pygame.Rect", snap: Optional[LaneSnapshot]) -> None:
        emergency = snap is not None and snap.emergency
        pygame.draw.rect(self.surface, COLOR_PANEL, rect, border_radius=8)
        pygame.draw.rect(
            self.surface,
            COLOR_EMERGENCY_EDGE if emergency else COLOR_PANEL_EDGE,
            rect,
            3,
            border_radius=8,
        )

        title = self.font_title.render(name, True, COLOR_TEXT)
        self.surface.blit(title, title.get_rect(midtop=(rect.centerx, rect.top + 8)))

        housing = pygame.Rect(0, 0, 60, rect.height - 70)
        housing.midleft = (rect.left + 30, rect.centery + 10)
        pygame.draw.rect(self.surface, COLOR_LIGHT_HOUSING, housing, border_radius=8)
        radius = max(8, min(housing.width // 2 - 6, housing.height // 6 - 4))
        state = snap.light if snap is not None else LightState.RED
        lamps = [
            (LightState.RED, COLOR_LIGHT_RED),
            (LightState.YELLOW, COLOR_LIGHT_YELLOW),
            (LightState.GREEN, COLOR_LIGHT_GREEN),
        ]
        for idx, (lamp_state, color) in enumerate(lamps):
            center = (housing.centerx, housing.top + housing.height * (2 * idx + 1) // 6)
            pygame.draw.circle(
                self.surface, color if state == lamp_state else COLOR_LIGHT_OFF, center, radius
            )

        vehicles = snap.vehicle_count if snap is not None else 0
        crowd = snap.crowd_count if snap is not None else 0
        lines = [
            f"Vehicles: {vehicles}",
            f"Crowd: {crowd}",
            f"Emergency: {'YES' if emergency else 'NO'}",
        ]
        for idx, text in enumerate(lines):
            surface = self.font_label.render(text, True, COLOR_TEXT)
            self.surface.blit(surface, (housing.right + 30, housing.top + 10 + idx * 30))

    def render(self) -> None:  # pragma: no cover - requires display
        with self._lock:
            snapshots = dict(self._snapshots)
            status = self._status

        self.surface.fill(COLOR_BACKGROUND)
        status_surface = self.font_title.render(status, True, COLOR_TEXT)
        self.surface.blit(status_surface, status_surface.get_rect(midtop=(self.width // 2, 20)))
        for name, rect in self._panel_rects():
            self._draw_panel(name, rect, snapshots.get(name))
        legend = self.font_small.render(KEY_HELP, True, COLOR_MUTED)
        self.surface.blit(legend, legend.get_rect(midbottom=(self.width // 2, self.height - 12)))
        pygame.display.flip()
        self.clock.tick(30)

    def close(self) -> None:
        if pygame is not None:
            pygame.quit()
