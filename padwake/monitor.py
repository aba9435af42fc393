"""Watch a game controller and keep the screen awake while it is in use."""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Callable, Sequence
from enum import Enum, auto

from padwake.gamepad import Gamepad, find_device
from padwake.wayland import WaylandClient, WaylandError, connect

INACTIVITY_THRESHOLD = 10
POLL_INTERVAL = 0.01
DEVICE_FOLDER = "/dev/input/by-id/"


class Transition(Enum):
    """A change in the controller's activity worth reporting."""

    ACTIVATED = auto()
    DEACTIVATED = auto()
    STARTED_IDLE = auto()

    @property
    def message(self) -> str:
        if self is Transition.ACTIVATED:
            return "controller is active"
        return "controller is inactive"


class ActivityTracker:
    """Decide when the controller becomes active or falls idle.

    Idle time is counted in whole seconds; once it reaches the threshold an
    active controller is reported inactive.  A controller that was never
    active is reported inactive once, the first time the threshold passes.
    """

    def __init__(self, threshold: float = INACTIVITY_THRESHOLD) -> None:
        if threshold < 0:
            raise ValueError(f"threshold must not be negative: {threshold!r}")
        self.threshold = threshold
        self.active = False
        self._first = True
        self._last_active: float | None = None

    def update(self, active: bool, now: float) -> Transition | None:
        """Record one observation taken at time *now* (seconds)."""
        if self._last_active is None:
            self._last_active = now
        transition: Transition | None = None
        if active:
            if not self.active:
                self.active = True
                self._first = False
                transition = Transition.ACTIVATED
            self._last_active = now
        idle_seconds = int(now - self._last_active)
        if idle_seconds >= self.threshold:
            if self.active:
                self.active = False
                transition = Transition.DEACTIVATED
            elif self._first:
                self._first = False
                transition = Transition.STARTED_IDLE
        return transition


def run(
    client: WaylandClient,
    gamepad: Gamepad,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> list[Transition]:
    """Poll until the Wayland connection fails; return the transitions seen."""
    surface = client.create_surface()
    client.commit_surface(surface)
    tracker = ActivityTracker()
    inhibitor: int | None = None
    transitions: list[Transition] = []

    while True:
        try:
            client.dispatch()
        except WaylandError:
            print("Failed to read Wayland events", file=sys.stderr)
            break

        now = clock()
        state = gamepad.update_state()
        transition = tracker.update(state.is_active(), now)

        if transition is not None:
            transitions.append(transition)
            print(transition.message)
            if transition is Transition.ACTIVATED and inhibitor is None:
                inhibitor = client.create_inhibitor(surface)
                client.commit_surface(surface)
                print("Idle inhibitor created successfully")
            elif transition is Transition.DEACTIVATED and inhibitor is not None:
                client.destroy_inhibitor(inhibitor)
                client.commit_surface(surface)
                inhibitor = None
                print("Idle inhibitor destroyed successfully")

        sleep(POLL_INTERVAL)

    return transitions


def main(argv: Sequence[str] | None = None) -> int:
    """Inhibit idling while the connected game controller is in use."""
    parser = argparse.ArgumentParser(
        prog="padwake",
        description="Keep the screen awake while a game controller is in use.",
    )
    parser.parse_args(argv)

    try:
        client = connect()
    except WaylandError as exc:
        print(exc, file=sys.stderr)
        return 1

    with client:
        try:
            client.bind_globals()
        except WaylandError as exc:
            print(exc, file=sys.stderr)
            return 1
        try:
            device = find_device(DEVICE_FOLDER)
            if device is None:
                print("Game controller is not connected")
                return 1
            with Gamepad(device) as gamepad:
                run(client, gamepad)
        except (RuntimeError, OSError, ValueError, WaylandError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
    return 0