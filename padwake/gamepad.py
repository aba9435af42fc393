"""Reading a game controller through the Linux evdev interface."""

from __future__ import annotations

import fcntl
import os
import struct
from dataclasses import dataclass, field
from pathlib import Path

EV_KEY = 0x01
EV_ABS = 0x03

BTN_A = 0x130
BTN_THUMBR = 0x13E

ABS_X = 0x00
ABS_Y = 0x01
ABS_Z = 0x02
ABS_RX = 0x03
ABS_RY = 0x04
ABS_RZ = 0x05

STICK_AXES = (ABS_X, ABS_Y, ABS_RX, ABS_RY)
TRIGGER_AXES = (ABS_Z, ABS_RZ)

ACTIVITY_THRESHOLD = 0.1

_EVENT = struct.Struct("@llHHi")
_ABSINFO = struct.Struct("@6i")
_READ_CHUNK = _EVENT.size * 64


def _ior(number: int, size: int) -> int:
    return (2 << 30) | (size << 16) | (ord("E") << 8) | number


_EVIOCGVERSION = _ior(0x01, 4)


def _eviocgabs(code: int) -> int:
    return _ior(0x40 + code, _ABSINFO.size)


@dataclass(frozen=True)
class InputEvent:
    """One kernel input event."""

    type: int
    code: int
    value: int
    sec: int = 0
    usec: int = 0


@dataclass(frozen=True)
class AbsRange:
    """Reported limits of an absolute axis."""

    minimum: int = 0
    maximum: int = 0


def decode_events(data: bytes) -> list[InputEvent]:
    """Decode a buffer of raw ``input_event`` records."""
    if len(data) % _EVENT.size:
        raise ValueError(
            f"buffer of {len(data)} bytes is not a whole number of "
            f"{_EVENT.size}-byte input events"
        )
    return [
        InputEvent(type_, code, value, sec, usec)
        for sec, usec, type_, code, value in _EVENT.iter_unpack(data)
    ]


def find_device(folder: str | os.PathLike[str]) -> Path | None:
    """Return the resolved target of the first symlink in *folder*, or None."""
    for entry in sorted(Path(folder).iterdir()):
        if entry.is_symlink():
            return entry.resolve()
    return None


def _buttons() -> list[bool]:
    return [False] * (BTN_THUMBR - BTN_A + 1)


def _axes() -> list[float]:
    return [0.0] * (ABS_RY - ABS_X + 1)


def _triggers() -> list[float]:
    return [0.0] * (ABS_RZ - ABS_Z + 1)


@dataclass
class GamepadState:
    """Buttons, sticks and triggers as last reported by the device."""

    buttons: list[bool] = field(default_factory=_buttons)
    axes: list[float] = field(default_factory=_axes)
    triggers: list[float] = field(default_factory=_triggers)

    def apply(self, event: InputEvent, abs_range: AbsRange | None = None) -> None:
        """Fold one input event into the state."""
        if event.type == EV_KEY:
            if BTN_A <= event.code <= BTN_THUMBR:
                self.buttons[event.code - BTN_A] = event.value != 0
        elif event.type == EV_ABS:
            limits = abs_range or AbsRange()
            if event.code in STICK_AXES:
                if limits.maximum > limits.minimum:
                    span = float(limits.maximum - limits.minimum)
                    normalised = (event.value - limits.minimum) / span * 2.0 - 1.0
                else:
                    normalised = 0.0
                self.axes[event.code - ABS_X] = normalised
            elif event.code in TRIGGER_AXES:
                self.triggers[event.code - ABS_Z] = (
                    event.value / float(limits.maximum) if limits.maximum > 0 else 0.0
                )

    def any_button_pressed(self) -> bool:
        return any(self.buttons)

    def axis_moved(self) -> bool:
        return any(axis > ACTIVITY_THRESHOLD for axis in self.axes)

    def any_trigger_pressed(self) -> bool:
        return any(trigger > ACTIVITY_THRESHOLD for trigger in self.triggers)

    def is_active(self) -> bool:
        """True when any button, stick or trigger shows input."""
        return (
            self.any_button_pressed()
            or self.axis_moved()
            or self.any_trigger_pressed()
        )


def _query_range(fd: int, code: int) -> AbsRange:
    try:
        raw = fcntl.ioctl(fd, _eviocgabs(code), bytes(_ABSINFO.size))
    except OSError:
        return AbsRange()
    _value, minimum, maximum, *_rest = _ABSINFO.unpack(raw)
    return AbsRange(minimum, maximum)


class Gamepad:
    """An open evdev game controller, read without blocking."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        try:
            fd = os.open(self.path, os.O_RDONLY | os.O_NONBLOCK)
        except OSError as exc:
            raise RuntimeError(f"Failed to open device: {self.path}") from exc
        try:
            fcntl.ioctl(fd, _EVIOCGVERSION, bytes(4))
        except OSError as exc:
            os.close(fd)
            raise RuntimeError("Failed to initialize evdev device") from exc
        self._fd: int | None = fd
        self._pending = b""
        self._ranges = {code: _query_range(fd, code) for code in STICK_AXES + TRIGGER_AXES}
        self.state = GamepadState()

    def update_state(self) -> GamepadState:
        """Apply every event waiting on the device and return the state."""
        if self._fd is None:
            raise ValueError("gamepad is closed")
        while True:
            try:
                chunk = os.read(self._fd, _READ_CHUNK)
            except BlockingIOError:
                break
            if not chunk:
                break
            data = self._pending + chunk
            whole = len(data) - len(data) % _EVENT.size
            self._pending = data[whole:]
            for event in decode_events(data[:whole]):
                limits = self._ranges.get(event.code) if event.type == EV_ABS else None
                self.state.apply(event, limits)
        return self.state

    def close(self) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    def __enter__(self) -> Gamepad:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()