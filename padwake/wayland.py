"""A small Wayland client speaking the wire protocol for idle inhibition."""

from __future__ import annotations

import os
import socket
import struct
from collections.abc import Mapping
from dataclasses import dataclass

DISPLAY_ID = 1
WL_COMPOSITOR = "wl_compositor"
IDLE_INHIBIT_MANAGER = "zwp_idle_inhibit_manager_v1"
IDLE_INHIBITOR = "zwp_idle_inhibitor_v1"
DEFAULT_DISPLAY = "wayland-0"

_DISPLAY_SYNC = 0
_DISPLAY_GET_REGISTRY = 1
_REGISTRY_BIND = 0
_COMPOSITOR_CREATE_SURFACE = 0
_SURFACE_DESTROY = 0
_SURFACE_COMMIT = 6
_MANAGER_CREATE_INHIBITOR = 1
_INHIBITOR_DESTROY = 0

_DISPLAY_ERROR = 0
_DISPLAY_DELETE_ID = 1
_REGISTRY_GLOBAL = 0
_REGISTRY_GLOBAL_REMOVE = 1
_CALLBACK_DONE = 0

_UINT = struct.Struct("=I")
_HEADER = struct.Struct("=II")
_MAX_MESSAGE = 0xFFFF
_RECV_SIZE = 4096


class WaylandError(Exception):
    """Raised when talking to the compositor fails."""


@dataclass(frozen=True)
class Message:
    """One wire message: target object, opcode and argument bytes."""

    object_id: int
    opcode: int
    payload: bytes


def encode_uint(value: int) -> bytes:
    try:
        return _UINT.pack(value)
    except struct.error as exc:
        raise ValueError(f"not a 32-bit unsigned value: {value!r}") from exc


def encode_string(text: str) -> bytes:
    """Encode a string argument: length with terminator, bytes, padding."""
    raw = text.encode("utf-8") + b"\0"
    return encode_uint(len(raw)) + raw + b"\0" * (-len(raw) % 4)


def encode_message(object_id: int, opcode: int, payload: bytes = b"") -> bytes:
    if len(payload) % 4:
        raise ValueError("payload length must be a multiple of 4")
    size = _HEADER.size + len(payload)
    if size > _MAX_MESSAGE:
        raise ValueError(f"message of {size} bytes is too large")
    if not 0 <= opcode <= 0xFFFF:
        raise ValueError(f"opcode out of range: {opcode}")
    try:
        header = _HEADER.pack(object_id, (size << 16) | opcode)
    except struct.error as exc:
        raise ValueError(f"object id out of range: {object_id!r}") from exc
    return header + bytes(payload)


def parse_messages(data: bytes) -> tuple[list[Message], bytes]:
    """Split *data* into complete messages and the unfinished remainder."""
    data = bytes(data)
    messages: list[Message] = []
    offset = 0
    while len(data) - offset >= _HEADER.size:
        object_id, word = _HEADER.unpack_from(data, offset)
        size = word >> 16
        if size < _HEADER.size or size % 4:
            raise WaylandError(f"malformed message of size {size}")
        if offset + size > len(data):
            break
        messages.append(
            Message(object_id, word & 0xFFFF, data[offset + _HEADER.size : offset + size])
        )
        offset += size
    return messages, data[offset:]


class _Arguments:
    def __init__(self, payload: bytes) -> None:
        self._data = payload
        self._offset = 0

    def uint(self) -> int:
        if self._offset + 4 > len(self._data):
            raise WaylandError("truncated message")
        (value,) = _UINT.unpack_from(self._data, self._offset)
        self._offset += 4
        return value

    def string(self) -> str:
        length = self.uint()
        if length == 0:
            return ""
        end = self._offset + length
        if end > len(self._data):
            raise WaylandError("truncated string argument")
        text = self._data[self._offset : end - 1].decode("utf-8", "replace")
        self._offset += length + (-length % 4)
        return text


def socket_path(environ: Mapping[str, str] | None = None) -> str:
    """Locate the compositor socket from WAYLAND_DISPLAY and XDG_RUNTIME_DIR."""
    env = os.environ if environ is None else environ
    display = env.get("WAYLAND_DISPLAY") or DEFAULT_DISPLAY
    if os.path.isabs(display):
        return display
    runtime_dir = env.get("XDG_RUNTIME_DIR")
    if not runtime_dir:
        raise WaylandError("XDG_RUNTIME_DIR is not set")
    return os.path.join(runtime_dir, display)


def connect(path: str | os.PathLike[str] | None = None) -> WaylandClient:
    """Open a connection to the compositor."""
    target = socket_path() if path is None else os.fspath(path)
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.connect(target)
    except OSError as exc:
        sock.close()
        raise WaylandError(f"Failed to connect to wayland display {target}") from exc
    return WaylandClient(sock)


class WaylandClient:
    """Connection holding the compositor, a surface and idle inhibitors."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._inbox = b""
        self._next_id = DISPLAY_ID + 1
        self._objects: dict[int, str] = {DISPLAY_ID: "wl_display"}
        self._done: set[int] = set()
        self._surfaces: set[int] = set()
        self._inhibitors: set[int] = set()
        self._closed = False
        self.globals: dict[int, tuple[str, int]] = {}
        self.registry: int | None = None
        self.compositor: int | None = None
        self.idle_inhibit_manager: int | None = None

    def _new_id(self, interface: str) -> int:
        object_id = self._next_id
        self._next_id += 1
        self._objects[object_id] = interface
        return object_id

    def _send(self, object_id: int, opcode: int, payload: bytes = b"") -> None:
        if self._closed:
            raise WaylandError("connection is closed")
        try:
            self._sock.sendall(encode_message(object_id, opcode, payload))
        except OSError as exc:
            raise WaylandError("Failed to write Wayland request") from exc

    def _receive(self, block: bool) -> int | None:
        if self._closed:
            raise WaylandError("connection is closed")
        flags = 0 if block else socket.MSG_DONTWAIT
        try:
            chunk = self._sock.recv(_RECV_SIZE, flags)
        except BlockingIOError:
            return None
        except OSError as exc:
            raise WaylandError("Failed to read Wayland events") from exc
        if not chunk:
            raise WaylandError("Wayland connection closed")
        messages, self._inbox = parse_messages(self._inbox + chunk)
        for message in messages:
            self._handle(message)
        return len(messages)

    def _handle(self, message: Message) -> None:
        interface = self._objects.get(message.object_id)
        args = _Arguments(message.payload)
        if interface == "wl_display":
            if message.opcode == _DISPLAY_ERROR:
                object_id = args.uint()
                code = args.uint()
                text = args.string()
                raise WaylandError(f"protocol error {code} on object {object_id}: {text}")
            if message.opcode == _DISPLAY_DELETE_ID:
                deleted = args.uint()
                if deleted != DISPLAY_ID:
                    self._objects.pop(deleted, None)
        elif interface == "wl_registry":
            if message.opcode == _REGISTRY_GLOBAL:
                name = args.uint()
                name_interface = args.string()
                version = args.uint()
                self.globals[name] = (name_interface, version)
            elif message.opcode == _REGISTRY_GLOBAL_REMOVE:
                self.globals.pop(args.uint(), None)
        elif interface == "wl_callback" and message.opcode == _CALLBACK_DONE:
            self._done.add(message.object_id)

    def roundtrip(self) -> None:
        """Block until the compositor has handled every request sent so far."""
        callback = self._new_id("wl_callback")
        self._send(DISPLAY_ID, _DISPLAY_SYNC, encode_uint(callback))
        while callback not in self._done:
            self._receive(block=True)
        self._done.discard(callback)

    def _bind(self, name: int, interface: str, version: int) -> int:
        object_id = self._new_id(interface)
        payload = (
            encode_uint(name)
            + encode_string(interface)
            + encode_uint(version)
            + encode_uint(object_id)
        )
        self._send(self.registry, _REGISTRY_BIND, payload)
        return object_id

    def bind_globals(self) -> None:
        """Bind the compositor and the idle inhibit manager."""
        if self.registry is None:
            self.registry = self._new_id("wl_registry")
            self._send(DISPLAY_ID, _DISPLAY_GET_REGISTRY, encode_uint(self.registry))
        self.roundtrip()
        for name, (interface, version) in sorted(self.globals.items()):
            if interface == WL_COMPOSITOR and self.compositor is None:
                self.compositor = self._bind(name, interface, version)
            elif interface == IDLE_INHIBIT_MANAGER and self.idle_inhibit_manager is None:
                self.idle_inhibit_manager = self._bind(name, interface, version)
        if self.compositor is None or self.idle_inhibit_manager is None:
            raise WaylandError("Required Wayland globals not available")

    def create_surface(self) -> int:
        if self.compositor is None:
            raise WaylandError("compositor is not bound")
        surface = self._new_id("wl_surface")
        self._send(self.compositor, _COMPOSITOR_CREATE_SURFACE, encode_uint(surface))
        self._surfaces.add(surface)
        return surface

    def commit_surface(self, surface: int) -> None:
        if surface not in self._surfaces:
            raise WaylandError(f"unknown surface {surface}")
        self._send(surface, _SURFACE_COMMIT)

    def create_inhibitor(self, surface: int) -> int:
        if self.idle_inhibit_manager is None:
            raise WaylandError("idle inhibit manager is not bound")
        if surface not in self._surfaces:
            raise WaylandError(f"unknown surface {surface}")
        inhibitor = self._new_id(IDLE_INHIBITOR)
        self._send(
            self.idle_inhibit_manager,
            _MANAGER_CREATE_INHIBITOR,
            encode_uint(inhibitor) + encode_uint(surface),
        )
        self._inhibitors.add(inhibitor)
        return inhibitor

    def destroy_inhibitor(self, inhibitor: int) -> None:
        if inhibitor not in self._inhibitors:
            raise WaylandError(f"unknown inhibitor {inhibitor}")
        self._send(inhibitor, _INHIBITOR_DESTROY)
        self._inhibitors.discard(inhibitor)

    def dispatch(self) -> int:
        """Handle every event already waiting; return how many were handled."""
        handled = 0
        while (count := self._receive(block=False)) is not None:
            handled += count
        return handled

    def close(self) -> None:
        """Destroy remaining inhibitors and surfaces, then disconnect."""
        if self._closed:
            return
        try:
            for inhibitor in sorted(self._inhibitors):
                self._send(inhibitor, _INHIBITOR_DESTROY)
            for surface in sorted(self._surfaces):
                self._send(surface, _SURFACE_DESTROY)
        except WaylandError:
            pass
        self._inhibitors.clear()
        self._surfaces.clear()
        self._closed = True
        self._sock.close()

    def __enter__(self) -> WaylandClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()