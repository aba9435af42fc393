import struct

import pytest

from padwake.gamepad import (
    ABS_RX,
    ABS_RZ,
    ABS_X,
    ABS_Z,
    BTN_A,
    BTN_THUMBR,
    EV_ABS,
    EV_KEY,
    AbsRange,
    Gamepad,
    GamepadState,
    InputEvent,
    decode_events,
    find_device,
)

RAW_EVENT = struct.Struct("@llHHi")


def test_decode_events_round_trip():
    data = RAW_EVENT.pack(12, 34, EV_KEY, BTN_A, 1) + RAW_EVENT.pack(56, 78, EV_ABS, ABS_X, -300)
    events = decode_events(data)
    assert events == [
        InputEvent(EV_KEY, BTN_A, 1, 12, 34),
        InputEvent(EV_ABS, ABS_X, -300, 56, 78),
    ]


def test_decode_events_empty():
    assert decode_events(b"") == []


def test_decode_events_rejects_partial_record():
    data = RAW_EVENT.pack(0, 0, EV_KEY, BTN_A, 1)
    with pytest.raises(ValueError):
        decode_events(data[:-1])


def test_fresh_state_is_idle():
    state = GamepadState()
    assert len(state.buttons) == BTN_THUMBR - BTN_A + 1
    assert state.is_active() is False


def test_button_press_and_release():
    state = GamepadState()
    state.apply(InputEvent(EV_KEY, BTN_THUMBR, 1))
    assert state.buttons[BTN_THUMBR - BTN_A] is True
    assert state.any_button_pressed()
    assert state.is_active()
    state.apply(InputEvent(EV_KEY, BTN_THUMBR, 0))
    assert state.any_button_pressed() is False


def test_keys_outside_gamepad_range_are_ignored():
    state = GamepadState()
    state.apply(InputEvent(EV_KEY, BTN_A - 1, 1))
    state.apply(InputEvent(EV_KEY, BTN_THUMBR + 1, 1))
    assert state.any_button_pressed() is False


def test_stick_at_maximum_counts_as_moved():
    state = GamepadState()
    state.apply(InputEvent(EV_ABS, ABS_RX, 255), AbsRange(0, 255))
    assert state.axes[ABS_RX - ABS_X] == pytest.approx(1.0)
    assert state.axis_moved()


def test_stick_at_minimum_is_not_counted():
    state = GamepadState()
    state.apply(InputEvent(EV_ABS, ABS_X, -32768), AbsRange(-32768, 32767))
    assert state.axes[0] == pytest.approx(-1.0)
    assert state.axis_moved() is False


def test_stick_with_empty_range_reads_zero():
    state = GamepadState()
    state.apply(InputEvent(EV_ABS, ABS_X, 200), AbsRange(5, 5))
    assert state.axes[0] == 0.0


def test_trigger_normalised_by_maximum():
    state = GamepadState()
    state.apply(InputEvent(EV_ABS, ABS_RZ, 1023), AbsRange(0, 1023))
    assert state.triggers[ABS_RZ - ABS_Z] == pytest.approx(1.0)
    assert state.any_trigger_pressed()
    state.apply(InputEvent(EV_ABS, ABS_RZ, 0), AbsRange(0, 1023))
    assert state.any_trigger_pressed() is False


def test_trigger_without_maximum_reads_zero():
    state = GamepadState()
    state.apply(InputEvent(EV_ABS, ABS_Z, 100))
    assert state.triggers[0] == 0.0
    assert state.is_active() is False


def test_find_device_resolves_symlink(tmp_path):
    target = tmp_path / "event7"
    target.write_bytes(b"")
    links = tmp_path / "by-id"
    links.mkdir()
    (links / "usb-pad-event-joystick").symlink_to(target)
    assert find_device(links) == target.resolve()


def test_find_device_without_symlinks(tmp_path):
    (tmp_path / "plain").write_text("x")
    assert find_device(tmp_path) is None


def test_gamepad_missing_device(tmp_path):
    with pytest.raises(RuntimeError, match="Failed to open device"):
        Gamepad(tmp_path / "missing")


def test_gamepad_rejects_non_evdev_file(tmp_path):
    plain = tmp_path / "not-a-device"
    plain.write_bytes(b"")
    with pytest.raises(RuntimeError, match="initialize"):
        Gamepad(plain)