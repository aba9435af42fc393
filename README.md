# padwake

`padwake` stops your Wayland desktop from blanking, dimming or locking the
screen while you are playing with a game controller.

It opens the event device behind the first symlink (in sorted order) found
under `/dev/input/by-id/` and polls it every 10 ms. As soon as a button
from `BTN_A` to `BTN_THUMBR` is held, a stick axis reads above 0.1 (on a
scale from -1 to 1), or a trigger reads above 0.1 of its maximum, it asks
the compositor for an idle inhibitor through the
`zwp_idle_inhibit_manager_v1` protocol. Once the controller has shown no
such input for ten whole seconds, the inhibitor is destroyed and normal
idle behaviour resumes.

## Requirements

- Linux with evdev input devices readable by your user
- A Wayland compositor that offers `wl_compositor` and
  `zwp_idle_inhibit_manager_v1`
- Python 3.10 or newer

No third-party Python libraries are needed: evdev events and the Wayland
wire protocol are handled directly.

## Installation

```
pip install .
```

## Usage

Start it from within your Wayland session, with the controller plugged in:

```
padwake
```

The compositor socket is found from `WAYLAND_DISPLAY` (default
`wayland-0`) and `XDG_RUNTIME_DIR`. The command takes no options besides
`--help`.

It prints `controller is active` / `controller is inactive` when the
controller's state changes (and `controller is inactive` once at start if
the controller is left untouched for the first ten seconds), and reports
when the idle inhibitor is created or destroyed. It keeps running until
reading from the Wayland connection fails.

It exits with status 1 if it cannot reach the compositor, if the
compositor lacks the required globals, if no device is found under
`/dev/input/by-id/` (`Game controller is not connected`), or if the
device cannot be opened or read.

## Using it as a library

- `padwake.gamepad`
  - `Gamepad(path)` opens an event device without blocking;
    `update_state()` applies all waiting events and returns a
    `GamepadState`. It is a context manager.
  - `GamepadState` holds buttons, stick axes and triggers; `apply(event,
    abs_range)` folds in one `InputEvent`, and `is_active()`,
    `any_button_pressed()`, `axis_moved()` and `any_trigger_pressed()`
    report input.
  - `decode_events(data)` turns raw `input_event` bytes into `InputEvent`
    objects; `find_device(folder)` returns the resolved target of the first
    symlink in a folder, or `None`.
- `padwake.wayland`
  - `connect(path=None)` returns a `WaylandClient`, which can
    `bind_globals()`, `create_surface()`, `commit_surface()`,
    `create_inhibitor()`, `destroy_inhibitor()`, `roundtrip()` and
    `dispatch()`. Failures raise `WaylandError`.
  - `encode_uint`, `encode_string`, `encode_message`, `parse_messages` and
    `socket_path` are the wire-format and socket-location helpers.
- `padwake.monitor`
  - `ActivityTracker(threshold)` turns a stream of active/idle samples into
    `Transition` values (`ACTIVATED`, `DEACTIVATED`, `STARTED_IDLE`).
  - `run(client, gamepad, clock, sleep)` is the polling loop behind the
    command; `main()` is the command itself.

## What it does not do

- It watches a single device, picked as described above; it does not
  search for a specific joystick, follow hot-plugging or wait for a
  controller to appear.
- The inactivity time, poll interval and device folder are fixed; there
  is no configuration file or command-line option for them.
- It does not reconnect to the compositor after the connection is lost.

## Running the tests

```
pip install .[test]
pytest
```