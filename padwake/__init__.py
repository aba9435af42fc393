"""Keep a Wayland session awake while a game controller is in use."""

__version__ = "0.1.0"
__all__ = ["__version__"]