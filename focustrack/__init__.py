"""FocusTrack: a focus timer that records sessions and reports on them."""

__version__ = "0.1.0"

from .cli import main
from .gui import launch_gui

__all__ = ["main", "launch_gui", "__version__"]
