from .main import bind_lifecycle, launch_desktop

__all__ = ["bind_lifecycle", "launch_desktop"]
