"""dockview — container runtime and compose project viewer."""

__version__ = "0.1.0"
