"""Task synchronization between a central task service and external trackers."""

__version__ = "0.1.0"
