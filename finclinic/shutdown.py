"""
finclinic/shutdown.py

Shared shutdown flag for graceful termination of background tasks.
Both main.py and the background runner import from here to avoid circular imports.
"""

import asyncio

_shutdown_event = asyncio.Event()


def set_shutdown():
    """Signal that the app is shutting down."""
    _shutdown_event.set()


def clear_shutdown():
    """Reset the flag on startup (a test process may start the app several times)."""
    _shutdown_event.clear()


def is_shutting_down() -> bool:
    """Check if the app is shutting down. Used by background tasks."""
    return _shutdown_event.is_set()
