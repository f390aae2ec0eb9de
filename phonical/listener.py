"""Global keyboard listener for Phonical.

Uses pynput to receive key-down events from every application. Only keys
that produce a single character are forwarded; key releases, modifiers and
special keys (arrows, function keys, Enter, ...) are ignored here so the
rest of the app only ever sees characters.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable

from pynput import keyboard
from pynput.keyboard import Key

logger = logging.getLogger(__name__)


def _default_suggestion() -> str:
    """Platform-specific hint for a keyboard hook that fails to start."""
    if sys.platform == "darwin":
        return (
            "Grant Accessibility (and Input Monitoring) permission to your "
            "terminal in System Settings > Privacy & Security"
        )
    if sys.platform == "win32":
        return (
            "Try: 1) Check antivirus/security software settings, "
            "2) Run as administrator"
        )
    return "Make sure an X11 display is available (DISPLAY is set) or run with uinput permissions"


class KeyListenerError(Exception):
    """Exception raised when the keyboard listener fails to start.

    This typically occurs due to:
    - Missing Accessibility / Input Monitoring permission on macOS
    - Security software blocking keyboard hooks on Windows
    - No X display on Linux
    """

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Error description.
            suggestion: Optional suggestion for resolving the issue.
        """
        if suggestion is None:
            suggestion = _default_suggestion()
        full_message = f"{message}. {suggestion}"
        super().__init__(full_message)
        self.suggestion = suggestion


def key_to_char(key: Key | keyboard.KeyCode | None) -> str | None:
    """Extract the typed character from a pynput key.

    Args:
        key: Key reported by pynput.

    Returns:
        The single character the key produced, or None for special keys,
        modifiers and dead keys.
    """
    if not isinstance(key, keyboard.KeyCode):
        return None
    char = key.char
    if char is None or len(char) != 1 or not char.isprintable():
        return None
    return char


class KeyListener:
    """System-wide listener forwarding typed characters to a callback.

    The callback runs on pynput's listener thread and must not block;
    Phonical only queues a sound identifier there.

    Example:
        >>> listener = KeyListener(on_char=lambda c: print(c))
        >>> listener.start()
        >>> # type anywhere
        >>> listener.stop()
    """

    def __init__(self, on_char: Callable[[str], None]) -> None:
        """Initialize the listener.

        Args:
            on_char: Callback invoked with each typed character.
        """
        self._on_char = on_char
        self._listener: keyboard.Listener | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the listener is running.

        Returns:
            True if the listener is active.
        """
        return self._running

    def _on_key_press(self, key: Key | keyboard.KeyCode | None) -> None:
        """Handle key press events.

        Args:
            key: The key that was pressed.
        """
        char = key_to_char(key)
        if char is None:
            logger.debug("listener: non-character key %s", key)
            return

        try:
            self._on_char(char)
        except Exception:
            # An exception here would stop pynput's listener thread
            logger.exception("listener: on_char callback failed")

    def start(self) -> None:
        """Start the listener.

        Begins listening for keyboard events in a background thread.

        Raises:
            KeyListenerError: If the keyboard hook cannot be installed.
        """
        if self._running:
            return

        try:
            self._listener = keyboard.Listener(on_press=self._on_key_press)
            self._listener.start()
            self._listener.wait()
            self._running = True
        except OSError as e:
            raise KeyListenerError(f"Failed to start keyboard listener: {e}") from e
        except Exception as e:
            raise KeyListenerError(
                f"Unexpected error starting keyboard listener: {e}",
            ) from e

        logger.info("listener: started")

    def stop(self) -> None:
        """Stop the listener.

        Stops listening for keyboard events and cleans up resources.
        """
        if not self._running:
            return

        self._running = False

        if self._listener is not None:
            try:
                self._listener.stop()
            except Exception as e:
                logger.debug("listener: error while stopping: %s", e)
            self._listener = None

        logger.info("listener: stopped")

    def __enter__(self) -> KeyListener:
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.stop()
