"""E2E-specific pytest fixtures.

This module provides fixtures specifically for end-to-end tests.
"""

from __future__ import annotations

import pytest


@pytest.fixture
def e2e_timeout():
    """Provide a reasonable timeout for E2E tests.

    Returns:
        Timeout in seconds for playback to drain.
    """
    return 10.0


@pytest.fixture
def type_keys(app):
    """Simulate key presses arriving from the keyboard hook.

    Returns:
        Function taking a string and returning how many sounds were queued.
    """

    def _type(text: str) -> int:
        return sum(1 for char in text if app.handle_char(char))

    return _type
