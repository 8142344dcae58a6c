"""Return domain exceptions."""

from __future__ import annotations


class ReturnNotFound(Exception):
    """The return request does not exist."""


class ReturnAccessDenied(Exception):
    """Only the order owner may request a return; only staff may move it."""


class InvalidReturnTransition(Exception):
    """The requested status change is not allowed from the current state."""
