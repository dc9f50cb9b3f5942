"""Errors shared by the gem trader library."""


class PlatformError(Exception):
    """A remote platform call failed (transport, timeout, or gateway error)."""
