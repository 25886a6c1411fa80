"""Exceptions raised by kinpath."""


class KinpathError(Exception):
    """Base class for kinpath errors."""


class EmptyTreeError(KinpathError):
    """Root selection was asked for a tree without individuals."""

    def __init__(self, key: str = ""):
        self.key = key
        msg = f"tree {key} has no individuals" if key else "tree has no individuals"
        super().__init__(msg)


class ConfigError(KinpathError):
    """Configuration is malformed; raised at startup."""
