"""Inject git and build metadata into Automation Studio declaration files."""

__version__ = "0.3.0"

__all__ = ["__version__"]
