"""Capacity-aware completion estimation for the support portal."""

__version__ = "0.1.0"
