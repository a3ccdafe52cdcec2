"""Discover conda installations, environments and the conda executables managing them."""

__version__ = "0.1.0"