"""Keysmith - interactive provider authentication and model setup."""

__version__ = "0.3.1"
