"""Keeper: server structure backup and restore bot."""

__version__ = "0.1.0"
