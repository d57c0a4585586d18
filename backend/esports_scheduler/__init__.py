"""Esports facility scheduler: conflict-checked computer reservations with live change notifications."""

__version__ = "1.0.0"
