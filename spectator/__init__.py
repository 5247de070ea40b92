"""Spectator odds host: streams equity results to clients over WebSockets."""

from .server import ClientSession, OddsServer

__all__ = ["ClientSession", "OddsServer"]
