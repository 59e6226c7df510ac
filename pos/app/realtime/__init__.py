"""Real-time fan-out of order events to connected clients."""

from .hub import BroadcastHub, Client

__all__ = ["BroadcastHub", "Client"]
