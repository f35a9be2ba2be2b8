"""
Garden inventory engine.

Tracks a bounded collection of stackable garden items for a single player
session and exposes it to a host game engine through an asynchronous message
protocol, persisting state to local durable storage.
"""

__version__ = "0.1.0"
