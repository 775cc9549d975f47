"""Game session services: round controllers per game, outcome persistence, stats.

This package binds the transport-free round engine to Socket.IO rooms and
the database, keeping transport concerns separated from core game
mechanics.
"""
