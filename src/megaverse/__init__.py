"""Megaverse builder: reconcile a remote grid map with its goal."""

__version__ = "0.1.0"
