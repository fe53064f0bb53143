"""Async storage client, I/O buffers, file attributes and server configuration tooling for a remote filesystem."""

__version__ = "0.1.0"