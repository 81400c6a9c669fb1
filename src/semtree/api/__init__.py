"""Outer surfaces: message dispatch, CLI and HTTP server."""
