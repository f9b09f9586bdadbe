"""switchboard-ai: a layered request-routing core for interactive agent systems."""

__version__ = "0.1.0"
