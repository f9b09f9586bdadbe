"""Ambient concerns shared by the routing core: configuration, logging and monitoring."""
