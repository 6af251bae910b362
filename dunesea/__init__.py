"""Dune Sea Diagnostics site server package."""
__version__ = "1.0.0"
