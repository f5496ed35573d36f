"""
VV Course Engine (vvce).

Course DSL validation, static analysis and trigger simulation used by the
VV Education API server. Nothing in this package imports the web layer.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
