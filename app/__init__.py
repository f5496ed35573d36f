"""
VV Education API server.

`app.server` holds the application factory and the process entry point;
the course engine it serves lives in the separate `vvce` package.
"""

__version__ = "0.1.0"
