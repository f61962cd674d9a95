"""Video-hosting WSGI application with SQLite storage and upload workflows."""

__version__ = "0.1.0"