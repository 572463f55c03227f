"""Ad campaign targeting engine with an SQLite store and a WSGI delivery endpoint."""

__version__ = "0.1.0"