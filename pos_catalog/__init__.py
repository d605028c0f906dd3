"""
Point-of-sale product catalog synchronization engine.

Package layout:
- database: local catalog persistence (SQLAlchemy store, in-memory store)
- integrations: catalog contracts, remote/local catalog clients, record normalization
- events: in-process progress channel (loading:status)
- sync: sync coordinator and connectivity signal
- quoting: budget lines and budget message built from cached entries
- api: FastAPI service exposing the public operations
"""

__version__ = "1.0.0"
