"""
Backend package for the contact and product catalog API.

This package provides a FastAPI application over a document store
abstraction (in-memory, SQLAlchemy or MongoDB) holding contacts,
products, backups and bookmarked links.
"""
