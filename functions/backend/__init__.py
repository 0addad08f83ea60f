"""
Backend package for the donation directory.

This package provides a FastAPI application over a pluggable directory store
(in-memory, SQL or Firestore), the organization/category/favorite API, the
server-rendered directory pages, and geocoding helpers.
"""
