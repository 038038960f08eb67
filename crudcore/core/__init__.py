"""
Core application utilities shared by the API, services and database layers.

This package provides:
- Application-level settings (separate from DB settings)
- Logging configuration with request correlation ids
- Error taxonomy, localized messages and the entity <-> view mapper
- FastAPI dependency helpers (request-scoped session and unit of work)
"""
