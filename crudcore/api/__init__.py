"""
HTTP layer: the generic CRUD controller, its router factory and the FastAPI application.
"""
