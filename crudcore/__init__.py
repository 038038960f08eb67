"""
crudcore: transactional CRUD scaffolding for FastAPI services on async SQLAlchemy.
"""

__version__ = "0.1.0"
