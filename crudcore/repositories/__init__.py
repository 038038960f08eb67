"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for each entity type. They never
commit: transaction boundaries belong to crudcore.db.unit_of_work.UnitOfWork.
"""
