"""
Service layer: entity operations consumed by the generic CRUD controller.

Services orchestrate repositories inside the transaction opened by the unit of
work; they flush but never commit.
"""
