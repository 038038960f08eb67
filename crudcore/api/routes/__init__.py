"""
API route modules.

This package contains:
- crud: router factory turning a CrudController into list/get/update/create/delete routes
- roles: the roles resource built with that factory

Routers are included from crudcore.api.main (under the /api/v1 prefix).
"""
