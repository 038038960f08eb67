"""
Public Pydantic schemas used by FastAPI routes, services, and tests.

Includes the base view model every CRUD resource extends, the standard error
envelope, and the view models of the bundled resources.
"""

from .common import BaseViewModel, MessageResponse  # noqa: F401
