"""
Application package initializer.

This package contains the API entrypoint and its layers: ``core``
(configuration, logging, database, errors), ``schemas`` (pydantic
payloads), ``stores`` (SQL over the two tables), ``services``
(validation, query building and business rules) and ``api`` (versioned
FastAPI routers).
"""

from .main import app  # noqa: F401
