"""
Top-level package for the ABN Registry API.

All functionality lives in the ``app`` subpackage, e.g.
``abn_registry_api.app.main``.
"""

__all__ = []
