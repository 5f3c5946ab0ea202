"""
Pydantic schema definitions for API payloads.

Schemas are separated from the stores to decouple the API
representation (camelCase JSON) from persistence (snake_case columns).
"""
