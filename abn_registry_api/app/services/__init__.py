"""
Service layer.

Each service encapsulates the business rules for one resource and
talks to the stores; ``query_builder`` and ``validation`` hold the
shared, store-independent logic.
"""
