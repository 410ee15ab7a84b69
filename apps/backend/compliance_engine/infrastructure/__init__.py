"""
Infrastructure layer: PostgreSQL / in-memory repositories, DB pool, RQ queue.
"""
