"""Infrastructure layer — database engine, schema, and entity store.

This layer depends on stdlib, pydantic domain models, and SQLAlchemy.
It must never import from services, commands, or output.
"""
