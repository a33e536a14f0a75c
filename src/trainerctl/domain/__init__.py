"""Domain layer — entities, rules, and state machines.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
