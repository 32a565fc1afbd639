"""Persistence: ORM models, repository and unit of work."""
