"""Domain layer for autoledger: entities, errors and services.

Services are imported from their modules directly; this package keeps no
eager imports so the database layer can depend on the entities.
"""
