"""
personaut-store Application Package

Directory Structure:
├── domain/          # Entities, legacy record shapes, errors, events, ports
├── storage/         # Blob I/O adapter (local filesystem)
├── filestore/       # Directory-per-entity stores, index and memory cache
├── application/     # Legacy migration, audit handlers, error sanitizing
├── services/        # Persona and feedback use cases
├── routers/         # FastAPI route handlers
├── schemas/         # Pydantic models for API requests/responses
└── config.py        # Application configuration

Storage layout per collection (``personas/``, ``feedback/``):
    index.json          listing metadata and favorite ids
    {id}/entity.json    the entity document
    .migration_v2       present once legacy data has been imported

The index is the only source of truth for favorites; entity documents never
carry a favorite flag.
"""
