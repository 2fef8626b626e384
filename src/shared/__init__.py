"""User Registry Shared Package.

This package contains building blocks shared by the service:
- models: Pydantic envelope and event models
- database: SQLAlchemy base and ORM models
- redis_client: Redis client wrapper (cache and pub/sub)
- events: Domain event publisher
- config: Configuration management
- errors: Error taxonomy
- observability: Structured logging, tracing, redaction and error reporting
"""

__version__ = "1.0.0"
