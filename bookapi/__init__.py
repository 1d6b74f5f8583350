"""
Book Inventory API Package

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine, session factory and declarative base
- main.py: FastAPI application factory
- dependencies.py: Dependency injection (db session, paging, bearer auth)
- exceptions.py: Domain exception hierarchy
- errors.py: Problem-response exception handlers
- middleware.py: Request logging and security headers
- links.py: Hypermedia link generation
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- crud/: Persistence gateway (repositories)
- services/: Business logic, caching, security, async executor, rate limiting
- routers/: API route handlers
"""

__version__ = "1.0.0"
