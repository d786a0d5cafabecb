"""
Library Catalog API Package

Catalog management for books and authors, plus the borrowing workflow
that tracks a loan from BORROWED through OVERDUE to RETURNED and keeps
each book's availability flag in step with its open loans.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy database connection and session management
- exceptions.py: Domain error taxonomy (not found, bad request, conflict)
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (catalog stores, borrowing lifecycle, overdue sweep)
- utils/: Helper functions (clock, pagination math)
"""

__version__ = "0.1.0"
