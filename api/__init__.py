"""
Task Planner FastAPI Application.

This package provides the REST API for the task planner.

Main components:
- main: FastAPI application with middleware and error handling
- config: environment-driven configuration
- models: SQLAlchemy ORM model for stored tasks
- store: task persistence on top of the recurrence engine
- schemas: Pydantic models for request/response validation
- routes: API route definitions organized by functionality
- dependencies: database setup and store injection
"""

__version__ = "1.0.0"
