"""
Core app - Shared abstractions and utilities.

This app provides platform-agnostic interfaces for:
- Background unit execution (TaskService)
- Field-level validation errors shared by every API router
- Pagination envelope used by list endpoints

The task abstraction allows switching between:
- Local development and tests (in-process execution)
- Celery + Redis (production)
"""
