# arena/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Startup tasks (expired battle sweep)
- clock: Single source of "now" for the whole backend
- db: Database configuration and connection management
- security: Authentication tokens and password hashing
"""
