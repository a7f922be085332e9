# app/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Default admin creation on startup
- db: Database configuration and connection management
- exceptions: Error taxonomy mapped to HTTP responses
- security: Password hashing and session/reset token signing
"""
