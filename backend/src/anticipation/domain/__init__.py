"""
Domain package - Core business logic with no external dependencies.

This package contains the anticipation request aggregate, its error
types and the persistence contract the application layer relies on.
"""
