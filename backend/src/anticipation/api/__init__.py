"""
API package - FastAPI routers, schemas and dependency wiring.
"""
