"""
Services package - Application workflows on top of the domain.
"""

from .anticipation import AnticipationOrchestrator, RequestView

__all__ = ["AnticipationOrchestrator", "RequestView"]
