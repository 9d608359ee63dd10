"""
Anticipation service.

Creators request early payment of a gross amount; a fee is retained and
the request is approved or rejected by an operator.
"""

__version__ = "0.1.0"
