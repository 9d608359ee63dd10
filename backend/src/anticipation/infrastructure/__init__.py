"""
Infrastructure package - Storage implementations of the request store contract.
"""
