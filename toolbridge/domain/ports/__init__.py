"""
Domain ports.

Abstract interfaces implemented by infrastructure adapters.
"""
