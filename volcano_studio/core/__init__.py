"""
Core modules for Volcano Studio.

This package contains the lookup layer (rate limiting, cached fetch,
multi-flavor discovery) and the prompt document, compiler and lint engine.
"""
