"""
Backend package for the continuity analysis API.

This package provides a FastAPI application that scores how well an
organization's documented procedures are covered by verified people, with
database, queue and email abstractions that fall back to in-memory
implementations for local runs and tests.
"""
