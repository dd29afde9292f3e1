"""
Test Suite
==========

Test suite mirroring the inkrecipes package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: API contract tests against the FastAPI application
"""
