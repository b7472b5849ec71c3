"""
Guardian test suite.

This package contains all tests for Guardian, organized into:
    - unit/: Unit tests with mocked platform clients
    - fakes.py: In-memory Platform used by reporter, CLI and base tests

Test Organization:
    - tests/unit/test_*.py: Unit tests for individual modules
"""
