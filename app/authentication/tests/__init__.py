"""
Tests for authentication app.

- test_managers.py: UserManager creation and directory lookups

Usage:
    pytest authentication/tests/
"""
