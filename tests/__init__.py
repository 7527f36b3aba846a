"""Test suite for GlobalMe.

Test Structure:
- unit/: Unit tests for individual components
- fixtures/: Test doubles and factories
- conftest.py: Shared fixtures
"""
