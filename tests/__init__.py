"""
Tests package for the storefront storage core.

This package contains test suites organized by type:
- unit/: Isolated tests with mocked collaborators
- contracts/: Behaviour shared by every storage backend
- integration/: Tests against the real filesystem and real timers
- property/: Hypothesis property-based tests
"""
