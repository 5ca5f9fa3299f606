"""
Test Utilities
==============

Helpers and assertions shared by the unit and integration tests.
"""
