"""
Test Suite
==========

Unit and integration tests for the price tag renderer.
"""
