"""
Core Business Logic
==================

Core modules for selecting, distributing and capturing price tags.

Modules:
- store: Product collection loading, filtering and persistence
- partition: Worker sizing and round-robin work distribution
- rendering: HTML generation and browser capture
- workers: Capture worker processes and message relay
- orchestrator: End-to-end batch run
"""
