"""
Test suite for mmsim

Contains:
- tests/unit/          : Unit tests for individual modules
"""
