"""
Test suite for pharmatrace

Contains:
- tests/unit/          : Unit tests against the in-memory ledger host
"""
