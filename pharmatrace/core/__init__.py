"""
Core domain models, record contracts, and the error taxonomy.

This module contains the building blocks that are independent of the
ledger host: entities, status lattice, codec, JSON Schema contracts.
"""
