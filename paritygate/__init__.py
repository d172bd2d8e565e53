# paritygate: Migration Acceptance Gate
# Comparators, proof verification and prerequisite gating

"""
Core invariant: No migrated artifact is accepted without a measured match
against its source counterpart and on-disk evidence backing every claim.

This package implements the comparators that measure, and the gate that
decides whether a migration workflow may proceed.
"""

__version__ = "0.1.0"
