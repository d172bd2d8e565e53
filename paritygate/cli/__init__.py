# CLI package for paritygate
"""
Command-line interfaces for paritygate.

Commands:
    paritygate            Gate evaluation, phase, dashboard and rollup
    paritygate-structure  Structural comparator
    paritygate-styles     Style comparator
    paritygate-behavior   Behavior comparator
"""
