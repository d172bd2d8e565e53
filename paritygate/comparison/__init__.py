# Comparison package for paritygate
"""
Source-versus-migrated comparators.

Each comparator is a pure function over two documents and produces a
score plus a human-readable account of every difference. No comparator
touches the file system.
"""
