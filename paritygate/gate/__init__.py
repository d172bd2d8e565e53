# Gate package for paritygate
"""
Prerequisite gating.

Decides, after every artifact write, whether the migration workflow may
proceed. The gate holds no state between calls: everything it knows is
read fresh from the workspace.
"""
