"""Infrastructure Layer — database pool and logging setup.

Invariants:
    - Nothing here knows about voting rules
"""
