"""Services Layer — transactional operations over the voting store.

Invariants:
    - Each service class wraps one AsyncSession and commits once per public operation
    - Domain guards live in core/; services gather inputs, call them, then write

Design Decisions:
    - One file per component for locality; no service imports an API module
"""
