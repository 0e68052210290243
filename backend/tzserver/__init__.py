"""tzserver — cached timezone definitions served over a query API.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
