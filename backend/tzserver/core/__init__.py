"""Core Layer — timezone cache domain logic, no network, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - External collaborators reached only through core/boundary_protocols.py
"""
