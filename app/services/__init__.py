"""Services Layer — listing store, lifecycle service, connection registry and event bus.

Invariants:
    - ListingStore is the only writer of listing rows
    - Services receive collaborators through their constructors (wired in main.py)
"""
