"""Food Share Application Package — surplus-food listing lifecycle and live notifications.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
