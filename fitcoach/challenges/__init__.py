"""Wearable-verified challenge progress.

Modules:
    store      — Participation/sample reads and progress writes
    reconciler — Per-client progress reconciliation
"""
