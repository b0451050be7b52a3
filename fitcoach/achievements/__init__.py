"""Health badges earned from wearable data.

Modules:
    config_loader — Load/validate achievements_config.yaml
    store         — Badge, XP and health-history data access
    checker       — Evaluate and award health badges for a client
"""
