"""Fitcoach wearable progress service."""
