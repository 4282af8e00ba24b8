"""
habitcore - gamification and habit engine for a health/fitness tracker

Streaks, achievements with prerequisites, user levels, habit nudges and
insights, persisted through an injected key-value store.
"""

__version__ = "0.1.0"
