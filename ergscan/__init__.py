"""Parse rowing-ergometer monitor photos into structured workouts."""

__version__ = "0.1.0"
