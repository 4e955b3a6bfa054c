"""RecallForge - Spaced-repetition scheduling core for vocabulary study.

This package decides when each learnable item should be reviewed next,
assembles study queues and tracks streaks, XP and levels.
"""

__version__ = "0.3.0"
__all__ = ["__version__"]
