"""
Study configuration.

Scheduling constants, queue budget, gamification tuning and session behavior.
Defaults reproduce the vocabulary trainer's published behavior.
"""

from dataclasses import dataclass


@dataclass
class SchedulerConfig:
    """SM-2 style scheduling parameters."""

    initial_ease: float = 2.5
    min_ease: float = 1.3
    max_ease: float = 3.0
    max_interval: int = 365  # days
    first_success_interval: int = 3  # extended from SM-2's 1 day
    second_success_interval: int = 7  # extended from SM-2's 6 days
    fail_reset_interval: int = 1


@dataclass
class QueueConfig:
    """Study queue composition."""

    default_limit: int = 20
    min_new: int = 5  # new-item slots reserved out of the limit


@dataclass
class GamificationConfig:
    """XP, level curve and daily goal."""

    xp_per_correct: int = 10
    base_xp_per_level: int = 100
    level_multiplier: float = 1.2  # each level costs 20% more XP
    daily_goal: int = 50  # XP
    completion_bonus_xp: int = 0  # awarded when a session queue is finished


@dataclass
class SessionConfig:
    """Study session behavior."""

    default_limit: int = 10  # smaller batches keep sessions short
    auto_advance_on_correct: bool = False
    restore_window_minutes: int = 60
