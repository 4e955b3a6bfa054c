"""
Main configuration class for RecallForge.

This module provides the Config dataclass that aggregates all sub-configs and
handles validation, path management and dict conversion.

Configuration Hierarchy
-----------------------
    Config
    ├── SchedulerConfig     # Ease bounds, interval ladder, caps
    ├── QueueConfig         # Queue limit, reserved new slots
    ├── GamificationConfig  # XP per answer, level curve, daily goal
    ├── SessionConfig       # Batch size, advance policy, restore window
    ├── StorageConfig       # Backend, data directory, keys
    ├── timezone            # Day policy: "local", "UTC" or an IANA name
    └── log_level

Key Design Decisions
--------------------
1. **Dataclasses over dicts**: Type safety and IDE autocompletion.
2. **Defaults for everything**: Zero-config operation is possible.
3. **Validation in __post_init__**: Catch config errors at load time.
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from recallforge.core.clock import resolve_timezone
from recallforge.core.config.storage import StorageConfig
from recallforge.core.config.study import (
    GamificationConfig,
    QueueConfig,
    SchedulerConfig,
    SessionConfig,
)
from recallforge.core.exceptions import ConfigurationError

VALID_BACKENDS = frozenset(["json", "memory"])
VALID_LOG_LEVELS = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


@dataclass
class Config:
    """Main RecallForge configuration."""

    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    queue: QueueConfig = field(default_factory=QueueConfig)
    gamification: GamificationConfig = field(default_factory=GamificationConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    timezone: str = "local"
    log_level: str = "INFO"

    # Runtime paths (set after loading)
    _base_path: Path = field(default_factory=Path.cwd, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """Check cross-field constraints.

        Raises:
            ConfigurationError: On the first violated constraint
        """
        sched = self.scheduler
        if not 1.0 <= sched.min_ease <= sched.initial_ease <= sched.max_ease:
            raise ConfigurationError(
                "scheduler ease bounds must satisfy "
                "1.0 <= min_ease <= initial_ease <= max_ease"
            )
        if sched.max_interval < 1:
            raise ConfigurationError("scheduler.max_interval must be at least 1 day")
        if not (
            0 < sched.fail_reset_interval
            and 0 < sched.first_success_interval <= sched.second_success_interval
        ):
            raise ConfigurationError(
                "scheduler intervals must be positive and "
                "first_success_interval <= second_success_interval"
            )

        if self.queue.default_limit < 0 or self.queue.min_new < 0:
            raise ConfigurationError("queue.default_limit and queue.min_new must be >= 0")
        if self.session.default_limit < 0:
            raise ConfigurationError("session.default_limit must be >= 0")
        if self.session.restore_window_minutes < 0:
            raise ConfigurationError("session.restore_window_minutes must be >= 0")

        game = self.gamification
        if game.base_xp_per_level < 1 or game.level_multiplier < 1.0:
            raise ConfigurationError(
                "gamification.base_xp_per_level must be >= 1 and "
                "level_multiplier must be >= 1.0"
            )
        if game.xp_per_correct < 0 or game.completion_bonus_xp < 0:
            raise ConfigurationError("gamification XP awards must be >= 0")
        if game.daily_goal < 0:
            raise ConfigurationError("gamification.daily_goal must be >= 0")

        if self.storage.backend not in VALID_BACKENDS:
            raise ConfigurationError(
                f"storage.backend must be one of {sorted(VALID_BACKENDS)}, "
                f"got: {self.storage.backend}"
            )
        if self.storage.data_dir in ("/", "\\", ""):
            raise ConfigurationError(
                f"storage.data_dir must not be root or empty: {self.storage.data_dir!r}"
            )
        resolve_timezone(self.timezone)
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigurationError(f"log_level must be one of {sorted(VALID_LOG_LEVELS)}")

    @property
    def data_path(self) -> Path:
        """Get absolute path to the data directory."""
        data_dir = Path(self.storage.data_dir).expanduser()
        if data_dir.is_absolute():
            return data_dir
        return self._base_path / data_dir

    @property
    def log_path(self) -> Path:
        """Get path to the log file."""
        return self.data_path / "logs" / "recallforge.log"

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        result: dict[str, Any] = {}
        for key, value in asdict(self).items():
            if key.startswith("_"):
                continue
            result[key] = value
        return result

    @staticmethod
    def _filter_fields(cls_type: Any, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Filter dict to only keys that match dataclass fields, handling None."""
        if not data:
            return {}
        valid_keys = {f.name for f in fields(cls_type)}
        return {k: v for k, v in data.items() if k in valid_keys}

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], base_path: Optional[Path] = None
    ) -> "Config":
        """Create Config from dictionary."""
        # Import here to avoid circular dependency
        from recallforge.core.config_loaders import expand_env_vars

        data = expand_env_vars(data or {})

        config = cls(
            scheduler=SchedulerConfig(
                **cls._filter_fields(SchedulerConfig, data.get("scheduler"))
            ),
            queue=QueueConfig(**cls._filter_fields(QueueConfig, data.get("queue"))),
            gamification=GamificationConfig(
                **cls._filter_fields(GamificationConfig, data.get("gamification"))
            ),
            session=SessionConfig(
                **cls._filter_fields(SessionConfig, data.get("session"))
            ),
            storage=StorageConfig(
                **cls._filter_fields(StorageConfig, data.get("storage"))
            ),
            timezone=str(data.get("timezone", "local")),
            log_level=str(data.get("log_level", "INFO")),
        )

        if base_path:
            config._base_path = base_path

        return config
