"""
Safe environment variable parsing with validation.

Instead of unsafe direct environment access:

    # no validation
    limit = int(os.environ.get("RECALLFORGE_QUEUE_LIMIT", "20"))

use the bounded getters:

    limit = get_env_int("RECALLFORGE_QUEUE_LIMIT", default=20, min_value=0)
"""

from __future__ import annotations

import os
from typing import Optional

from recallforge.core.logging import get_logger

logger = get_logger(__name__)


def get_env_int(
    name: str,
    default: Optional[int] = None,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> Optional[int]:
    """
    Get integer from environment variable with bounds validation.

    Args:
        name: Environment variable name.
        default: Default value if not set or invalid.
        min_value: Minimum allowed value (clamped if exceeded).
        max_value: Maximum allowed value (clamped if exceeded).

    Returns:
        Validated integer or default.

    Example:
        >>> # With RECALLFORGE_QUEUE_LIMIT=5000
        >>> get_env_int("RECALLFORGE_QUEUE_LIMIT", default=20, max_value=1000)
        1000  # Clamped to max
    """
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default

    try:
        int_value = int(value)
    except ValueError:
        logger.warning(
            f"Invalid integer value for {name}={value}: Returning default {default}"
        )
        return default

    # Clamp to bounds
    if min_value is not None and int_value < min_value:
        return min_value
    if max_value is not None and int_value > max_value:
        return max_value

    return int_value


def get_env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    """Get a stripped string from the environment; blank counts as unset."""
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()
