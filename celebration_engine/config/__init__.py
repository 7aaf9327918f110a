"""Configuration module for the celebration engine.

Available Configurations:
- ComplianceLimitsConfig: FEC contribution limits and annual reset timezone
- EngineConfig: Retry bounds, lookup timeouts and external sources
"""

from celebration_engine.config.engine_config import (
    DEFAULT_ENGINE_CONFIG,
    DEFAULT_LIMITS_CONFIG,
    ComplianceLimitsConfig,
    EngineConfig,
)

__all__ = [
    "ComplianceLimitsConfig",
    "EngineConfig",
    "DEFAULT_ENGINE_CONFIG",
    "DEFAULT_LIMITS_CONFIG",
]
