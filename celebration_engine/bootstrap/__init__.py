"""Bootstrap wiring for the celebration engine."""

from celebration_engine.bootstrap.engine import CelebrationEngine, build_engine
from celebration_engine.bootstrap.logging import configure_structlog

__all__ = ["CelebrationEngine", "build_engine", "configure_structlog"]
