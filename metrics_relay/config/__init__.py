"""Reporter configuration: dataclass, fluent builder and environment loader."""
from .reporter_config import ENV_PREFIX, ReporterBuilder, ReporterConfig, build_reporter, config_from_env

__all__ = ["ENV_PREFIX", "ReporterBuilder", "ReporterConfig", "build_reporter", "config_from_env"]
