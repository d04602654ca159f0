"""設定管理モジュール"""

from juicy.config.loader import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    expand_env_vars,
    load_config,
)
from juicy.config.models import (
    AgentConfig,
    Config,
    ContextBudgetConfig,
    DatabaseConfig,
    LLMConfig,
    LoggingConfig,
    MetricsConfig,
    ProviderConfig,
    RateLimitConfig,
    SummarizationConfig,
)

__all__ = [
    "AgentConfig",
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "ContextBudgetConfig",
    "DatabaseConfig",
    "EnvironmentVariableError",
    "LLMConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ProviderConfig",
    "RateLimitConfig",
    "SummarizationConfig",
    "expand_env_vars",
    "load_config",
]
