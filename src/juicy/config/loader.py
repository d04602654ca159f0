"""YAML設定ファイルの読み込みと環境変数展開"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

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


class ConfigError(Exception):
    """設定関連の基底例外"""


class ConfigValidationError(ConfigError):
    """設定値のバリデーションエラー"""


class EnvironmentVariableError(ConfigError):
    """環境変数が見つからないエラー"""


# 環境変数パターン: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """文字列中の ${VAR_NAME} を環境変数の値に置換する

    Args:
        value: 置換対象の文字列

    Returns:
        環境変数が展開された文字列

    Raises:
        EnvironmentVariableError: 環境変数が未設定
    """
    if not value:
        return value

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise EnvironmentVariableError(
                f"Environment variable '{var_name}' is not set"
            )
        return env_value

    return ENV_VAR_PATTERN.sub(replace_var, value)


def _expand_recursive(data: Any) -> Any:
    """データ構造を再帰的に走査し、文字列中の環境変数を展開する

    Args:
        data: 展開対象のデータ（dict, list, str, その他）

    Returns:
        環境変数が展開されたデータ
    """
    if isinstance(data, dict):
        return {key: _expand_recursive(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _validate_required_field(data: dict[str, Any], field: str, parent: str = "") -> Any:
    """必須フィールドの存在を検証する

    Args:
        data: 検証対象のdict
        field: フィールド名
        parent: 親フィールド名（エラーメッセージ用）

    Returns:
        フィールドの値

    Raises:
        ConfigValidationError: フィールドが存在しない
    """
    if field not in data or data[field] is None:
        full_path = f"{parent}.{field}" if parent else field
        raise ConfigValidationError(f"Required field '{full_path}' is missing")
    return data[field]


def _load_llm(llm_data: dict[str, Any]) -> LLMConfig:
    """LLM セクションを読み込む

    Raises:
        ConfigValidationError: active が providers に存在しない
    """
    active = _validate_required_field(llm_data, "active", "llm")
    providers_data = _validate_required_field(llm_data, "providers", "llm")

    providers: dict[str, ProviderConfig] = {}
    for name, item in providers_data.items():
        parent = f"llm.providers.{name}"
        providers[name] = ProviderConfig(
            fast_model=_validate_required_field(item, "fast_model", parent),
            strong_model=_validate_required_field(item, "strong_model", parent),
            api_key=item.get("api_key"),
            api_base=item.get("api_base"),
            max_tokens=item.get("max_tokens", 4096),
            temperature=item.get("temperature", 0.7),
        )

    if active not in providers:
        raise ConfigValidationError(
            f"llm.active '{active}' does not match any configured provider"
        )
    return LLMConfig(active=active, providers=providers)


def load_config(path: str | Path) -> Config:
    """設定ファイルを読み込む

    Args:
        path: config.yaml のパス

    Returns:
        Config オブジェクト

    Raises:
        FileNotFoundError: ファイルが存在しない
        ConfigValidationError: 必須項目が欠落
        EnvironmentVariableError: 環境変数が未設定
        yaml.YAMLError: YAML構文エラー
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f)

    # 環境変数を展開
    data = _expand_recursive(raw_data or {})

    # 必須セクションの検証
    database_data = _validate_required_field(data, "database")
    llm_data = _validate_required_field(data, "llm")

    database = DatabaseConfig(
        path=_validate_required_field(database_data, "path", "database"),
    )
    llm = _load_llm(llm_data)

    # AgentConfig (optional)
    agent_data = data.get("agent") or {}
    agent = AgentConfig(
        max_iterations=agent_data.get("max_iterations", 10),
        max_tokens=agent_data.get("max_tokens", 4096),
        temperature=agent_data.get("temperature"),
        use_sub_modules=agent_data.get("use_sub_modules", True),
    )

    # ContextBudgetConfig (optional)
    context_data = data.get("context") or {}
    context = ContextBudgetConfig(
        total_budget=context_data.get("total_budget", 50000),
        entity_state=context_data.get("entity_state", 2000),
        user_context=context_data.get("user_context", 1000),
        participant_context=context_data.get("participant_context", 500),
        attachment_summaries=context_data.get("attachment_summaries", 3000),
        summaries=context_data.get("summaries", 10000),
        safety_margin=context_data.get("safety_margin", 0.8),
        max_recent_messages=context_data.get("max_recent_messages", 50),
    )
    if not 0 < context.safety_margin <= 1:
        raise ConfigValidationError("context.safety_margin must be in (0, 1]")

    # SummarizationConfig (optional)
    summary_data = data.get("summarization") or {}
    summarization = SummarizationConfig(
        trigger_threshold=summary_data.get("trigger_threshold", 30),
        keep_recent_count=summary_data.get("keep_recent_count", 10),
        max_summary_tokens=summary_data.get("max_summary_tokens", 2000),
        max_message_chars=summary_data.get("max_message_chars", 2000),
        temperature=summary_data.get("temperature", 0.3),
        model=summary_data.get("model"),
    )

    # RateLimitConfig (optional)
    rate_limit_data = data.get("rate_limit") or {}
    rate_limit = RateLimitConfig(
        enabled=rate_limit_data.get("enabled", True),
        max_requests=rate_limit_data.get("max_requests", 100),
        max_tokens=rate_limit_data.get("max_tokens", 500000),
        window_seconds=rate_limit_data.get("window_seconds", 3600),
    )

    metrics_data = data.get("metrics") or {}
    metrics = MetricsConfig(capacity=metrics_data.get("capacity", 10000))

    # LoggingConfig (optional)
    logging_config: LoggingConfig | None = None
    logging_data = data.get("logging")
    if logging_data:
        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get(
                "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
            loggers=logging_data.get("loggers"),
            debug_llm_messages=logging_data.get("debug_llm_messages", False),
        )

    return Config(
        database=database,
        llm=llm,
        agent=agent,
        context=context,
        summarization=summarization,
        rate_limit=rate_limit,
        metrics=metrics,
        logging=logging_config,
    )
