"""設定ローダーのテスト"""

import os
from pathlib import Path
from typing import Generator

import pytest
import yaml

from juicy.config import (
    AgentConfig,
    Config,
    ConfigValidationError,
    ContextBudgetConfig,
    EnvironmentVariableError,
    LLMConfig,
    ProviderConfig,
    RateLimitConfig,
    SummarizationConfig,
    expand_env_vars,
    load_config,
)

MINIMAL_CONFIG = """
database:
  path: "./data/juicy.db"

llm:
  active: anthropic
  providers:
    anthropic:
      fast_model: "anthropic/claude-haiku"
      strong_model: "anthropic/claude-sonnet"
      api_key: ${TEST_API_KEY}
"""


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """一時的な設定ディレクトリを作成"""
    return tmp_path


@pytest.fixture
def env_vars() -> Generator[dict[str, str], None, None]:
    """テスト用環境変数を設定・クリーンアップ"""
    test_vars = {
        "TEST_API_KEY": "sk-test-key",
        "TEST_VAR_A": "valueA",
        "TEST_VAR_B": "valueB",
    }
    for key, value in test_vars.items():
        os.environ[key] = value
    yield test_vars
    for key in test_vars:
        os.environ.pop(key, None)


def write_config(directory: Path, content: str) -> Path:
    config_path = directory / "config.yaml"
    config_path.write_text(content)
    return config_path


class TestExpandEnvVars:
    """expand_env_vars関数のテスト"""

    def test_single_variable(self, env_vars: dict[str, str]) -> None:
        """単一の変数を展開できる"""
        assert expand_env_vars("${TEST_API_KEY}") == "sk-test-key"

    def test_multiple_variables(self, env_vars: dict[str, str]) -> None:
        """複数の変数を展開できる"""
        assert expand_env_vars("${TEST_VAR_A}_${TEST_VAR_B}") == "valueA_valueB"

    def test_no_variables(self) -> None:
        """変数がない場合はそのまま返す"""
        assert expand_env_vars("plain text") == "plain text"

    def test_undefined_variable(self) -> None:
        """未設定の変数でEnvironmentVariableErrorが発生"""
        with pytest.raises(EnvironmentVariableError) as exc_info:
            expand_env_vars("${UNDEFINED_VAR_12345}")
        assert "UNDEFINED_VAR_12345" in str(exc_info.value)


class TestLoadConfig:
    """load_config関数のテスト"""

    def test_load_minimal_config(
        self, temp_config_dir: Path, env_vars: dict[str, str]
    ) -> None:
        """必須項目のみの設定ファイルを読み込める"""
        config = load_config(write_config(temp_config_dir, MINIMAL_CONFIG))

        assert isinstance(config, Config)
        assert config.database.path == "./data/juicy.db"
        assert config.llm.active == "anthropic"
        provider = config.llm.active_provider
        assert provider.fast_model == "anthropic/claude-haiku"
        assert provider.strong_model == "anthropic/claude-sonnet"
        assert provider.api_key == "sk-test-key"

    def test_optional_sections_use_defaults(
        self, temp_config_dir: Path, env_vars: dict[str, str]
    ) -> None:
        """省略したセクションにはデフォルト値が入る"""
        config = load_config(write_config(temp_config_dir, MINIMAL_CONFIG))

        assert config.agent == AgentConfig()
        assert config.context == ContextBudgetConfig()
        assert config.summarization == SummarizationConfig()
        assert config.rate_limit == RateLimitConfig()
        assert config.context.total_budget == 50000
        assert config.summarization.trigger_threshold == 30
        assert config.summarization.keep_recent_count == 10
        assert config.rate_limit.max_requests == 100
        assert config.rate_limit.window_seconds == 3600
        assert config.logging is None

    def test_custom_sections(
        self, temp_config_dir: Path, env_vars: dict[str, str]
    ) -> None:
        """各セクションの値を上書きできる"""
        content = (
            MINIMAL_CONFIG
            + """
agent:
  max_iterations: 3
  use_sub_modules: false

context:
  total_budget: 20000
  safety_margin: 0.5

summarization:
  trigger_threshold: 12
  model: "anthropic/claude-haiku"

rate_limit:
  enabled: false

logging:
  level: DEBUG
  loggers:
    litellm: WARNING
  debug_llm_messages: true
"""
        )
        config = load_config(write_config(temp_config_dir, content))

        assert config.agent.max_iterations == 3
        assert config.agent.use_sub_modules is False
        assert config.context.total_budget == 20000
        assert config.context.safety_margin == 0.5
        assert config.context.entity_state == 2000
        assert config.summarization.trigger_threshold == 12
        assert config.summarization.model == "anthropic/claude-haiku"
        assert config.rate_limit.enabled is False
        assert config.logging is not None
        assert config.logging.level == "DEBUG"
        assert config.logging.loggers == {"litellm": "WARNING"}
        assert config.logging.debug_llm_messages is True

    def test_multiple_providers(
        self, temp_config_dir: Path, env_vars: dict[str, str]
    ) -> None:
        """複数のプロバイダーを定義し、active の1つだけを使う"""
        content = """
database:
  path: ":memory:"

llm:
  active: local
  providers:
    anthropic:
      fast_model: "anthropic/claude-haiku"
      strong_model: "anthropic/claude-sonnet"
    local:
      fast_model: "openai/llama-8b"
      strong_model: "openai/llama-70b"
      api_base: "http://localhost:8000/v1"
      temperature: 0.2
"""
        config = load_config(write_config(temp_config_dir, content))

        assert set(config.llm.providers) == {"anthropic", "local"}
        provider = config.llm.active_provider
        assert provider.api_base == "http://localhost:8000/v1"
        assert provider.temperature == 0.2
        assert provider.max_tokens == 4096

    def test_file_not_found(self) -> None:
        """存在しないファイルでFileNotFoundErrorが発生"""
        with pytest.raises(FileNotFoundError):
            load_config(Path("/nonexistent/config.yaml"))

    def test_undefined_env_var(self, temp_config_dir: Path) -> None:
        """未設定の環境変数でEnvironmentVariableErrorが発生"""
        with pytest.raises(EnvironmentVariableError):
            load_config(write_config(temp_config_dir, MINIMAL_CONFIG))

    def test_missing_database_section(
        self, temp_config_dir: Path, env_vars: dict[str, str]
    ) -> None:
        """必須セクション（database）欠落でConfigValidationErrorが発生"""
        content = MINIMAL_CONFIG.replace('database:\n  path: "./data/juicy.db"\n', "")
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(write_config(temp_config_dir, content))
        assert "database" in str(exc_info.value)

    def test_missing_provider_model(
        self, temp_config_dir: Path, env_vars: dict[str, str]
    ) -> None:
        """必須フィールド（strong_model）欠落でConfigValidationErrorが発生"""
        content = MINIMAL_CONFIG.replace(
            '      strong_model: "anthropic/claude-sonnet"\n', ""
        )
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(write_config(temp_config_dir, content))
        assert "llm.providers.anthropic.strong_model" in str(exc_info.value)

    def test_unknown_active_provider(
        self, temp_config_dir: Path, env_vars: dict[str, str]
    ) -> None:
        """active が providers にない場合はConfigValidationError"""
        content = MINIMAL_CONFIG.replace("active: anthropic", "active: openai")
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(write_config(temp_config_dir, content))
        assert "openai" in str(exc_info.value)

    def test_invalid_safety_margin(
        self, temp_config_dir: Path, env_vars: dict[str, str]
    ) -> None:
        """safety_margin が範囲外ならConfigValidationError"""
        content = MINIMAL_CONFIG + "\ncontext:\n  safety_margin: 1.5\n"
        with pytest.raises(ConfigValidationError):
            load_config(write_config(temp_config_dir, content))

    def test_yaml_syntax_error(self, temp_config_dir: Path) -> None:
        """YAML構文エラーでyaml.YAMLErrorが発生"""
        config_path = write_config(temp_config_dir, "database: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_config(config_path)

    def test_string_path(self, temp_config_dir: Path, env_vars: dict[str, str]) -> None:
        """文字列パスでも読み込める"""
        config_path = write_config(temp_config_dir, MINIMAL_CONFIG)
        config = load_config(str(config_path))
        assert config.database.path == "./data/juicy.db"


class TestDataClasses:
    """データクラスのテスト"""

    def test_provider_config_defaults(self) -> None:
        """ProviderConfig のデフォルト値"""
        config = ProviderConfig(fast_model="fast", strong_model="strong")
        assert config.api_key is None
        assert config.api_base is None
        assert config.max_tokens == 4096
        assert config.temperature == 0.7

    def test_active_provider(self) -> None:
        """LLMConfig.active_provider は active のプロバイダーを返す"""
        a = ProviderConfig(fast_model="a-fast", strong_model="a-strong")
        b = ProviderConfig(fast_model="b-fast", strong_model="b-strong")
        config = LLMConfig(active="b", providers={"a": a, "b": b})
        assert config.active_provider is b

    def test_context_budget_defaults(self) -> None:
        """ContextBudgetConfig のデフォルト値"""
        config = ContextBudgetConfig()
        assert config.total_budget == 50000
        assert config.entity_state == 2000
        assert config.user_context == 1000
        assert config.participant_context == 500
        assert config.attachment_summaries == 3000
        assert config.summaries == 10000
        assert config.safety_margin == 0.8
