"""Tests for create_model."""

from unittest.mock import MagicMock, patch

from juicy.config import ProviderConfig
from juicy.infrastructure.llm.strands import create_model


class TestCreateModel:
    """Tests for create_model."""

    def test_uses_provider_settings(self) -> None:
        config = ProviderConfig(
            fast_model="anthropic/claude-haiku",
            strong_model="anthropic/claude-sonnet",
            api_key="sk-test",
            api_base="http://localhost:8000/v1",
            max_tokens=1024,
            temperature=0.5,
        )
        with patch(
            "juicy.infrastructure.llm.strands.factory.LiteLLMModel"
        ) as mock_model_class:
            mock_model = MagicMock()
            mock_model_class.return_value = mock_model

            result = create_model(config)

            assert result is mock_model
            mock_model_class.assert_called_once_with(
                model_id="anthropic/claude-haiku",
                params={"max_tokens": 1024, "temperature": 0.5},
                client_args={"api_key": "sk-test", "api_base": "http://localhost:8000/v1"},
            )

    def test_overrides(self) -> None:
        """Explicit model and sampling settings win over the provider's."""
        config = ProviderConfig(fast_model="fast", strong_model="strong")
        with patch(
            "juicy.infrastructure.llm.strands.factory.LiteLLMModel"
        ) as mock_model_class:
            create_model(config, "strong", max_tokens=2000, temperature=0.0)

            mock_model_class.assert_called_once_with(
                model_id="strong",
                params={"max_tokens": 2000, "temperature": 0.0},
                client_args=None,
            )
