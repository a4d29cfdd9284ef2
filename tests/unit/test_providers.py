"""Tests for the provider registry."""

import pytest
from pydantic_ai.exceptions import UserError
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.openai import OpenAIChatModel, OpenAIResponsesModel
from pydantic_ai.models.test import TestModel

from nbchat.config import ProviderConfig
from nbchat.core.providers import (
    ANTHROPIC,
    OPENAI,
    OPENAI_COMPATIBLE,
    ProviderInfo,
    ProviderRegistry,
    create_default_registry,
)
from nbchat.utils.errors import NotConfiguredError


class TestProviderRegistry:
    """Tests for ProviderRegistry lookups."""

    def test_register_and_get(self):
        """Test a registered provider can be looked up by id."""
        registry = ProviderRegistry()
        info = ProviderInfo(id="local", name="Local", default_model="test")
        registry.register(info, lambda config: TestModel())

        assert registry.get("local") == info
        assert "local" in registry
        assert registry.list() == [info]

    def test_unknown_provider(self):
        """Test an unknown id returns None."""
        registry = ProviderRegistry()
        assert registry.get("missing") is None
        assert "missing" not in registry

    def test_reregister_replaces(self):
        """Test registering the same id again replaces the record."""
        registry = ProviderRegistry()
        registry.register(ProviderInfo(id="p", name="Old", default_model="a"), lambda c: TestModel())
        registry.register(ProviderInfo(id="p", name="New", default_model="b"), lambda c: TestModel())

        assert registry.get("p").name == "New"
        assert len(registry.list()) == 1

    def test_create_model_uses_factory(self):
        """Test the factory receives the provider entry."""
        registry = ProviderRegistry()
        seen = []
        model = TestModel()

        def factory(config):
            seen.append(config)
            return model

        registry.register(ProviderInfo(id="local", name="Local", default_model="t"), factory)
        config = ProviderConfig(id="mine", provider="local")

        assert registry.create_model(config) is model
        assert seen == [config]

    def test_create_model_unregistered_provider(self):
        """Test an entry naming an unknown provider is not configured."""
        registry = ProviderRegistry()
        with pytest.raises(NotConfiguredError):
            registry.create_model(ProviderConfig(id="x", provider="nope"))

    def test_user_error_becomes_not_configured(self):
        """Test pydantic-ai setup errors surface as configuration errors."""
        registry = ProviderRegistry()

        def factory(config):
            raise UserError("Set the `OPENAI_API_KEY` environment variable")

        registry.register(ProviderInfo(id="local", name="Local", default_model="t"), factory)
        with pytest.raises(NotConfiguredError, match="misconfigured"):
            registry.create_model(ProviderConfig(id="x", provider="local"))


class TestDefaultRegistry:
    """Tests for the built-in providers."""

    @pytest.fixture
    def registry(self):
        return create_default_registry()

    def test_builtin_providers(self, registry):
        """Test OpenAI, Anthropic and OpenAI-compatible are registered."""
        assert [info.id for info in registry.list()] == [
            OPENAI.id,
            ANTHROPIC.id,
            OPENAI_COMPATIBLE.id,
        ]

    def test_capabilities(self):
        """Test the declared built-in tool capabilities."""
        assert OPENAI.tool_capabilities.web_search.implementation == "openai"
        assert OPENAI.tool_capabilities.web_fetch is None
        assert ANTHROPIC.tool_capabilities.web_search.implementation == "anthropic"
        assert ANTHROPIC.tool_capabilities.web_fetch.implementation == "anthropic"
        assert OPENAI_COMPATIBLE.tool_capabilities is None

    def test_openai_model(self, registry):
        """Test an OpenAI entry builds a Responses API model."""
        model = registry.create_model(
            ProviderConfig(id="gpt", provider="openai", model="gpt-4o-mini", api_key="sk-test")
        )
        assert isinstance(model, OpenAIResponsesModel)
        assert model.model_name == "gpt-4o-mini"

    def test_anthropic_model_default_name(self, registry):
        """Test the provider default model is used when none is set."""
        model = registry.create_model(
            ProviderConfig(id="claude", provider="anthropic", api_key="sk-ant-test")
        )
        assert isinstance(model, AnthropicModel)
        assert model.model_name == ANTHROPIC.default_model

    def test_missing_api_key(self, registry, monkeypatch):
        """Test a missing key is a configuration error."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(NotConfiguredError, match="API key"):
            registry.create_model(ProviderConfig(id="gpt", provider="openai"))

    def test_api_key_from_environment(self, registry, monkeypatch):
        """Test the provider SDK environment variable is accepted."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-env")
        model = registry.create_model(ProviderConfig(id="claude", provider="anthropic"))
        assert isinstance(model, AnthropicModel)

    def test_openai_compatible_needs_base_url(self, registry):
        """Test a compatible server entry must name its URL."""
        with pytest.raises(NotConfiguredError, match="base_url"):
            registry.create_model(ProviderConfig(id="ollama", provider="openai-compatible"))

    def test_openai_compatible_model(self, registry):
        """Test a compatible server uses the Chat Completions model."""
        model = registry.create_model(
            ProviderConfig(
                id="ollama",
                provider="openai-compatible",
                model="llama3.2",
                base_url="http://localhost:11434/v1",
            )
        )
        assert isinstance(model, OpenAIChatModel)
        assert model.model_name == "llama3.2"
