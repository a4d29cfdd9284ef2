"""Shared fixtures: a "local" provider backed by pydantic-ai test models."""

from collections.abc import Callable

import pytest
from pydantic_ai.models import Model
from pydantic_ai.models.test import TestModel

from nbchat.config import ProviderConfig, Settings
from nbchat.core.providers import ProviderInfo, ProviderRegistry
from nbchat.core.settings_model import SettingsModel

LOCAL_PROVIDER = ProviderInfo(id="local", name="Local", default_model="test")

ASSISTANT_TEXT = "Hello from the assistant"


@pytest.fixture
def model() -> Model:
    """Model answering every turn with a fixed text."""
    return TestModel(custom_output_text=ASSISTANT_TEXT)


@pytest.fixture
def make_registry() -> Callable[[Model], ProviderRegistry]:
    """Factory for a registry whose "local" provider always returns `model`."""

    def _make(model: Model, info: ProviderInfo = LOCAL_PROVIDER) -> ProviderRegistry:
        registry = ProviderRegistry()
        registry.register(info, lambda config: model)
        return registry

    return _make


@pytest.fixture
def provider_registry(make_registry, model) -> ProviderRegistry:
    return make_registry(model)


@pytest.fixture
def settings() -> Settings:
    return Settings(providers=[ProviderConfig(id="local-test", provider="local", model="test")])


@pytest.fixture
def settings_model(settings) -> SettingsModel:
    return SettingsModel(settings)


@pytest.fixture
def assistant_text() -> str:
    return ASSISTANT_TEXT
