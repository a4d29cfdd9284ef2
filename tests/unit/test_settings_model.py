"""Tests for the runtime settings model."""

from nbchat.config import (
    ProviderConfig,
    ProviderCustomSettings,
    Settings,
    WebSearchSettings,
)
from nbchat.core.settings_model import SettingsModel


def make_settings_model(*providers: ProviderConfig, default: str | None = None) -> SettingsModel:
    return SettingsModel(Settings(providers=list(providers), default_provider=default))


class TestSettingsModel:
    """Tests for SettingsModel."""

    def test_unconfigured(self):
        """Test nothing is resolvable without providers."""
        model = make_settings_model()
        assert model.providers == []
        assert model.default_provider is None
        assert model.get_provider(None) is None

    def test_default_provider(self):
        """Test the configured default is returned."""
        model = make_settings_model(
            ProviderConfig(id="a", provider="openai"),
            ProviderConfig(id="b", provider="anthropic"),
            default="b",
        )
        assert model.default_provider == "b"
        assert model.get_provider("b").provider == "anthropic"

    def test_default_falls_back_after_removal(self):
        """Test removing the default falls back to the next provider."""
        model = make_settings_model(
            ProviderConfig(id="a", provider="openai"),
            ProviderConfig(id="b", provider="anthropic"),
            default="a",
        )
        assert model.remove_provider("a") is True
        assert model.default_provider == "b"

    def test_remove_last_provider(self):
        """Test removing every provider leaves nothing configured."""
        model = make_settings_model(ProviderConfig(id="a", provider="openai"))
        model.remove_provider("a")
        assert model.default_provider is None
        assert model.get_provider("a") is None

    def test_remove_unknown_provider(self):
        """Test removing an unknown id is reported."""
        assert make_settings_model().remove_provider("nope") is False

    def test_custom_settings(self):
        """Test per-provider custom settings are exposed."""
        custom = ProviderCustomSettings(web_search=WebSearchSettings(enabled=True))
        model = make_settings_model(
            ProviderConfig(id="a", provider="openai", custom_settings=custom)
        )
        assert model.custom_settings("a") == custom
        assert model.custom_settings("missing") is None

    def test_changed_signal(self):
        """Test adding and removing providers notifies listeners."""
        model = make_settings_model()
        changes = []
        model.changed.connect(lambda sender, provider_id: changes.append(provider_id))

        model.add_provider(ProviderConfig(id="a", provider="openai"))
        model.remove_provider("a")
        model.remove_provider("a")

        assert changes == ["a", "a"]
