"""Tests for the chat model handler."""

from nbchat.core.agent_manager import AgentManagerFactory
from nbchat.core.chat_model import ChatModel
from nbchat.core.handler import ChatModelHandler
from nbchat.core.token_usage import TokenUsage
from nbchat.models.chat import USER, ActiveCellRef


class RecordingFactory(AgentManagerFactory):
    """Factory that records the managers it creates."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.created = []

    def create_agent(self, active_provider=None, token_usage=None):
        manager = super().create_agent(active_provider=active_provider, token_usage=token_usage)
        self.created.append(manager)
        return manager


class TestChatModelHandler:
    """Tests for ChatModelHandler.create_model."""

    def test_creates_named_model(self, settings_model, provider_registry):
        """Test the model gets the name, user and provider it was asked for."""
        factory = AgentManagerFactory(settings_model, provider_registry)
        handler = ChatModelHandler(factory, settings_model)

        model = handler.create_model("My chat", "local-test")

        assert isinstance(model, ChatModel)
        assert model.name == "My chat"
        assert model.user == USER
        assert model.agent_manager.active_provider == "local-test"

    def test_model_owns_its_agent_manager(self, settings_model, provider_registry):
        """Test each chat model gets its own freshly created agent manager."""
        factory = RecordingFactory(settings_model, provider_registry)
        handler = ChatModelHandler(factory, settings_model)

        first = handler.create_model("a", "local-test")
        second = handler.create_model("b", "local-test")

        assert factory.created == [first.agent_manager, second.agent_manager]
        assert first.agent_manager is not second.agent_manager

    def test_token_usage_handed_over(self, settings_model, provider_registry):
        """Test an existing usage record is continued."""
        factory = AgentManagerFactory(settings_model, provider_registry)
        handler = ChatModelHandler(factory, settings_model)
        usage = TokenUsage(input_tokens=10, output_tokens=5)

        model = handler.create_model("chat", None, token_usage=usage)

        assert model.agent_manager.token_usage is usage

    def test_active_cell_passed_to_new_models(self, settings_model, provider_registry):
        """Test the current active cell relation is given to chats created later."""
        cells = {"cell-1": "print('hi')"}
        factory = AgentManagerFactory(settings_model, provider_registry)
        handler = ChatModelHandler(factory, settings_model)
        handler.active_cell = ActiveCellRef("cell-1", cells.get)

        model = handler.create_model("chat", None)

        assert model.active_cell.resolve() == "print('hi')"
        del cells["cell-1"]
        assert model.active_cell.resolve() is None

    def test_document_manager_and_translator(self, settings_model, provider_registry):
        """Test host collaborators reach the chat model."""
        document_manager = object()
        handler = ChatModelHandler(
            AgentManagerFactory(settings_model, provider_registry),
            settings_model,
            document_manager=document_manager,
            trans=str.upper,
        )

        model = handler.create_model("chat", None)

        assert model.document_manager is document_manager
        assert model.trans("hi") == "HI"
