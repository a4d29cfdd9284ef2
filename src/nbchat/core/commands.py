"""Slash commands recognized by the chat input."""

from pydantic import BaseModel


class ChatCommand(BaseModel):
    """A slash command offered by the chat input."""

    name: str
    description: str


CLEAR = ChatCommand(name="/clear", description="Clear the chat and start a new conversation")

SLASH_COMMANDS: dict[str, ChatCommand] = {CLEAR.name: CLEAR}


def parse_command(body: str) -> ChatCommand | None:
    """Return the command if the whole message is a known slash command."""
    return SLASH_COMMANDS.get(body.strip().lower())


def complete_commands(prefix: str) -> list[ChatCommand]:
    """Commands whose name starts with `prefix` (e.g. "/cl" -> "/clear")."""
    prefix = prefix.strip().lower()
    if not prefix.startswith("/"):
        return []
    return [command for name, command in SLASH_COMMANDS.items() if name.startswith(prefix)]
