"""Chat transcript data models."""

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatUser(BaseModel):
    """A participant of a chat."""

    model_config = ConfigDict(frozen=True)

    username: str
    display_name: str


USER = ChatUser(username="user", display_name="User")
AI_ASSISTANT = ChatUser(username="ai-assistant", display_name="Jupyternaut")


class ChatMessage(BaseModel):
    """One message in a chat transcript."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    sender: ChatUser
    body: str = ""
    time: float = Field(default_factory=time.time)
    error: bool = False


class Writer(BaseModel):
    """A participant currently producing output into the chat."""

    model_config = ConfigDict(frozen=True)

    user: ChatUser
    message_id: str | None = None


@dataclass(frozen=True)
class ActiveCellRef:
    """Non-owning relation to the active notebook cell.

    Holds only the cell id; `resolve()` asks the host for the cell and may
    return None once the cell is gone.
    """

    cell_id: str
    lookup: Callable[[str], Any | None]

    def resolve(self) -> Any | None:
        return self.lookup(self.cell_id)
