"""Registry of user-defined function tools."""

import logging
from collections.abc import Callable
from typing import Any

from pydantic_ai import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Holds the function tools the conversational agent may call.

    Tool names are unique; registering an existing name replaces it.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool[Any]] = {}

    def add(self, tool: Tool[Any] | Callable[..., Any]) -> Tool[Any]:
        """Register a pydantic-ai Tool, or a plain function wrapped as one."""
        if not isinstance(tool, Tool):
            tool = Tool(tool, takes_ctx=False)
        self._tools[tool.name] = tool
        logger.debug(f"Registered function tool: {tool.name}")
        return tool

    def remove(self, name: str) -> bool:
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> Tool[Any] | None:
        return self._tools.get(name)

    def tools(self) -> list[Tool[Any]]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
