"""Token usage sink shared between an agent manager and its readers."""

from pydantic import BaseModel, Field


class TokenUsage(BaseModel):
    """Cumulative token counts for one chat session.

    Written only by the owning agent manager; readers take snapshots.
    """

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def add(self, input_tokens: int | None, output_tokens: int | None) -> None:
        """Accumulate usage from one run; negative or missing counts count as 0."""
        self.input_tokens += max(input_tokens or 0, 0)
        self.output_tokens += max(output_tokens or 0, 0)

    def reset(self) -> None:
        self.input_tokens = 0
        self.output_tokens = 0

    def snapshot(self) -> dict[str, int]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
        }
