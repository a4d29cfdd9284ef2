"""Tests for the token usage counter."""

from nbchat.core.token_usage import TokenUsage


class TestTokenUsage:
    """Tests for TokenUsage."""

    def test_starts_at_zero(self):
        """Test a new counter is empty."""
        usage = TokenUsage()
        assert usage.snapshot() == {"input_tokens": 0, "output_tokens": 0, "total_tokens": 0}

    def test_add_accumulates(self):
        """Test runs add up."""
        usage = TokenUsage()
        usage.add(10, 5)
        usage.add(3, 2)
        assert usage.input_tokens == 13
        assert usage.output_tokens == 7
        assert usage.total_tokens == 20

    def test_add_never_decreases(self):
        """Test missing or negative counts leave the totals unchanged."""
        usage = TokenUsage(input_tokens=4, output_tokens=4)
        usage.add(None, -3)
        assert usage.snapshot()["total_tokens"] == 8

    def test_reset(self):
        """Test reset returns to zero."""
        usage = TokenUsage()
        usage.add(100, 50)
        usage.reset()
        assert usage.total_tokens == 0

    def test_snapshot_is_a_copy(self):
        """Test readers cannot change the counter through a snapshot."""
        usage = TokenUsage()
        snapshot = usage.snapshot()
        snapshot["input_tokens"] = 99
        assert usage.input_tokens == 0
