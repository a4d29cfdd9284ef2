"""nbchat - chat orchestration core for a notebook AI assistant."""

__version__ = "1.0.0"
