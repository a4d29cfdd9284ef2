"""Provider, tool and chat-session orchestration."""
