"""SwapChat: chat moderation and room state service."""
