from .in_memory_token_store import InMemoryTokenStore

__all__ = ["InMemoryTokenStore"]
