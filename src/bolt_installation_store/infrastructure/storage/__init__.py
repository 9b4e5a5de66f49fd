from bolt_installation_store.infrastructure.storage.in_memory import InMemoryStorage

__all__ = ["InMemoryStorage"]
