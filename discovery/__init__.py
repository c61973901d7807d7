"""Token discovery: the registry of known and created tokens."""

from discovery.registry import TokenRegistry, load_token_registry

__all__ = ["TokenRegistry", "load_token_registry"]
