from .directory import InMemoryUserDirectory, SqlUserDirectory, UserDirectory
from .interactions import (
    InMemoryInteractionStore,
    InteractionStore,
    NullInteractionStore,
    SqlInteractionStore,
    canonical_pair,
)

__all__ = [
    "InMemoryInteractionStore",
    "InMemoryUserDirectory",
    "InteractionStore",
    "NullInteractionStore",
    "SqlInteractionStore",
    "SqlUserDirectory",
    "UserDirectory",
    "canonical_pair",
]
