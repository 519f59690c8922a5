from typing import Optional

from .base import BaseDefinitionSource
from .sources import StaticDefinitionSource, CorpusDefinitionSource, load_default_corpora
from .remote import RemoteDefinitionSource
from .service import DictionaryService

__all__ = [
    "BaseDefinitionSource",
    "StaticDefinitionSource",
    "CorpusDefinitionSource",
    "RemoteDefinitionSource",
    "DictionaryService",
    "get_source",
    "load_default_corpora",
]


def get_source(name: str, config: Optional[dict] = None) -> BaseDefinitionSource:
    """Factory function to get a definition source by name."""
    config = config or {}
    sources = {
        "legal_definitions": lambda: StaticDefinitionSource(config.get("definitions"), config),
        "corpus": lambda: CorpusDefinitionSource(
            config.get("name", "corpus"), config.get("path"), config
        ),
        "remote": lambda: RemoteDefinitionSource(
            config["url"], config.get("timeout", 5.0), config
        ),
    }

    factory = sources.get(name.lower())
    if not factory:
        raise ValueError(
            f"Unknown definition source: {name}. Available: {list(sources.keys())}"
        )
    if name.lower() == "remote" and not config.get("url"):
        raise ValueError("Remote definition source requires a 'url'")

    return factory()
