import logging
from pathlib import Path
from typing import Dict, Optional, Union

from .base import BaseDefinitionSource
from ..analyzers.base import DefinitionSource
from ..data import load_dictionary, load_legal_definitions

logger = logging.getLogger(__name__)


class StaticDefinitionSource(BaseDefinitionSource):
    """Curated table of common legal terms (eula, indemnity, ...)."""

    name = "legal_definitions"
    source = DefinitionSource.LEGAL_DEFINITIONS

    def __init__(self, definitions: Optional[Dict[str, str]] = None, config: dict = None):
        super().__init__(config)
        if definitions is None:
            definitions = load_legal_definitions()
        self.definitions = {k.lower().strip(): v for k, v in definitions.items()}

    def define(self, word: str) -> Optional[str]:
        return self.definitions.get(word)

    def __contains__(self, word: str) -> bool:
        return word.lower().strip() in self.definitions

    def __len__(self) -> int:
        return len(self.definitions)


class CorpusDefinitionSource(BaseDefinitionSource):
    """A bundled JSON dictionary corpus loaded once at construction.

    A missing corpus file is tolerated and behaves as an empty dictionary.
    """

    source = DefinitionSource.DICTIONARY

    def __init__(
        self,
        name: str,
        corpus: Union[str, Path, Dict[str, str], None] = None,
        config: dict = None,
    ):
        super().__init__(config)
        self.name = name
        if isinstance(corpus, dict):
            self.entries = {k.lower().strip(): v for k, v in corpus.items()}
        elif corpus is not None:
            self.entries = load_dictionary(corpus)
        else:
            self.entries = {}
        logger.debug(f"Loaded {len(self.entries)} entries for {name}")

    def define(self, word: str) -> Optional[str]:
        return self.entries.get(word)

    def __len__(self) -> int:
        return len(self.entries)


# Courts glossary is checked before the general legal dictionary
DEFAULT_CORPORA = (
    ("us_courts_glossary", "usc.json"),
    ("blacks_law_dictionary", "bld.json"),
)


def load_default_corpora():
    return [CorpusDefinitionSource(name, filename) for name, filename in DEFAULT_CORPORA]
