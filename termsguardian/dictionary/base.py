from abc import ABC, abstractmethod
from typing import Optional

from ..analyzers.base import DefinitionSource


class BaseDefinitionSource(ABC):
    """Abstract base class for definition sources."""

    name: str = "base"
    source: DefinitionSource = DefinitionSource.DICTIONARY

    def __init__(self, config: dict = None):
        self.config = config or {}

    @abstractmethod
    def define(self, word: str) -> Optional[str]:
        """Look up a lowercase word.

        Args:
            word: Normalized lowercase term

        Returns:
            Definition text or None if the source has no entry
        """
        pass

    def __len__(self) -> int:
        return 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, entries={len(self)})"
