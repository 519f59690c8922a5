import asyncio
import logging
import re
from typing import Iterable, List, Optional, Sequence

from .base import UncommonTermEntry
from .normalizer import extract_words
from ..dictionary.service import DictionaryService
from ..errors import InputError

logger = logging.getLogger(__name__)

DEFAULT_MIN_WORD_LENGTH = 3
DEFAULT_BATCH_SIZE = 50

_NOT_A_WORD_RE = re.compile(r"^[\d_'-]+$")


class UncommonTermIdentifier:
    """
    Finds legal and uncommon terms in a text and attaches definitions.

    Candidates are the legal-vocabulary phrases present in the text, tokens
    outside the common-word list, and hyphenated compounds or two/three-word
    windows that are legal phrases or have a known definition. Definitions
    come from the DictionaryService in fixed-size batches; candidates without
    one are dropped.
    """

    def __init__(
        self,
        dictionary: DictionaryService,
        legal_terms: Sequence[str],
        common_words: Iterable[str],
        min_word_length: int = DEFAULT_MIN_WORD_LENGTH,
        batch_size: int = DEFAULT_BATCH_SIZE,
        compound_terms: bool = True,
    ):
        if not isinstance(legal_terms, (list, tuple)):
            raise TypeError("legal_terms must be a list or tuple of phrases")

        self.dictionary = dictionary
        self.legal_terms: List[str] = []
        for term in legal_terms:
            key = term.lower().strip()
            if key and key not in self.legal_terms:
                self.legal_terms.append(key)
        self._legal_set = set(self.legal_terms)
        self._legal_patterns = [
            (t, re.compile(r"(?<!\w)" + re.escape(t) + r"(?!\w)")) for t in self.legal_terms
        ]
        self.common_words = {w.lower().strip() for w in common_words}
        self.min_word_length = min_word_length
        self.batch_size = max(1, batch_size)
        self.compound_terms = compound_terms

    def extract_candidates(self, text: str) -> List[str]:
        """Deduplicated candidate terms, legal vocabulary first, then alphabetical."""
        try:
            lowered = text.lower()
            words = extract_words(text)

            legal_matches = [t for t, pattern in self._legal_patterns if pattern.search(lowered)]

            uncommon = [
                w
                for w in words
                if len(w) >= self.min_word_length
                and not _NOT_A_WORD_RE.match(w)
                and w not in self.common_words
                and w not in self._legal_set
            ]

            compounds = self.extract_compound_terms(words) if self.compound_terms else []

            unique = set(legal_matches) | set(uncommon) | set(compounds)
            return sorted(unique, key=lambda t: (t not in self._legal_set, t))
        except Exception as e:
            logger.error(f"Error extracting words: {e}")
            return []

    def extract_compound_terms(self, words: List[str]) -> List[str]:
        """Hyphenated words, plus 2- and 3-word windows that are legal phrases or defined."""
        compounds = set()
        for i, word in enumerate(words):
            if "-" in word and len(word) >= self.min_word_length:
                compounds.add(word)
            for size in (2, 3):
                if i + size > len(words):
                    break
                phrase = " ".join(words[i:i + size])
                if phrase in self._legal_set or self.dictionary.has_definition(phrase):
                    compounds.add(phrase)
        return sorted(compounds)

    async def _define(self, word: str) -> Optional[UncommonTermEntry]:
        entry = await self.dictionary.lookup(word)
        if entry is None:
            return None
        return UncommonTermEntry(word=word, definition=entry.definition, source=entry.source)

    async def process_batches(self, words: List[str]) -> List[UncommonTermEntry]:
        """Resolve definitions batch by batch; lookups inside one batch run concurrently."""
        results: List[UncommonTermEntry] = []
        for i in range(0, len(words), self.batch_size):
            batch = words[i:i + self.batch_size]
            resolved = await asyncio.gather(
                *(self._define(w) for w in batch), return_exceptions=True
            )
            for word, res in zip(batch, resolved):
                if isinstance(res, Exception):
                    logger.warning(f"Definition lookup failed for {word!r}: {res}")
                elif res is not None:
                    results.append(res)
        return results

    async def identify(self, text: str) -> List[UncommonTermEntry]:
        try:
            logger.info("Starting uncommon word identification")
            if not text or not isinstance(text, str):
                raise InputError("Invalid input text")

            candidates = self.extract_candidates(text)
            logger.debug(f"Found {len(candidates)} potential terms to analyze")

            entries = await self.process_batches(candidates)
            logger.info(f"Identified {len(entries)} uncommon words")
            return entries
        except Exception as e:
            logger.error(f"Error identifying uncommon words: {e}")
            return []

    def clear_cache(self) -> int:
        return self.dictionary.clear_cache()
