import logging
from typing import Any, Optional
from urllib.parse import quote

import requests

from .base import BaseDefinitionSource
from ..analyzers.base import DefinitionSource
from ..errors import DefinitionLookupError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


def _first_definition(payload: Any) -> Optional[str]:
    """
    Pull a definition string out of the common response shapes:
    {"definition": "..."}, {"definitions": ["..."]}, or the
    [{"meanings": [{"definitions": [{"definition": "..."}]}]}] layout.
    """
    if isinstance(payload, str):
        return payload.strip() or None
    if isinstance(payload, dict):
        if isinstance(payload.get("definition"), str):
            return payload["definition"].strip() or None
        defs = payload.get("definitions")
        if isinstance(defs, list) and defs:
            return _first_definition(defs[0])
        meanings = payload.get("meanings")
        if isinstance(meanings, list):
            for meaning in meanings:
                found = _first_definition(meaning)
                if found:
                    return found
        return None
    if isinstance(payload, list):
        for item in payload:
            found = _first_definition(item)
            if found:
                return found
    return None


class RemoteDefinitionSource(BaseDefinitionSource):
    """HTTP definition lookup.

    The URL may contain a ``{word}`` placeholder; otherwise the word is sent
    as the ``word`` query parameter. Any HTTP or parsing failure raises
    DefinitionLookupError, and a 404 is a plain miss.
    """

    name = "remote_api"
    source = DefinitionSource.REMOTE_API

    def __init__(self, url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS, config: dict = None):
        super().__init__(config)
        self.url = url
        self.timeout = timeout
        self.session = requests.Session()

    def define(self, word: str) -> Optional[str]:
        try:
            if "{word}" in self.url:
                resp = self.session.get(self.url.format(word=quote(word)), timeout=self.timeout)
            else:
                resp = self.session.get(self.url, params={"word": word}, timeout=self.timeout)

            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            return _first_definition(resp.json())
        except (requests.RequestException, ValueError) as e:
            raise DefinitionLookupError(f"Remote lookup failed for {word!r}: {e}") from e
