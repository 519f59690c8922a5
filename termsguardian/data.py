import json
import logging
from pathlib import Path
from typing import Dict, List, Set, Union

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "fdata"


def _load_json(filename: str) -> Union[dict, list]:
    data_path = DATA_DIR / filename
    try:
        with open(data_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except Exception as e:
        logger.error(f"Could not load {filename}: {e}")
        return {}


def _flatten(data) -> List[str]:
    """Flatten a dict of lists (or a list) into an ordered, de-duplicated list of lowercase strings."""
    result: List[str] = []
    seen: Set[str] = set()

    def _add(items):
        for s in items:
            key = str(s).lower().strip()
            if key and key not in seen:
                seen.add(key)
                result.append(key)

    if isinstance(data, list):
        _add(data)
    elif isinstance(data, dict):
        for v in data.values():
            if isinstance(v, list):
                _add(v)
            elif isinstance(v, dict):
                _add(_flatten(v))
    return result


def load_legal_terms() -> List[str]:
    """The legal-vocabulary set, in file order."""
    return _flatten(_load_json("legal_terms.json"))


def load_common_words() -> List[str]:
    return _flatten(_load_json("common_words.json"))


def load_legal_definitions() -> Dict[str, str]:
    data = _load_json("legal_definitions.json")
    if not isinstance(data, dict):
        return {}
    return {k.lower().strip(): v for k, v in data.items() if isinstance(v, str)}


def load_dictionary(path: Union[str, Path]) -> Dict[str, str]:
    """
    Load a bundled dictionary corpus (lowercase term -> definition).

    A missing or unreadable file is treated as an empty corpus.
    """
    path = Path(path)
    if not path.is_absolute():
        path = DATA_DIR / "dictionaries" / path
    if not path.exists():
        logger.warning(f"Dictionary corpus {path.name} not found, using empty map")
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except Exception as e:
        logger.error(f"Could not load dictionary {path.name}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Dictionary corpus {path.name} is not a mapping, ignoring")
        return {}
    return {k.lower().strip(): v for k, v in data.items() if isinstance(v, str)}
