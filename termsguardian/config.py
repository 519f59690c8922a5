import logging
import os
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

REMOTE_URL_ENV = "TERMSGUARDIAN_REMOTE_URL"

# camelCase keys as sent by JavaScript clients
_CAMEL_KEYS = {
    "autoGradeThreshold": "auto_grade_threshold",
    "notifyThreshold": "notify_threshold",
    "sectionThreshold": "section_threshold",
    "proximityRadius": "proximity_radius",
    "chunkSize": "chunk_size",
    "minWordLength": "min_word_length",
    "cacheTtlMs": "cache_ttl_ms",
    "dictionaryBatchSize": "dictionary_batch_size",
    "detectionIntervalMs": "detection_interval_ms",
    "lookupTimeoutMs": "lookup_timeout_ms",
    "prioritizeLegalTerms": "prioritize_legal_terms",
    "compoundTerms": "compound_terms",
    "remoteLookup": "remote_lookup",
    "remoteUrl": "remote_url",
}


@dataclass
class AnalysisConfig:
    auto_grade_threshold: int = 30
    notify_threshold: int = 10
    section_threshold: int = 10
    proximity_radius: int = 5
    chunk_size: int = 500
    min_word_length: int = 3
    cache_ttl_ms: int = 86_400_000
    dictionary_batch_size: int = 50
    detection_interval_ms: int = 5000
    lookup_timeout_ms: int = 5000
    prioritize_legal_terms: bool = True
    compound_terms: bool = True
    remote_lookup: bool = False
    remote_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AnalysisConfig":
        """Build a config from snake_case or camelCase keys; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in known:
                logger.warning(f"Ignoring unknown config option: {key}")
                continue
            kwargs[name] = value
        config = cls(**kwargs)

        env_url = os.environ.get(REMOTE_URL_ENV)
        if env_url and not config.remote_url:
            config.remote_url = env_url
            config.remote_lookup = True
        return config

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Optional[Union[str, Path]] = None) -> AnalysisConfig:
    """Load an AnalysisConfig from a YAML file. Missing files yield defaults."""
    if path is None:
        return AnalysisConfig.from_dict({})

    path = Path(path)
    if not path.exists():
        logger.warning(f"Config file {path} not found, using defaults")
        return AnalysisConfig.from_dict({})

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        logger.warning(
            f"Config file {path} must hold a mapping, got {type(data).__name__}; using defaults"
        )
        return AnalysisConfig.from_dict({})

    # Allow the options to sit under an "analysis" section
    if isinstance(data.get("analysis"), dict):
        data = data["analysis"]

    return AnalysisConfig.from_dict(data)
