import logging
import re
from typing import Dict, List, Optional, Sequence

from .base import RightsResult

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 500
NEUTRAL_SCORE = 0.5

RIGHTS_PATTERNS: Dict[str, Sequence[str]] = {
    "positive": (
        "right to", "you may", "user can", "permitted to",
        "allowed to", "grant", "entitled to", "option to",
    ),
    "negative": (
        "shall not", "may not", "prohibited", "restricted from",
        "forbidden", "waive", "forfeit", "surrender",
    ),
    "obligations": (
        "must", "required to", "shall", "obligated to",
        "responsible for", "duty to", "agree to", "consent to",
    ),
}

# trailing text without terminal punctuation still counts as a sentence
_SENTENCE_RE = re.compile(r"[^.!?]+(?:[.!?]+|$)")


class RightsAssessor:
    """
    Scores how favorable a text is to the reader's rights.

    Text is chunked along sentence boundaries; each chunk is scored from its
    counts of permissive, restrictive and duty phrases, and the document score
    is the mean over chunks. 1.0 is maximally permissive, 0.0 maximally
    restrictive, 0.5 neutral.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        patterns: Optional[Dict[str, Sequence[str]]] = None,
    ):
        self.chunk_size = chunk_size
        source = patterns or RIGHTS_PATTERNS
        self.patterns = {
            category: tuple(p.lower() for p in source.get(category, ()))
            for category in ("positive", "negative", "obligations")
        }

    def chunk_text(self, text: str) -> List[str]:
        """
        Pack whole sentences into chunks of at most chunk_size characters.
        A single sentence longer than chunk_size becomes its own chunk.
        """
        try:
            logger.debug(f"Chunking text (chunk_size={self.chunk_size})")
            chunks: List[str] = []
            current = ""
            for match in _SENTENCE_RE.finditer(text):
                sentence = match.group(0).strip()
                if not sentence:
                    continue
                if current and len(current) + 1 + len(sentence) > self.chunk_size:
                    chunks.append(current)
                    current = sentence
                else:
                    current = f"{current} {sentence}" if current else sentence
            if current:
                chunks.append(current)

            logger.debug(f"Created {len(chunks)} chunks")
            return chunks
        except Exception as e:
            logger.error(f"Error chunking text: {e}")
            return [text]

    def count_patterns(self, chunk: str) -> Dict[str, int]:
        lowered = chunk.lower()
        return {
            category: sum(lowered.count(p) for p in phrases)
            for category, phrases in self.patterns.items()
        }

    def score_chunk(self, chunk: str) -> float:
        counts = self.count_patterns(chunk)
        total = sum(counts.values())
        if total == 0:
            return NEUTRAL_SCORE
        score = 1 - (counts["negative"] + counts["obligations"]) / (total * 2)
        return max(0.0, min(1.0, score))

    def assess(self, text: str) -> RightsResult:
        try:
            logger.info("Starting rights analysis")
            if not isinstance(text, str):
                text = ""

            chunks = self.chunk_text(text) if text.strip() else []
            if not chunks:
                return RightsResult(score=NEUTRAL_SCORE, chunk_count=0, confidence=0.0)

            scores = []
            signalled = 0
            for chunk in chunks:
                counts = self.count_patterns(chunk)
                if sum(counts.values()):
                    signalled += 1
                chunk_score = self.score_chunk(chunk)
                logger.debug(f"Chunk analysis: score={chunk_score:.3f} counts={counts}")
                scores.append(chunk_score)

            result = RightsResult(
                score=sum(scores) / len(scores),
                chunk_count=len(chunks),
                confidence=round(signalled / len(chunks), 3),
            )
            logger.info(f"Rights analysis complete: score={result.score:.3f}")
            return result
        except Exception as e:
            logger.error(f"Error analyzing content: {e}")
            return RightsResult(score=NEUTRAL_SCORE, chunk_count=0, confidence=0.0, error=str(e))
