"""Statistics objects for tagged-output parsing.

The stream tokenizer has no error channel; soft failures such as quoted or
unrecognized tags are counted here instead.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class StreamStatistics:
    """Running counters for a single stream tokenizer."""

    fragments_processed: int = 0
    empty_fragments: int = 0
    characters_processed: int = 0
    tokens_emitted: int = 0
    tag_tokens: int = 0
    text_tokens: int = 0
    literal_tags: int = 0
    max_buffered_chars: int = 0

    @property
    def characters_per_token(self) -> float:
        """Average number of input characters per emitted token."""
        if self.tokens_emitted == 0:
            return 0.0
        return self.characters_processed / self.tokens_emitted

    @property
    def literal_tag_rate(self) -> float:
        """Share of tag-like constructs that were reclassified as text."""
        total = self.tag_tokens + self.literal_tags
        if total == 0:
            return 0.0
        return self.literal_tags / total

    def record_buffer(self, buffered_chars: int) -> None:
        """Track the peak number of characters held between fragments."""
        if buffered_chars > self.max_buffered_chars:
            self.max_buffered_chars = buffered_chars

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to a dictionary, derived values included."""
        result = asdict(self)
        result["characters_per_token"] = self.characters_per_token
        result["literal_tag_rate"] = self.literal_tag_rate
        return result
