"""Tests for stream statistics."""

from tagged_output_parser.shared import StreamStatistics


class TestStreamStatistics:
    """Test suite for StreamStatistics."""

    def test_defaults(self):
        """Test that all counters start at zero."""
        stats = StreamStatistics()

        assert stats.tokens_emitted == 0
        assert stats.characters_per_token == 0.0
        assert stats.literal_tag_rate == 0.0

    def test_derived_values(self):
        """Test the derived ratios."""
        stats = StreamStatistics(
            characters_processed=100,
            tokens_emitted=4,
            tag_tokens=3,
            literal_tags=1,
        )

        assert stats.characters_per_token == 25.0
        assert stats.literal_tag_rate == 0.25

    def test_record_buffer_keeps_peak(self):
        """Test that only the peak buffer size is kept."""
        stats = StreamStatistics()
        for size in (3, 10, 2):
            stats.record_buffer(size)

        assert stats.max_buffered_chars == 10

    def test_to_dict(self):
        """Test dictionary conversion includes derived values."""
        data = StreamStatistics(characters_processed=10, tokens_emitted=5).to_dict()

        assert data["characters_processed"] == 10
        assert data["characters_per_token"] == 2.0
        assert "literal_tag_rate" in data
