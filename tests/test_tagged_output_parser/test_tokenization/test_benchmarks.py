"""Tests for stream tokenizer benchmarking.

This module tests the benchmark result structures and a small benchmark run,
including the bound on input buffered between fragments.
"""

import pytest

from tagged_output_parser.shared import StreamParserConfig
from tagged_output_parser.tokenization.benchmarks import (
    BenchmarkResult,
    BenchmarkSuite,
    StreamBenchmark,
    generate_agent_response,
)


def make_result(test_case="case", fragment_size=1, processing_time_ms=100.0, success=True):
    return BenchmarkResult(
        test_case=test_case,
        fragment_size=fragment_size,
        processing_time_ms=processing_time_ms,
        memory_used_mb=0.5,
        characters_processed=1000,
        tokens_generated=50,
        max_buffered_chars=12,
        success=success,
    )


class TestBenchmarkResult:
    """Test benchmark result data structure."""

    def test_performance_metrics_calculation(self):
        """Test calculated performance metrics."""
        result = make_result()

        # 1000 chars / 0.1 seconds = 10000 chars/sec
        assert result.characters_per_second == 10000.0
        assert result.tokens_per_second == 500.0
        assert result.error_message is None

    def test_zero_time(self):
        """Test that a zero duration does not divide by zero."""
        result = make_result(processing_time_ms=0.0)

        assert result.characters_per_second == 0.0
        assert result.tokens_per_second == 0.0


class TestBenchmarkSuite:
    """Test result aggregation."""

    def test_statistics_use_successful_runs(self):
        """Test that failed runs are excluded from statistics."""
        suite = BenchmarkSuite()
        suite.add_result(make_result(processing_time_ms=100.0))
        suite.add_result(make_result(processing_time_ms=50.0))
        suite.add_result(make_result(success=False))

        stats = suite.get_statistics("case", "processing_time_ms")
        assert stats["count"] == 2
        assert stats["min"] == 50.0
        assert stats["max"] == 100.0
        assert suite.get_statistics("missing", "processing_time_ms") == {}

    def test_generate_report(self):
        """Test the grouped report."""
        suite = BenchmarkSuite()
        suite.add_result(make_result("a", fragment_size=1))
        suite.add_result(make_result("a", fragment_size=64))
        suite.add_result(make_result("b", success=False))

        report = suite.generate_report()

        assert report["total_results"] == 3
        assert report["test_cases"] == ["a", "b"]
        assert report["summary"]["a"]["successful_runs"] == 2
        assert set(report["summary"]["a"]["by_fragment_size"]) == {1, 64}
        assert report["summary"]["a"]["max_buffered_chars"] == 12
        assert report["summary"]["b"]["max_buffered_chars"] == 0


class TestStreamBenchmark:
    """Test running the benchmark."""

    def test_generate_agent_response(self):
        """Test the synthetic response shape."""
        text = generate_agent_response(2)

        assert text.startswith("<response>")
        assert text.endswith("</response>")
        assert text.count('<output name="message"') == 2

    def test_run_selected_cases(self):
        """Test a small run at two fragment sizes."""
        benchmark = StreamBenchmark(fragment_sizes=(1, 64))
        suite = benchmark.run(["short_answer", "agent_response"])

        assert len(suite.results) == 4
        assert all(result.success for result in suite.results)
        assert all(result.tokens_generated > 0 for result in suite.results)
        assert all(result.max_buffered_chars < 100 for result in suite.results)

    def test_buffer_bounded_by_max_tag_length(self):
        """Test that buffered input never exceeds the tag length limit."""
        benchmark = StreamBenchmark(
            config=StreamParserConfig(max_tag_length=64),
            fragment_sizes=(1, 7, 1024),
        )
        text = benchmark.test_cases["quoted_tags"]

        results = [benchmark.benchmark_case("quoted_tags", text, size) for size in (1, 7, 1024)]
        assert all(r.success for r in results)
        assert all(r.max_buffered_chars <= 64 for r in results)

    def test_unknown_test_case(self):
        """Test that unknown case names are rejected."""
        with pytest.raises(ValueError, match="Unknown test cases"):
            StreamBenchmark().run(["nope"])

    @pytest.mark.parametrize("sizes", [(), (0,), (8, -1)])
    def test_invalid_fragment_sizes(self, sizes):
        """Test that fragment sizes must be positive."""
        with pytest.raises(ValueError, match="fragment_sizes must be positive"):
            StreamBenchmark(fragment_sizes=sizes)
