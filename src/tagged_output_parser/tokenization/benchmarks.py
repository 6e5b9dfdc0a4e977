"""Performance benchmarking for the stream tokenizer.

Feeds synthetic model responses to ``XMLStreamParser`` at several fragment
sizes and records throughput, resident memory growth and the tokenizer's peak
buffered input, which must stay bounded by the largest unresolved tag rather
than grow with the stream.
"""

import gc
import statistics
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import psutil

from tagged_output_parser.shared import DEFAULT_STREAM_TAGS, StreamParserConfig, get_logger

from .stream import XMLStreamParser

DEFAULT_FRAGMENT_SIZES = (1, 7, 64, 1024)


@dataclass
class BenchmarkResult:
    """Result of a single benchmark run."""

    test_case: str
    fragment_size: int
    processing_time_ms: float
    memory_used_mb: float
    characters_processed: int
    tokens_generated: int
    max_buffered_chars: int
    success: bool
    error_message: Optional[str] = None

    @property
    def characters_per_second(self) -> float:
        """Calculate characters processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_processed * 1000.0) / self.processing_time_ms

    @property
    def tokens_per_second(self) -> float:
        """Calculate tokens generated per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.tokens_generated * 1000.0) / self.processing_time_ms


@dataclass
class BenchmarkSuite:
    """Collection of benchmark results with statistical analysis."""

    results: List[BenchmarkResult] = field(default_factory=list)
    suite_name: str = "Stream Tokenizer Benchmark"
    timestamp: float = field(default_factory=time.time)

    def add_result(self, result: BenchmarkResult) -> None:
        """Add a benchmark result to the suite."""
        self.results.append(result)

    def get_results_by_test_case(self, test_case: str) -> List[BenchmarkResult]:
        """Get all results for a specific test case."""
        return [r for r in self.results if r.test_case == test_case]

    def get_statistics(self, test_case: str, metric: str) -> Dict[str, float]:
        """Get statistical analysis of one metric for a test case."""
        values = [
            getattr(result, metric)
            for result in self.get_results_by_test_case(test_case)
            if result.success
        ]
        if not values:
            return {}

        return {
            "min": min(values),
            "max": max(values),
            "mean": statistics.mean(values),
            "median": statistics.median(values),
            "stdev": statistics.stdev(values) if len(values) > 1 else 0.0,
            "count": len(values),
        }

    def generate_report(self) -> Dict[str, Any]:
        """Generate benchmark report grouped by test case."""
        test_cases = sorted(set(r.test_case for r in self.results))

        report: Dict[str, Any] = {
            "suite_name": self.suite_name,
            "timestamp": self.timestamp,
            "total_results": len(self.results),
            "test_cases": test_cases,
            "summary": {},
        }

        for test_case in test_cases:
            case_results = self.get_results_by_test_case(test_case)
            successful = [r for r in case_results if r.success]
            report["summary"][test_case] = {
                "total_runs": len(case_results),
                "successful_runs": len(successful),
                "performance": self.get_statistics(test_case, "characters_per_second"),
                "max_buffered_chars": max(
                    (r.max_buffered_chars for r in successful), default=0
                ),
                "by_fragment_size": {
                    r.fragment_size: r.characters_per_second for r in successful
                },
            }

        return report


def generate_agent_response(steps: int) -> str:
    """Generate a synthetic model response with ``steps`` reasoning rounds.

    Mixes recognized tags, quoted tag references and unrecognized markup.
    """
    parts = ["<think>Planning the answer. I will use `<output>` tags.</think>"]
    for i in range(steps):
        parts.append(
            f"<reasoning>Step {i}: compare a<b and (<draft>) notes.</reasoning>\n"
            f'<action_call name="search">{{"query": "item {i}"}}</action_call>\n'
            f"Some <em>inline</em> text for step {i}.\n"
            f'<output name="message" channel="main">Result {i}</output>\n'
        )
    return "<response>" + "".join(parts) + "</response>"


class StreamBenchmark:
    """Benchmark the stream tokenizer over synthetic responses."""

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        config: Optional[StreamParserConfig] = None,
        fragment_sizes: Sequence[int] = DEFAULT_FRAGMENT_SIZES
    ) -> None:
        """Initialize benchmark.

        Args:
            correlation_id: Optional correlation ID for tracking
            config: Tokenizer configuration under test
            fragment_sizes: Fragment lengths to feed the tokenizer with
        """
        if not fragment_sizes or any(size <= 0 for size in fragment_sizes):
            raise ValueError("fragment_sizes must be positive")

        self.correlation_id = correlation_id
        self.config = config or StreamParserConfig()
        self.fragment_sizes = tuple(fragment_sizes)
        self.logger = get_logger(__name__, correlation_id, "benchmark")
        self.test_cases = self._create_test_cases()

    def _create_test_cases(self) -> Dict[str, str]:
        return {
            "short_answer": '<response><output name="message">Hi!</output></response>',
            "quoted_tags": (
                "Use '<output>' or `<think>` literally, (<reasoning>) too, "
                "and compare x < y > z."
            ),
            "agent_response": generate_agent_response(20),
            "long_agent_response": generate_agent_response(500),
        }

    def _measure_memory_usage(self) -> float:
        """Get current memory usage in MB."""
        process = psutil.Process()
        return process.memory_info().rss / 1024 / 1024

    def benchmark_case(self, test_case: str, text: str, fragment_size: int) -> BenchmarkResult:
        """Stream one text through a fresh tokenizer."""
        parser = XMLStreamParser(
            DEFAULT_STREAM_TAGS,
            config=self.config,
            correlation_id=self.correlation_id,
        )

        gc.collect()
        memory_before = self._measure_memory_usage()
        start_time = time.perf_counter()

        tokens_generated = 0
        success = True
        error_message = None
        try:
            for offset in range(0, len(text), fragment_size):
                tokens_generated += len(parser.feed(text[offset:offset + fragment_size]))
            tokens_generated += len(parser.close())
        except Exception as e:
            self.logger.error(
                "Benchmark run failed",
                extra={"test_case": test_case, "fragment_size": fragment_size}
            )
            success = False
            error_message = str(e)

        processing_time = (time.perf_counter() - start_time) * 1000
        memory_used = max(0.0, self._measure_memory_usage() - memory_before)

        return BenchmarkResult(
            test_case=test_case,
            fragment_size=fragment_size,
            processing_time_ms=processing_time,
            memory_used_mb=memory_used,
            characters_processed=len(text),
            tokens_generated=tokens_generated,
            max_buffered_chars=parser.statistics.max_buffered_chars,
            success=success,
            error_message=error_message,
        )

    def run(self, test_cases: Optional[Sequence[str]] = None) -> BenchmarkSuite:
        """Run the selected (by default all) test cases at every fragment size."""
        names = list(test_cases) if test_cases is not None else list(self.test_cases)
        unknown = [name for name in names if name not in self.test_cases]
        if unknown:
            raise ValueError(f"Unknown test cases: {unknown}")

        suite = BenchmarkSuite()
        for name in names:
            for fragment_size in self.fragment_sizes:
                suite.add_result(
                    self.benchmark_case(name, self.test_cases[name], fragment_size)
                )

        self.logger.info(
            "Benchmark completed",
            extra={"runs": len(suite.results), "test_cases": names}
        )
        return suite
