"""
Threshold tuning for the semantic cache.

Measures how well token-set Jaccard matching separates paraphrased coaching
questions from unrelated ones, so SEMANTIC_CACHE_THRESHOLD can be picked
from data instead of guessed.
"""

import time
from dataclasses import dataclass

import numpy as np

from coach_ai.services.semantic_cache import SemanticCache


@dataclass
class QueryPair:
    """An incoming question, the cached question, and whether they should match."""

    query: str
    cached_query: str
    should_match: bool


@dataclass
class EvalResult:
    """Confusion counts for one threshold."""

    threshold: float
    true_positives: int = 0
    false_positives: int = 0
    true_negatives: int = 0
    false_negatives: int = 0
    avg_lookup_time_ms: float = 0.0

    @property
    def total_queries(self) -> int:
        return self.true_positives + self.false_positives + self.true_negatives + self.false_negatives

    @property
    def cache_hits(self) -> int:
        return self.true_positives + self.false_positives

    @property
    def hit_rate(self) -> float:
        return self.cache_hits / self.total_queries if self.total_queries else 0.0

    @property
    def precision(self) -> float:
        """TP / (TP + FP)."""
        return self.true_positives / self.cache_hits if self.cache_hits else 0.0

    @property
    def recall(self) -> float:
        """TP / (TP + FN)."""
        expected = self.true_positives + self.false_negatives
        return self.true_positives / expected if expected else 0.0

    @property
    def f1_score(self) -> float:
        p, r = self.precision, self.recall
        return 2 * p * r / (p + r) if p + r else 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "threshold": self.threshold,
            "hit_rate": self.hit_rate,
            "precision": self.precision,
            "recall": self.recall,
            "f1_score": self.f1_score,
            "total_queries": self.total_queries,
            "cache_hits": self.cache_hits,
            "avg_lookup_time_ms": self.avg_lookup_time_ms,
        }


class CacheEvaluator:
    """Runs labelled query pairs against a SemanticCache.

    Each pair is evaluated in isolation: the cache holds only that pair's
    cached question while the incoming question is looked up.
    """

    def __init__(self, cache: SemanticCache | None = None) -> None:
        self.cache = cache or SemanticCache()
        self.results: list[EvalResult] = []

    def evaluate_threshold(self, threshold: float, pairs: list[QueryPair]) -> EvalResult:
        """
        Evaluate one similarity threshold.

        Args:
            threshold: Minimum Jaccard similarity counted as a hit.
            pairs: Labelled query pairs.

        Returns:
            EvalResult with confusion counts for this threshold.
        """
        result = EvalResult(threshold=float(threshold))
        total_ms = 0.0

        for pair in pairs:
            self.cache.clear()
            self.cache.store(pair.cached_query, f"Response for: {pair.cached_query}")

            start = time.perf_counter()
            hit = self.cache.find(pair.query, threshold=threshold) is not None
            total_ms += (time.perf_counter() - start) * 1000

            if hit and pair.should_match:
                result.true_positives += 1
            elif hit:
                result.false_positives += 1
            elif pair.should_match:
                result.false_negatives += 1
            else:
                result.true_negatives += 1

        self.cache.clear()
        if pairs:
            result.avg_lookup_time_ms = total_ms / len(pairs)
        self.results.append(result)
        return result

    def sweep_thresholds(
        self,
        pairs: list[QueryPair],
        min_threshold: float = 0.3,
        max_threshold: float = 0.9,
        steps: int = 7,
    ) -> list[EvalResult]:
        """
        Evaluate evenly spaced thresholds.

        Returns:
            One EvalResult per threshold, in ascending threshold order.
        """
        self.results = []
        for threshold in np.linspace(min_threshold, max_threshold, steps):
            self.evaluate_threshold(float(threshold), pairs)
        return self.results

    def find_optimal_threshold(self, metric: str = "f1_score") -> tuple[float, EvalResult]:
        """
        Best threshold by a metric ('f1_score', 'precision', 'recall', 'hit_rate').

        Ties go to the higher (stricter) threshold.

        Raises:
            ValueError: If no evaluation has been run yet
        """
        if not self.results:
            raise ValueError("No evaluation results available. Run sweep_thresholds first.")
        best = max(self.results, key=lambda r: (getattr(r, metric), r.threshold))
        return best.threshold, best

    def print_summary(self) -> None:
        if not self.results:
            print("No evaluation results available.")
            return

        print("\n" + "=" * 64)
        print("Semantic Cache Threshold Evaluation")
        print("=" * 64)
        print(f"{'Threshold':<12} {'Hit Rate':<12} {'Precision':<12} {'Recall':<12} {'F1':<12}")
        print("-" * 64)
        for r in self.results:
            print(
                f"{r.threshold:<12.2f} {r.hit_rate:<12.2%} {r.precision:<12.2%} "
                f"{r.recall:<12.2%} {r.f1_score:<12.2%}"
            )
        print("=" * 64)
        threshold, best = self.find_optimal_threshold()
        print(f"Best f1_score: {threshold:.2f} ({best.f1_score:.2%})")


# Paraphrases of common coaching questions, plus unrelated pairs.
DEFAULT_PAIRS: list[QueryPair] = [
    QueryPair("How can I increase my bench press?", "How do I increase my bench press", True),
    QueryPair("Should I deload this week?", "Should I take a deload week?", True),
    QueryPair("Best way to recover after leg day", "Best way to recover after a leg day workout", True),
    QueryPair("How often should I train squats?", "How often should I squat?", False),
    QueryPair("How can I increase my bench press?", "How much protein should I eat?", False),
    QueryPair("Should I deload this week?", "What is a good push pull legs split?", False),
]
