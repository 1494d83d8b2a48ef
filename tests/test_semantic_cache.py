"""
Tests for the token-set semantic cache.
"""

from conftest import FakeClock

from coach_ai.services.semantic_cache import SemanticCache, jaccard


def test_jaccard():
    assert jaccard({"a", "b"}, {"a", "b"}) == 1.0
    assert jaccard({"a", "b"}, {"b", "c"}) == 1 / 3
    assert jaccard(set(), set()) == 0.0


def test_tokenize_drops_stop_words_and_short_tokens():
    assert SemanticCache.tokenize("How do I increase my Bench-Press?") == frozenset({"increase", "bench", "press"})


def test_paraphrase_hits():
    cache = SemanticCache(threshold=0.8, clock=FakeClock())
    cache.store("How can I increase my bench press?", "Add weight slowly.")
    match = cache.find("how do I increase my bench press")
    assert match is not None
    assert match.response == "Add weight slowly."
    assert match.similarity == 1.0


def test_unrelated_query_misses():
    cache = SemanticCache(threshold=0.8, clock=FakeClock())
    cache.store("How can I increase my bench press?", "Add weight slowly.")
    assert cache.find("How much protein should I eat?") is None


def test_best_match_wins():
    cache = SemanticCache(threshold=0.5, clock=FakeClock())
    cache.store("deload week recovery tips", "partial")
    cache.store("deload week recovery", "exact")
    match = cache.find("deload week recovery")
    assert match.response == "exact"


def test_query_without_tokens_never_matches():
    cache = SemanticCache(threshold=0.1, clock=FakeClock())
    cache.store("what is it", "nothing")
    assert cache.find("is it?") is None


def test_expired_entries_are_skipped():
    clock = FakeClock()
    cache = SemanticCache(threshold=0.8, default_ttl=100, clock=clock)
    cache.store("squat depth cues", "Hips below knees.")
    clock.advance(101)
    assert cache.find("squat depth cues") is None


def test_capacity_drops_oldest():
    cache = SemanticCache(threshold=0.8, max_entries=2, clock=FakeClock())
    cache.store("first question about squats", "1")
    cache.store("second question about deadlifts", "2")
    cache.store("third question about rows", "3")
    assert len(cache) == 2
    assert cache.find("first question about squats") is None
    assert cache.find("third question about rows").response == "3"


def test_threshold_override_and_clear():
    cache = SemanticCache(threshold=0.9, clock=FakeClock())
    cache.store("deload week recovery", "answer")
    assert cache.find("deload week") is None
    assert cache.find("deload week", threshold=0.6) is not None
    assert cache.clear() == 1
    assert len(cache) == 0
