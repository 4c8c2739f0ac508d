import threading

from patchwork.analysis.cache import AnalysisCache
from patchwork.shared import SharedContext


def test_next_version_is_monotonic_per_identifier_and_survives_clear():
    cache = AnalysisCache()

    assert [cache.next_version("a"), cache.next_version("a"), cache.next_version("b")] == [1, 2, 1]
    cache.clear()
    assert cache.next_version("a") == 3


def test_get_or_build_builds_once_per_key():
    cache = AnalysisCache()
    calls = []

    def build():
        calls.append(1)
        return {"built": len(calls)}

    first = cache.get_or_build("a", 1, build)
    second = cache.get_or_build("a", 1, build)
    other = cache.get_or_build("a", 2, build)

    assert first is second
    assert other == {"built": 2}
    assert len(calls) == 2
    assert len(cache) == 2


def test_invalidate_and_prune():
    cache = AnalysisCache()
    for version in (1, 2, 3):
        cache.put("a", version, version)
    cache.put("b", 1, "b")

    cache.prune("a", keep=[3])
    assert ("a", 1) not in cache
    assert ("a", 3) in cache

    cache.invalidate("a")
    assert cache.get("a", 3) is None
    assert ("b", 1) in cache
    assert "b" not in cache


def test_shared_context_behaves_like_a_dict():
    shared = SharedContext({"seed": 1})
    shared["x"] = 2
    del shared["seed"]

    assert dict(shared) == {"x": 2}
    assert shared.setdefault("x", 5) == 2
    assert shared.get("missing", "fallback") == "fallback"
    assert "x" in shared
    assert len(shared) == 1

    shared.clear()
    assert len(shared) == 0


def test_update_with_is_atomic_across_threads():
    shared = SharedContext()

    def bump():
        for _ in range(200):
            shared.update_with("count", lambda n: n + 1, 0)

    threads = [threading.Thread(target=bump) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert shared["count"] == 1600


def test_locked_exposes_underlying_dict():
    shared = SharedContext()

    with shared.locked() as data:
        data.setdefault("seen", []).append("a.ts")
        data["seen"].append("b.ts")

    assert shared["seen"] == ["a.ts", "b.ts"]
