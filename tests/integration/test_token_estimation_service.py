"""
Integration tests cho TokenEstimationEngine.

Test pipeline that: file tren disk -> fingerprint cache -> tokenizer/heuristic
-> BundleSummary. Tokenizer that duoc thay bang fakes (tru 1 test dung tiktoken).

Verify:
1. Idempotent khi file khong doi, cache hit khong goi lai tokenizer
2. Line range cat noi dung dung
3. Fingerprint doi -> tinh lai; stale hit chi het khi invalidate_path()
4. Loi doc file -> SelectionReadError
5. set_model / set_heuristics xoa cache, token budget thi khong
6. Model override trong Bundle
7. Tokenizer loi -> heuristic fallback
8. Thread safety
"""

import os
import threading
from unittest.mock import Mock, patch

import pytest

from config.app_settings import AppSettings
from config.model_config import TokenModel
from core.errors import SelectionReadError
from core.selection.types import Bundle, SelectionItem
from core.tokenization.heuristic import HeuristicConfig
from core.tokenization.registry import TokenizerRegistry
from services.encoder_registry import get_tokenizer_registry, reset_tokenizer_registry
from services.token_estimation_service import TokenEstimationEngine

FALLBACK = TokenModel.CHARACTER_FALLBACK


def _bundle(*items, model=None):
    return Bundle(items=list(items), model=model)


@pytest.fixture
def engine(heuristic_registry):
    return TokenEstimationEngine(model=FALLBACK, registry=heuristic_registry)


@pytest.fixture
def spy_counter():
    return Mock(side_effect=lambda text: len(text.split()))


@pytest.fixture
def exact_engine(spy_counter):
    registry = TokenizerRegistry()
    registry.register_family("o200k_base", lambda: spy_counter)
    return TokenEstimationEngine(model=TokenModel.OPENAI_GPT_4O, registry=registry)


class TestEstimateBundle:
    """Test estimate_bundle() co ban."""

    def test_whole_file(self, engine, write_file):
        path = write_file("hello.txt", "Hello world!")
        summary = engine.estimate_bundle(_bundle(SelectionItem(path)))

        assert summary.model is FALLBACK
        assert summary.total_tokens == 3
        assert summary.total_characters == 12
        assert summary.token_budget == 120_000
        assert summary.remaining_tokens == 120_000 - 3
        assert summary.exceeds_budget is False
        assert summary.context_window == 120_000

    def test_items_in_bundle_order(self, engine, write_file):
        first = write_file("b.txt", "a" * 30)
        second = write_file("a.txt", "Hello world!")
        summary = engine.estimate_bundle(
            _bundle(SelectionItem(first, note="n"), SelectionItem(second))
        )

        assert [e.item.path for e in summary.items] == [first, second]
        assert [e.tokens for e in summary.items] == [8, 3]
        assert summary.items[0].item.note == "n"
        assert summary.total_tokens == 11
        assert summary.total_characters == 42

    def test_empty_bundle(self, engine):
        summary = engine.estimate_bundle(_bundle())
        assert summary.total_tokens == 0
        assert summary.items == ()

    def test_range_has_fewer_characters(self, engine, write_file):
        """File 3 dong, chon (2,3) -> it ky tu hon ca file."""
        path = write_file("three.txt", "alpha\nbeta\ngamma\n")
        whole = engine.estimate_bundle(_bundle(SelectionItem(path)))
        ranged = engine.estimate_bundle(_bundle(SelectionItem(path, (2, 3))))

        assert ranged.total_characters == len("beta\ngamma")
        assert ranged.total_characters < whole.total_characters

    def test_range_past_end_of_file(self, engine, write_file):
        path = write_file("short.txt", "one\ntwo\n")
        summary = engine.estimate_bundle(_bundle(SelectionItem(path, (5, 9))))
        assert summary.total_tokens == 0
        assert summary.total_characters == 0

    def test_whitespace_file_is_zero_tokens(self, exact_engine, spy_counter, write_file):
        path = write_file("blank.txt", "  \n\n\t ")
        summary = exact_engine.estimate_bundle(_bundle(SelectionItem(path)))
        assert summary.total_tokens == 0
        assert summary.total_characters == 6
        spy_counter.assert_not_called()

    def test_code_file_uses_multiplier(self, engine, write_file):
        path = write_file("lib.rs", "a" * 40)
        assert engine.estimate_bundle(_bundle(SelectionItem(path))).total_tokens == 13

    def test_exact_tokenizer_used(self, exact_engine, spy_counter, write_file):
        path = write_file("words.txt", "one two three four")
        summary = exact_engine.estimate_bundle(_bundle(SelectionItem(path)))
        assert summary.total_tokens == 4
        spy_counter.assert_called_once_with("one two three four")

    def test_hello_world_with_tiktoken(self, write_file):
        """o200k_base dem "Hello world!" = 3; heuristic fallback cung = 3."""
        path = write_file("hello.txt", "Hello world!")
        engine = TokenEstimationEngine(
            model=TokenModel.OPENAI_GPT_4O, registry=TokenizerRegistry()
        )
        assert engine.estimate_bundle(_bundle(SelectionItem(path))).total_tokens == 3


class TestCaching:
    """Test fingerprint cache."""

    def test_idempotent_and_cached(self, exact_engine, spy_counter, write_file):
        path = write_file("f.txt", "alpha beta gamma")
        bundle = _bundle(SelectionItem(path))

        first = exact_engine.estimate_bundle(bundle)
        second = exact_engine.estimate_bundle(bundle)

        assert first == second
        assert spy_counter.call_count == 1
        assert exact_engine.cache_size() == 1

    def test_ranges_cached_separately(self, exact_engine, write_file):
        path = write_file("f.txt", "a\nb\nc\n")
        exact_engine.estimate_bundle(
            _bundle(SelectionItem(path), SelectionItem(path, (1, 1)))
        )
        assert exact_engine.cache_size() == 2

    def test_cache_hit_reports_current_note(self, exact_engine, write_file):
        path = write_file("f.txt", "alpha beta")
        exact_engine.estimate_bundle(_bundle(SelectionItem(path, note="old")))
        summary = exact_engine.estimate_bundle(_bundle(SelectionItem(path, note="new")))
        assert summary.items[0].item.note == "new"
        assert exact_engine.cache_size() == 1

    def test_fingerprint_change_recomputes(self, engine, write_file):
        path = write_file("f.txt", "Hello world!")
        assert engine.estimate_bundle(_bundle(SelectionItem(path))).total_tokens == 3

        write_file("f.txt", "Hello world! more words here")
        assert engine.estimate_bundle(_bundle(SelectionItem(path))).total_tokens == 7

    def test_stale_hit_until_invalidated(self, engine, write_file):
        """Cung length va mtime -> cache hit (stale) cho den invalidate_path()."""
        path = write_file("f.txt", "aaaa aaaa")
        stat = os.stat(path)
        assert engine.estimate_bundle(_bundle(SelectionItem(path))).total_tokens == 3

        write_file("f.txt", "b b b b b")
        os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns))
        assert engine.estimate_bundle(_bundle(SelectionItem(path))).total_tokens == 3

        engine.invalidate_path(path)
        assert engine.estimate_bundle(_bundle(SelectionItem(path))).total_tokens == 5

    def test_invalidate_path_only_touches_that_path(self, engine, write_file):
        a = write_file("a.txt", "alpha")
        b = write_file("b.txt", "beta")
        engine.estimate_bundle(_bundle(SelectionItem(a), SelectionItem(a, (1, 1)), SelectionItem(b)))
        assert engine.cache_size() == 3

        engine.invalidate_path(a)
        assert engine.cache_size() == 1

    def test_clear_cache(self, engine, write_file):
        engine.estimate_bundle(_bundle(SelectionItem(write_file("a.txt", "x"))))
        engine.clear_cache()
        assert engine.cache_size() == 0


class TestReadErrors:
    def test_missing_file_raises(self, engine, tmp_path):
        missing = str(tmp_path / "missing.txt")
        with pytest.raises(SelectionReadError) as exc_info:
            engine.estimate_bundle(_bundle(SelectionItem(missing)))
        assert exc_info.value.path == missing

    def test_one_bad_item_aborts_bundle(self, engine, write_file, tmp_path):
        good = write_file("good.txt", "fine")
        missing = str(tmp_path / "gone.txt")
        with pytest.raises(SelectionReadError):
            engine.estimate_bundle(_bundle(SelectionItem(good), SelectionItem(missing)))

    def test_deleted_file_is_not_served_from_cache(self, engine, write_file):
        path = write_file("f.txt", "content")
        engine.estimate_bundle(_bundle(SelectionItem(path)))
        os.remove(path)
        with pytest.raises(SelectionReadError):
            engine.estimate_bundle(_bundle(SelectionItem(path)))


class TestConfiguration:
    """Test set_model / set_token_budget / set_heuristics / from_settings."""

    def test_set_model_clears_cache(self, engine, write_file):
        engine.estimate_bundle(_bundle(SelectionItem(write_file("a.txt", "x"))))
        engine.set_model(TokenModel.ANTHROPIC_CLAUDE_3_HAIKU)
        assert engine.model is TokenModel.ANTHROPIC_CLAUDE_3_HAIKU
        assert engine.cache_size() == 0

    def test_set_same_model_keeps_cache(self, engine, write_file):
        engine.estimate_bundle(_bundle(SelectionItem(write_file("a.txt", "x"))))
        engine.set_model(FALLBACK)
        assert engine.cache_size() == 1

    def test_token_budget_does_not_affect_cache(self, engine, write_file):
        path = write_file("a.txt", "a" * 30)
        engine.estimate_bundle(_bundle(SelectionItem(path)))
        engine.set_token_budget(5)

        summary = engine.estimate_bundle(_bundle(SelectionItem(path)))
        assert engine.cache_size() == 1
        assert summary.token_budget == 5
        assert summary.exceeds_budget is True
        assert summary.remaining_tokens == -3

    def test_set_heuristics_clears_cache(self, engine, write_file):
        path = write_file("a.txt", "a" * 30)
        assert engine.estimate_bundle(_bundle(SelectionItem(path))).total_tokens == 8

        engine.set_heuristics(HeuristicConfig(default_chars_per_token=3.0))
        assert engine.heuristics.default_chars_per_token == 3.0
        assert engine.estimate_bundle(_bundle(SelectionItem(path))).total_tokens == 10

    def test_bundle_model_override(self, engine, write_file):
        path = write_file("a.txt", "a" * 30)
        summary = engine.estimate_bundle(
            _bundle(SelectionItem(path), model="anthropic:claude-3-haiku")
        )
        assert summary.model is TokenModel.ANTHROPIC_CLAUDE_3_HAIKU
        assert summary.total_tokens == 10
        assert summary.context_window == 200_000
        assert engine.model is FALLBACK

    def test_invalid_override_uses_engine_model(self, engine, write_file):
        path = write_file("a.txt", "a" * 30)
        summary = engine.estimate_bundle(_bundle(SelectionItem(path), model="gpt-99"))
        assert summary.model is FALLBACK
        assert summary.total_tokens == 8

    def test_from_settings(self, heuristic_registry):
        settings = AppSettings(
            model_id="anthropic:claude-3.5-sonnet",
            token_budget=1234,
            anthropic_chars_per_token=2.5,
        )
        engine = TokenEstimationEngine.from_settings(settings, registry=heuristic_registry)
        assert engine.model is TokenModel.ANTHROPIC_CLAUDE_35_SONNET
        assert engine.token_budget == 1234
        assert engine.heuristics.anthropic_chars_per_token == 2.5

    def test_from_settings_invalid_model(self, heuristic_registry):
        with patch("services.token_estimation_service.log_warning") as mock_warn:
            engine = TokenEstimationEngine.from_settings(
                AppSettings(model_id="nope"), registry=heuristic_registry
            )
        assert engine.model is TokenModel.default()
        mock_warn.assert_called_once()

    def test_from_settings_anthropic_repo(self):
        registry = TokenizerRegistry()
        TokenEstimationEngine.from_settings(
            AppSettings(anthropic_tokenizer_repo="org/tok"), registry=registry
        )
        assert registry.family_for(TokenModel.ANTHROPIC_CLAUDE_3_HAIKU) == "hf:org/tok"

    def test_from_settings_repo_does_not_touch_shared_registry(self):
        """Repo trong settings chi anh huong engine do, khong phai registry dung chung."""
        reset_tokenizer_registry()
        try:
            with_repo = TokenEstimationEngine.from_settings(
                AppSettings(anthropic_tokenizer_repo="org/tok")
            )
            plain = TokenEstimationEngine.from_settings(AppSettings())

            haiku = TokenModel.ANTHROPIC_CLAUDE_3_HAIKU
            assert with_repo.registry.family_for(haiku) == "hf:org/tok"
            assert plain.registry is get_tokenizer_registry()
            assert plain.registry.family_for(haiku) == "cl100k_base"
            assert with_repo.registry is not plain.registry
        finally:
            reset_tokenizer_registry()

    def test_estimate_text(self, engine):
        assert engine.estimate_text("Hello world!") == 3
        assert engine.estimate_text("a" * 40, path="main.py") == 13
        assert engine.estimate_text("a" * 30, model=TokenModel.ANTHROPIC_CLAUDE_3_HAIKU) == 10
        assert engine.estimate_text("   ") == 0


class TestTokenizerFallback:
    """Test fallback ve heuristic khi exact tokenizer khong dung duoc."""

    def test_counter_error_falls_back(self, write_file):
        registry = TokenizerRegistry()
        registry.register_family("o200k_base", lambda: Mock(side_effect=RuntimeError("boom")))
        engine = TokenEstimationEngine(model=TokenModel.OPENAI_GPT_4O, registry=registry)
        path = write_file("hello.txt", "Hello world!")

        with patch("services.token_estimation_service.log_error") as mock_log:
            summary = engine.estimate_bundle(_bundle(SelectionItem(path)))

        assert summary.total_tokens == 3
        mock_log.assert_called_once()

    def test_unavailable_tokenizer_warns_once(self, write_file):
        registry = TokenizerRegistry()
        registry.register_family("o200k_base", Mock(side_effect=RuntimeError("offline")))
        engine = TokenEstimationEngine(model=TokenModel.OPENAI_GPT_4O, registry=registry)
        a = write_file("a.txt", "a" * 30)
        b = write_file("b.txt", "Hello world!")

        with patch("services.token_estimation_service.log_warning") as mock_warn, patch(
            "core.tokenization.registry.log_error"
        ):
            summary = engine.estimate_bundle(_bundle(SelectionItem(a), SelectionItem(b)))

        assert summary.total_tokens == 8 + 3
        mock_warn.assert_called_once()


class TestConcurrency:
    def test_concurrent_estimates_are_consistent(self, exact_engine, tmp_path):
        paths = []
        for i in range(10):
            path = tmp_path / f"file_{i}.txt"
            path.write_text(" ".join(["word"] * (i + 1)), encoding="utf-8")
            paths.append(str(path))
        bundle = _bundle(*[SelectionItem(p) for p in paths])

        results = []
        errors = []

        def worker():
            try:
                for _ in range(20):
                    results.append(exact_engine.estimate_bundle(bundle).total_tokens)
                    exact_engine.invalidate_path(paths[0])
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert set(results) == {sum(range(1, 11))}
