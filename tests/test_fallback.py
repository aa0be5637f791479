import pytest

from core.fallback import AllProvidersFailed, ProviderError, ProviderUnavailable, run_with_fallback


def _fail(message, error=ProviderError):
    def strategy():
        raise error(message)
    return strategy


def test_first_success_wins_and_later_providers_not_called():
    called = []

    def second():
        called.append("second")
        return "b"

    name, result = run_with_fallback("op", [("first", lambda: "a"), ("second", second)])

    assert (name, result) == ("first", "a")
    assert called == []


def test_falls_back_after_any_exception():
    name, result = run_with_fallback("op", [("first", _fail("boom")), ("second", lambda: 42)])
    assert (name, result) == ("second", 42)


def test_all_failed_keeps_errors_in_order():
    with pytest.raises(AllProvidersFailed) as excinfo:
        run_with_fallback(
            "op",
            [("first", _fail("one")), ("second", _fail("two"))],
            failure_message="nothing worked"
        )

    assert str(excinfo.value) == "nothing worked"
    assert [name for name, _ in excinfo.value.errors] == ["first", "second"]
    assert str(excinfo.value.last_error) == "two"


def test_default_failure_message_mentions_last_error():
    with pytest.raises(AllProvidersFailed, match="op failed via all methods: missing key"):
        run_with_fallback("op", [("only", _fail("missing key", ProviderUnavailable))])


def test_empty_chain_is_an_error():
    with pytest.raises(ProviderError):
        run_with_fallback("op", [])


def test_failure_message_placeholder_takes_last_error():
    with pytest.raises(AllProvidersFailed) as excinfo:
        run_with_fallback(
            "op",
            [("first", _fail("one")), ("second", _fail("private video"))],
            failure_message="Failed to fetch video via all methods: {error}"
        )

    assert str(excinfo.value) == "Failed to fetch video via all methods: private video"
