import pytest

from callwire.core.dispatch.coercion import NULL_TOKEN, coerce_arguments
from callwire.core.errors import ArgumentError, ArityError, UnsupportedType


@pytest.mark.ut
def test_coerce_mixed_kinds(registry):
    def f(a: int, b: str, c: str | None, d) -> None:
        pass

    registry.register("f", f)

    args = coerce_arguments(registry.lookup("f"), [b"-42", b"text", b"value", b"raw"])

    assert args == [-42, "text", "value", "raw"]


@pytest.mark.ut
def test_null_token_only_maps_to_none_for_optional_text(registry):
    entry = registry.lookup("greet")

    assert coerce_arguments(entry, [NULL_TOKEN.encode()]) == [None]
    assert coerce_arguments(registry.lookup("echo"), [b"null"]) == ["null"]


@pytest.mark.ut
def test_empty_token_is_empty_text(registry):
    assert coerce_arguments(registry.lookup("echo"), [b""]) == [""]


@pytest.mark.ut
@pytest.mark.parametrize("token", [b"abc", b"", b"1.5", b" 7", b"1_000", b"0x10", b"+"])
def test_integer_rejects_non_decimal(registry, token):
    with pytest.raises(ArgumentError) as info:
        coerce_arguments(registry.lookup("getByID"), [token])

    assert info.value.position == 0
    assert "expected a base-10 integer" in info.value.message


@pytest.mark.ut
@pytest.mark.parametrize("token, expected", [(b"0", 0), (b"+7", 7), (b"-12", -12), (b"007", 7)])
def test_integer_accepts_signed_decimal(registry, token, expected):
    assert coerce_arguments(registry.lookup("getByID"), [token]) == [expected]


@pytest.mark.ut
def test_integers_are_not_range_limited(registry):
    big = str(2 ** 80).encode()

    assert coerce_arguments(registry.lookup("getByID"), [big]) == [2 ** 80]


@pytest.mark.ut
def test_arity_checked_before_conversion(registry):
    with pytest.raises(ArityError) as info:
        coerce_arguments(registry.lookup("divmod"), [b"abc"])

    assert info.value.expected == 2
    assert info.value.received == 1


@pytest.mark.ut
def test_invalid_utf8_is_an_argument_error(registry):
    with pytest.raises(ArgumentError):
        coerce_arguments(registry.lookup("echo"), [b"\xff\xfe"])


@pytest.mark.ut
def test_unsupported_kind_fails_at_call_time(registry):
    with pytest.raises(UnsupportedType) as info:
        coerce_arguments(registry.lookup("ratio"), [b"1.5"])

    assert info.value.position == 0
    assert "float" in info.value.message


@pytest.mark.ut
def test_first_failure_aborts(registry):
    with pytest.raises(ArgumentError) as info:
        coerce_arguments(registry.lookup("divmod"), [b"x", b"y"])

    assert info.value.position == 0


@pytest.mark.ut
def test_integer_beyond_conversion_limit_is_an_argument_error(registry):
    with pytest.raises(ArgumentError) as info:
        coerce_arguments(registry.lookup("getByID"), [b"9" * 5000])

    assert info.value.position == 0
