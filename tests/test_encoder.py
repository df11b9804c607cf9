import pytest

from packages.explain_engine.encoder import (
    EncodedExample,
    FeatureEncoder,
    categorical_surrogate,
    parse_value,
)
from packages.explain_engine.errors import EncodingError


@pytest.fixture
def encoder(logger):
    return FeatureEncoder(["@value"], logger=logger)


def test_follows_vocabulary_order(encoder):
    example = encoder.encode({"c": "3", "a": "1", "b": "2"}, ["a", "b", "c"])
    assert example.names == ("a", "b", "c")
    assert example.values == (1.0, 2.0, 3.0)


def test_missing_and_blank_features_are_absent_not_zero(encoder):
    example = encoder.encode({"a": "1.5", "b": "   ", "z": "9"}, ["a", "b", "c"])
    assert example.names == ("a",)
    assert example.values == (1.5,)


def test_derived_suffix_alias(encoder):
    example = encoder.encode({"age": "42"}, ["age@value", "income@value"])
    assert example.as_dict() == {"age@value": 42.0}


def test_exact_identifier_wins_over_alias(encoder):
    example = encoder.encode({"age@value": "1", "age": "2"}, ["age@value"])
    assert example.value_of("age@value") == 1.0


def test_normalized_spelling_alias(encoder):
    example = encoder.encode({" Loan Amount ": "5000"}, ["loan_amount"])
    assert example.as_dict() == {"loan_amount": 5000.0}


def test_categorical_values_get_stable_surrogates(encoder):
    first = encoder.encode({"color": "red"}, ["color"])
    second = encoder.encode({"color": "red"}, ["color"])
    other = encoder.encode({"color": "blue"}, ["color"])

    assert first == second
    assert first.value_of("color") == categorical_surrogate("red")
    assert first.value_of("color") != other.value_of("color")
    assert float(first.value_of("color")).is_integer()
    assert -(2**31) <= first.value_of("color") < 2**31


@pytest.mark.parametrize("raw", ["nan", "inf", "-Infinity"])
def test_non_finite_strings_are_treated_as_categorical(raw):
    assert parse_value(raw) == categorical_surrogate(raw)


def test_parse_value_handles_numbers_and_blanks():
    assert parse_value(" 3.25 ") == 3.25
    assert parse_value(7) == 7.0
    assert parse_value(None) is None
    assert parse_value("") is None


def test_no_resolvable_feature_raises(encoder):
    with pytest.raises(EncodingError) as info:
        encoder.encode({"x": "1", "y": "2"}, ["a", "b"])
    assert info.value.error_code == "ENCODING_ERROR"


def test_only_blank_values_raise(encoder):
    with pytest.raises(EncodingError):
        encoder.encode({"a": ""}, ["a"])


def test_with_value_returns_a_new_example():
    example = EncodedExample(("a", "b"), (1.0, 2.0))
    bumped = example.with_value("b", 2.5)

    assert bumped.values == (1.0, 2.5)
    assert example.values == (1.0, 2.0)


def test_mismatched_arrays_are_rejected():
    with pytest.raises(ValueError):
        EncodedExample(("a", "b"), (1.0,))
