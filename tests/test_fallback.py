import pytest

from packages.contracts.vocabulary.explain import Direction, OutputKind
from packages.explain_engine.encoder import EncodedExample
from packages.explain_engine.fallback import FallbackHeuristicGenerator
from packages.lucid_lib.config.explain import DEFAULT_FEATURE_MULTIPLIERS


@pytest.fixture
def generator(logger):
    return FallbackHeuristicGenerator(
        DEFAULT_FEATURE_MULTIPLIERS, negative_features=["debt"], logger=logger
    )


@pytest.mark.parametrize(
    "name, expected",
    [
        ("age", 1.2),
        ("AGE", 1.2),
        ("credit_score", 1.5),
        ("petal_width", 2.0),
        ("age_count", 1.2),  # first table key contained in the name
        ("income", 1.0),
    ],
)
def test_multiplier_lookup(generator, name, expected):
    assert generator.multiplier(name) == expected


def test_exact_match_beats_substring(logger):
    generator = FallbackHeuristicGenerator({"score": 1.5, "score_delta": 3.0}, logger=logger)
    assert generator.multiplier("score_delta") == 3.0
    assert generator.multiplier("Score_Delta") == 3.0


def test_regression_contributions(generator):
    example = EncodedExample(("income", "age"), (10.0, -30.0))
    by_name = {c.feature_name: c for c in generator.generate(example, OutputKind.REGRESSION)}

    assert by_name["income"].contribution == pytest.approx(10 * 0.2 * 1.0)
    assert by_name["age"].contribution == pytest.approx(30 * 0.2 * 1.2)
    assert by_name["age"].direction == Direction.POSITIVE


def test_classification_uses_its_own_base_factor(generator):
    example = EncodedExample(("income",), (10.0,))
    (contribution,) = generator.generate(example, OutputKind.CLASSIFICATION)
    assert contribution.contribution == pytest.approx(2.5)


def test_unknown_kind_uses_regression_factor(generator):
    assert generator.base_factor(None) == 0.2


def test_zero_values_stay_visible(generator):
    example = EncodedExample(("income", "total_debt"), (0.0, 0.0))
    contributions = generator.generate(example, OutputKind.REGRESSION)

    assert [c.contribution for c in contributions] == [0.01, 0.01]
    assert contributions[1].direction == Direction.NEGATIVE


def test_one_contribution_per_present_feature(generator):
    example = EncodedExample(("a", "b", "c"), (1.0, 2.0, 3.0))
    names = [c.feature_name for c in generator.generate(example, OutputKind.REGRESSION)]
    assert names == ["a", "b", "c"]
