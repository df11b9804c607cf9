import json
import sys

import pytest
from loguru import logger as _logger
from sklearn.linear_model import LinearRegression
import pandas as pd

from apps.explainer import main as cli
from packages.contracts.vocabulary.explain import OutputKind
from packages.ml_ops.modeling.pipeline import TrainedModel
from packages.ml_ops.registry_client import RegistryClient


@pytest.fixture(autouse=True)
def isolated_cli(monkeypatch, make_settings):
    monkeypatch.setattr(cli, "settings", make_settings())
    yield
    # The CLI installs its own sinks; restore a plain stderr sink for the other tests
    _logger.remove()
    _logger.add(lambda message: sys.stderr.write(message))


@pytest.fixture
def model_path(tmp_path):
    X = pd.DataFrame({"rooms": [1.0, 2.0, 3.0, 4.0], "age": [10.0, 5.0, 20.0, 1.0]})
    y = 50 * X["rooms"] - 0.5 * X["age"]
    trained = TrainedModel(LinearRegression().fit(X, y), ["rooms", "age"], OutputKind.REGRESSION)

    path = tmp_path / "model.joblib"
    trained.save(path)
    return path


def _run(capsys, *argv):
    code = cli.main(list(argv))
    out, err = capsys.readouterr()
    return code, out, err


def test_explain_prints_the_payload(capsys, model_path):
    code, out, _ = _run(capsys, "explain", "--model", str(model_path), "-f", "rooms=3", "-f", "age=20")
    payload = json.loads(out)

    assert code == 0
    assert [c["featureName"] for c in payload["featureContributions"]] == ["rooms", "age"]
    assert payload["featureContributions"][1]["direction"] == "negative"
    assert float(payload["prediction"]) == pytest.approx(140.0)


def test_input_file_and_inline_values(capsys, tmp_path, model_path):
    input_file = tmp_path / "input.json"
    input_file.write_text(json.dumps({"rooms": 2, "age": 4}), encoding="utf-8")

    code, out, _ = _run(
        capsys, "predict", "--model", str(model_path), "--input", str(input_file), "-f", "age=0"
    )
    payload = json.loads(out)

    assert code == 0
    assert payload["inputData"] == {"rooms": "2", "age": "0"}
    assert float(payload["prediction"]) == pytest.approx(100.0)
    assert payload["confidence"] == 1.0


def test_unknown_features_exit_with_an_error(capsys, model_path):
    code, out, err = _run(capsys, "explain", "--model", str(model_path), "-f", "colour=red")

    assert code == 1
    assert out == ""
    assert json.loads(err.strip().splitlines()[-1])["error"] == "ENCODING_ERROR"


def test_missing_model_exits_with_an_error(capsys, tmp_path):
    code, _, err = _run(capsys, "explain", "--model", str(tmp_path / "nope.joblib"), "-f", "a=1")

    assert code == 1
    assert json.loads(err.strip().splitlines()[-1])["error"] == "MODEL_LOAD_ERROR"


def test_registry_models_are_resolved_by_alias(capsys, monkeypatch, model_path):
    requested = []

    def fake_load(self, name, alias="production"):
        requested.append((name, alias))
        return TrainedModel.load(model_path)

    monkeypatch.setattr(RegistryClient, "load_model", fake_load)
    code, out, _ = _run(capsys, "predict", "--registry", "house-prices", "-f", "rooms=1", "-f", "age=0")

    assert code == 0
    assert requested == [("house-prices", "production")]
    assert float(json.loads(out)["prediction"]) == pytest.approx(50.0)


def test_unavailable_registry_model(capsys, monkeypatch):
    monkeypatch.setattr(RegistryClient, "load_model", lambda self, name, alias="production": None)
    code, _, err = _run(capsys, "explain", "--registry", "gone", "--alias", "staging", "-f", "a=1")

    assert code == 1
    assert json.loads(err.strip().splitlines()[-1])["error"] == "MODEL_LOAD_ERROR"


@pytest.mark.parametrize(
    "argv",
    [
        ["explain", "--model", "m.joblib"],
        ["explain", "--model", "m.joblib", "-f", "no-equals-sign"],
        ["explain", "-f", "a=1"],
        ["explain", "--model", "m.joblib", "--registry", "x", "-f", "a=1"],
    ],
)
def test_argument_errors_exit_with_status_two(argv):
    with pytest.raises(SystemExit) as info:
        cli.main(argv)
    assert info.value.code == 2
