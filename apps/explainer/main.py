import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

# --- Library Imports ---
from packages.lucid_lib.config import settings
from packages.lucid_lib.logging import LogManager

from packages.explain_engine.errors import ModelLoadError, XaiError
from packages.explain_engine.service import ExplainService
from packages.ml_ops.modeling.pipeline import TrainedModel, load_model
from packages.ml_ops.registry_client import RegistryClient


def _parse_features(pairs: List[str]) -> Dict[str, str]:
    features = {}
    for pair in pairs:
        if "=" not in pair:
            raise argparse.ArgumentTypeError(f"Expected name=value, got '{pair}'")
        name, value = pair.split("=", 1)
        features[name.strip()] = value
    return features


def _read_input(args) -> Dict[str, str]:
    named_input: Dict[str, str] = {}
    if args.input:
        payload = json.loads(Path(args.input).read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise argparse.ArgumentTypeError("Input JSON must be an object of name -> value.")
        named_input.update({str(k): "" if v is None else str(v) for k, v in payload.items()})
    # Inline values win over the file
    named_input.update(_parse_features(args.feature or []))
    return named_input


def _resolve_model(args, logger) -> TrainedModel:
    if args.model is not None:
        return load_model(args.model)

    alias = args.alias or settings.mlflow.default_alias
    client = RegistryClient(settings.mlflow.tracking_uri, logger=logger)
    trained = client.load_model(args.registry, alias)
    if trained is None:
        raise ModelLoadError(f"Registry model '{args.registry}@{alias}' is unavailable.")
    return trained


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lucid prediction explainer")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("explain", "Explain a single prediction by perturbing its features."),
        ("predict", "Run a plain prediction without an explanation."),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        source = sub.add_mutually_exclusive_group(required=True)
        source.add_argument("--model", type=Path, help="Path to a saved model artifact.")
        source.add_argument("--registry", metavar="NAME", help="Registered MLflow model name.")
        sub.add_argument("--alias", help="Registry alias (default: MLFLOW_MODEL_ALIAS).")
        sub.add_argument("--input", type=Path, help="JSON file with feature name -> value.")
        sub.add_argument(
            "-f",
            "--feature",
            action="append",
            metavar="NAME=VALUE",
            help="Feature value; may be repeated.",
        )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    lm = LogManager("explainer-cli", settings.system.debug, settings.system.log_dir)
    logger = lm.get_logger("cli")

    try:
        named_input = _read_input(args)
    except (argparse.ArgumentTypeError, OSError, json.JSONDecodeError) as e:
        parser.error(str(e))

    if not named_input:
        parser.error("No feature values given. Use --input and/or -f NAME=VALUE.")

    try:
        model = _resolve_model(args, logger)
        service = ExplainService(settings, logger=logger)
        if args.command == "explain":
            result = service.explain(model, named_input)
        else:
            result = service.predict(model, named_input)
    except XaiError as e:
        logger.error(f"[{e.error_code}] {e}")
        print(json.dumps({"error": e.error_code, "message": e.user_message}), file=sys.stderr)
        return 1

    print(json.dumps(result.to_payload(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
