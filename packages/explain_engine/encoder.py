# packages/explain_engine/encoder.py

import hashlib
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from packages.lucid_lib.logging import get_component_logger
from .errors import EncodingError


@dataclass(frozen=True)
class EncodedExample:
    """
    Parallel arrays of feature names and numeric values, in vocabulary order.
    Features that were missing from the request are absent, not zero-filled.
    """

    names: Tuple[str, ...]
    values: Tuple[float, ...]

    def __post_init__(self):
        if len(self.names) != len(self.values):
            raise ValueError(
                f"names/values length mismatch: {len(self.names)} != {len(self.values)}"
            )

    def __len__(self) -> int:
        return len(self.names)

    def __iter__(self):
        return iter(zip(self.names, self.values))

    def value_of(self, name: str) -> float:
        return self.values[self.names.index(name)]

    def with_value(self, name: str, value: float) -> "EncodedExample":
        """Copy of this example with a single feature replaced."""
        idx = self.names.index(name)
        values = list(self.values)
        values[idx] = float(value)
        return EncodedExample(self.names, tuple(values))

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(self.names, self.values))


def normalize_name(name: str) -> str:
    return name.strip().lower().replace(" ", "_").replace("-", "_")


def categorical_surrogate(text: str) -> float:
    """
    Deterministic numeric stand-in for a non-numeric value.
    Signed 32-bit integer taken from the SHA-1 digest, so it is stable across processes.
    """
    digest = hashlib.sha1(text.encode("utf-8")).digest()
    return float(int.from_bytes(digest[:4], byteorder="big", signed=True))


def parse_value(raw: Any) -> Optional[float]:
    """Raw request value -> float. Returns None for missing or blank values."""
    if raw is None:
        return None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        number = float(raw)
        return number if math.isfinite(number) else categorical_surrogate(str(raw))

    text = str(raw).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return categorical_surrogate(text)

    # "nan" / "inf" parse as floats but cannot be perturbed meaningfully
    if not math.isfinite(number):
        return categorical_surrogate(text)
    return number


class FeatureEncoder:
    """Maps a named request (feature -> raw value) onto a model's feature vocabulary."""

    def __init__(self, derived_suffixes: Iterable[str] = ("@value",), logger=None):
        self.derived_suffixes = [s for s in derived_suffixes if s]
        self.logger = get_component_logger("encoder", logger)

    def _aliases(self, feature: str) -> List[str]:
        aliases = []
        for suffix in self.derived_suffixes:
            if feature.endswith(suffix) and len(feature) > len(suffix):
                aliases.append(feature[: -len(suffix)])
        return aliases

    def _lookup(
        self,
        feature: str,
        named_input: Mapping[str, Any],
        normalized_keys: Mapping[str, str],
    ) -> Any:
        # 1. Exact identifier
        if feature in named_input:
            return named_input[feature]

        # 2. Vocabulary uses a derived name (e.g. "age@value")
        candidates = self._aliases(feature)
        for alias in candidates:
            if alias in named_input:
                return named_input[alias]

        # 3. Loose match on normalized spelling
        for candidate in [feature] + candidates:
            key = normalized_keys.get(normalize_name(candidate))
            if key is not None:
                return named_input[key]
        return None

    def encode(
        self, named_input: Mapping[str, Any], vocabulary: Sequence[str]
    ) -> EncodedExample:
        normalized_keys: Dict[str, str] = {}
        for key in named_input:
            normalized_keys.setdefault(normalize_name(str(key)), key)

        names, values = [], []
        for feature in vocabulary:
            value = parse_value(self._lookup(feature, named_input, normalized_keys))
            if value is None:
                continue
            names.append(feature)
            values.append(value)

        if not names:
            raise EncodingError(
                f"No input feature matched the model vocabulary "
                f"(requested: {sorted(map(str, named_input))}, "
                f"vocabulary size: {len(vocabulary)})"
            )

        skipped = len(vocabulary) - len(names)
        self.logger.debug(
            f"Encoded {len(names)}/{len(vocabulary)} features ({skipped} missing or blank)."
        )
        return EncodedExample(tuple(names), tuple(values))
