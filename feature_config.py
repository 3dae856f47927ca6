from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol


class FeatureLookup(Protocol):
    def get_feature_index(self, name: str) -> int:
        ...

    def get_feature_name(self, index: int) -> str:
        ...


@dataclass
class FeatureConfig:
    """In-memory name <-> index table for the features of a model."""

    feature_names: list[str]
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.feature_names = list(self.feature_names)
        self._index = {}
        for idx, name in enumerate(self.feature_names):
            if not isinstance(name, str) or not name:
                raise ValueError(f"feature name at position {idx} must be a non-empty string")
            if name in self._index:
                raise ValueError(f"duplicate feature name: {name!r}")
            self._index[name] = idx

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeatureConfig":
        if "features" not in data:
            raise ValueError("config must contain a 'features' list")

        names: list[str] = []
        for entry in data["features"]:
            if isinstance(entry, Mapping):
                if "name" not in entry:
                    raise ValueError("feature entry is missing 'name'")
                names.append(entry["name"])
            else:
                names.append(entry)
        return cls(feature_names=names)

    @property
    def num_features(self) -> int:
        return len(self.feature_names)

    def get_feature_index(self, name: str) -> int:
        return self._index.get(name, -1)

    def get_feature_name(self, index: int) -> str:
        if not 0 <= index < len(self.feature_names):
            raise IndexError(
                f"feature index {index} out of range for {len(self.feature_names)} features"
            )
        return self.feature_names[index]
