"""Selection of endpoints that get their own aggregate."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Set

from metrics_relay.errors import ConfigurationError

SAMPLERS_SEPARATOR = ";"


class SamplerFilter:
    """Admits labels by explicit list or by a regular expression.

    The expression must match the whole label.
    """

    def __init__(self, labels: Iterable[str] = (), pattern: Optional[re.Pattern] = None) -> None:
        self._labels: Set[str] = set(labels)
        self._pattern = pattern

    @classmethod
    def from_samplers_list(cls, samplers_list: str, use_regexp: bool) -> "SamplerFilter":
        """Build a filter from the ``samplersList`` parameter value."""
        if use_regexp:
            try:
                return cls(pattern=re.compile(samplers_list))
            except re.error as exc:
                raise ConfigurationError(f"Invalid samplers regular expression {samplers_list!r}: {exc}") from exc
        return cls(labels=samplers_list.split(SAMPLERS_SEPARATOR))

    @property
    def uses_regexp(self) -> bool:
        return self._pattern is not None

    def matches(self, label: str) -> bool:
        if self._pattern is not None:
            return self._pattern.fullmatch(label) is not None
        return label in self._labels

    def clear(self) -> None:
        """Forget every admitted label; an expression filter is dropped too."""
        self._labels.clear()
        self._pattern = None
