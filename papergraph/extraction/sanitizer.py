"""
PaperGraph Sanitizer - Field-level coercion of untyped model output.

The model provider gives no schema guarantee, so every value read from a
stage response goes through one of these helpers. Each helper returns a
value of the expected type and range; whenever it has to substitute a
default, clamp, truncate or drop something, it records a Substitution so
the caller can see what was changed.

Example:
    sanitizer = Sanitizer()
    confidence = sanitizer.confidence(raw.get("confidence"), "confidence")
    if sanitizer.substitutions:
        logger.debug(sanitizer.summary())
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, TypeVar


T = TypeVar("T")

DEFAULT_CONFIDENCE = 0.5
DEFAULT_RELEVANCE = 3


@dataclass(frozen=True)
class Substitution:
    """One change made while sanitizing a response."""
    path: str
    reason: str


def is_number(value: Any) -> bool:
    """True for finite ints and floats; booleans do not count."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def round_half_up(value: float) -> int:
    """Round 2.5 to 3, matching how scores are read by users."""
    return int(math.floor(value + 0.5))


def _number_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Sanitizer:
    """Collects substitutions while coercing untyped values."""

    def __init__(self) -> None:
        self.substitutions: List[Substitution] = []

    def note(self, path: str, reason: str) -> None:
        self.substitutions.append(Substitution(path, reason))

    def summary(self) -> str:
        return "; ".join(f"{s.path}: {s.reason}" for s in self.substitutions)

    # -------------------------------------------------------------------------
    # Containers
    # -------------------------------------------------------------------------

    def mapping(self, value: Any, path: str) -> Dict[str, Any]:
        """An object field; anything else becomes an empty dict."""
        if isinstance(value, dict):
            return value
        if value is not None:
            self.note(path, f"expected object, got {type(value).__name__}")
        return {}

    def records(
        self,
        value: Any,
        path: str,
        limit: Optional[int] = None,
    ) -> Iterator[Tuple[str, Dict[str, Any]]]:
        """
        Iterate over the object entries of a list field.

        Non-object entries are dropped and the list is cut to ``limit``
        entries. Yields ``(item_path, item)`` pairs.
        """
        if not isinstance(value, list):
            if value is not None:
                self.note(path, f"expected list, got {type(value).__name__}")
            return iter(())

        items = [item for item in value if isinstance(item, dict)]
        if len(items) < len(value):
            self.note(path, f"dropped {len(value) - len(items)} non-object entries")
        if limit is not None and len(items) > limit:
            self.note(path, f"truncated from {len(items)} to {limit} entries")
            items = items[:limit]
        return ((f"{path}[{i}]", item) for i, item in enumerate(items))

    def strings(
        self,
        value: Any,
        path: str,
        limit: int,
        max_length: Optional[int] = None,
    ) -> List[str]:
        """A list of non-empty strings; numbers are stringified, other entries dropped."""
        if not isinstance(value, list):
            if value is not None:
                self.note(path, f"expected list, got {type(value).__name__}")
            return []

        result = []
        for item in value:
            if isinstance(item, str) and item:
                result.append(item)
            elif is_number(item):
                result.append(_number_text(item))
        if len(result) < len(value):
            self.note(path, f"dropped {len(value) - len(result)} empty or non-text entries")
        if len(result) > limit:
            self.note(path, f"truncated from {len(result)} to {limit} entries")
            result = result[:limit]
        if max_length is not None:
            result = [self._cut(s, f"{path}[{i}]", max_length) for i, s in enumerate(result)]
        return result

    # -------------------------------------------------------------------------
    # Scalars
    # -------------------------------------------------------------------------

    def _cut(self, text: str, path: str, max_length: Optional[int]) -> str:
        if max_length is not None and len(text) > max_length:
            self.note(path, f"truncated to {max_length} chars")
            return text[:max_length]
        return text

    def text(
        self,
        value: Any,
        path: str,
        default: str = "",
        max_length: Optional[int] = None,
    ) -> str:
        """
        A required string. Empty or non-text values become ``default``;
        numbers are stringified.
        """
        if isinstance(value, str) and value:
            return self._cut(value, path, max_length)
        if is_number(value) and value != 0:
            self.note(path, "converted number to text")
            return self._cut(_number_text(value), path, max_length)
        if value is None or value != default:
            self.note(path, f"missing or invalid, using {default!r}")
        return default

    def optional_text(
        self,
        value: Any,
        path: str,
        max_length: Optional[int] = None,
    ) -> Optional[str]:
        """A string or None. Non-string values become None."""
        if isinstance(value, str):
            return self._cut(value, path, max_length)
        if value is not None:
            self.note(path, f"expected text, got {type(value).__name__}")
        return None

    def choice(self, value: Any, allowed: Sequence[T], default: T, path: str) -> T:
        """A closed-set value; anything outside the set becomes ``default``."""
        if isinstance(value, str) and value in allowed:
            return value
        self.note(path, f"invalid value {value!r}, using {default!r}")
        return default

    def optional_choice(self, value: Any, allowed: Sequence[T], path: str) -> Optional[T]:
        if isinstance(value, str) and value in allowed:
            return value
        if value is not None:
            self.note(path, f"invalid value {value!r}, dropped")
        return None

    def flag(self, value: Any, path: str) -> bool:
        """Only a literal ``true`` counts as set."""
        if value is not None and not isinstance(value, bool):
            self.note(path, f"expected boolean, got {type(value).__name__}")
        return value is True

    def confidence(self, value: Any, path: str) -> float:
        """Clamp into [0, 1]; non-numeric values become 0.5."""
        if not is_number(value):
            self.note(path, f"not a number, using {DEFAULT_CONFIDENCE}")
            return DEFAULT_CONFIDENCE
        clamped = max(0.0, min(1.0, float(value)))
        if clamped != value:
            self.note(path, f"clamped {value} to {clamped}")
        return clamped

    def relevance(self, value: Any, path: str) -> int:
        """Round and clamp into the 1..5 scale; non-numeric values become 3."""
        if not is_number(value):
            self.note(path, f"not a number, using {DEFAULT_RELEVANCE}")
            return DEFAULT_RELEVANCE
        return self.bounded_int(value, path, 1, 5, DEFAULT_RELEVANCE)

    def bounded_int(self, value: Any, path: str, low: int, high: int, default: int) -> int:
        if not is_number(value):
            self.note(path, f"not a number, using {default}")
            return default
        result = max(low, min(high, round_half_up(value)))
        # 4.0 == 4, so whole floats pass without a note
        if result != value:
            self.note(path, f"adjusted {value} to {result}")
        return result

    def index(self, value: Any, path: str) -> Optional[int]:
        """
        A position into another collection.

        Only non-negative integers are kept; whether the position exists is
        checked when the graph is assembled.
        """
        if is_number(value) and value >= 0 and float(value).is_integer():
            return int(value)
        self.note(path, f"invalid index {value!r}")
        return None

    def page_number(self, value: Any, path: str) -> Optional[int]:
        if value is None:
            return None
        if is_number(value) and value > 0 and float(value).is_integer():
            return int(value)
        self.note(path, f"invalid page number {value!r}")
        return None

    def page_numbers(self, value: Any, path: str, limit: int) -> List[int]:
        if not isinstance(value, list):
            if value is not None:
                self.note(path, f"expected list, got {type(value).__name__}")
            return []
        pages = [
            int(n) for n in value
            if is_number(n) and n > 0 and float(n).is_integer()
        ]
        if len(pages) < len(value):
            self.note(path, f"dropped {len(value) - len(pages)} invalid page numbers")
        if len(pages) > limit:
            self.note(path, f"truncated from {len(pages)} to {limit} entries")
            pages = pages[:limit]
        return pages

    def indices(self, value: Any, path: str, limit: int) -> List[int]:
        if not isinstance(value, list):
            if value is not None:
                self.note(path, f"expected list, got {type(value).__name__}")
            return []
        result = [
            int(i) for i in value
            if is_number(i) and i >= 0 and float(i).is_integer()
        ]
        if len(result) < len(value):
            self.note(path, f"dropped {len(value) - len(result)} invalid indices")
        if len(result) > limit:
            self.note(path, f"truncated from {len(result)} to {limit} entries")
            result = result[:limit]
        return result

    def cell_values(self, value: Any, path: str) -> Dict[str, str]:
        """A table row mapping; keys and values are stringified."""
        if not isinstance(value, dict):
            if value is not None:
                self.note(path, f"expected object, got {type(value).__name__}")
            return {}
        cells = {}
        for key, cell in value.items():
            if isinstance(cell, str):
                cells[str(key)] = cell
            elif cell is None:
                self.note(f"{path}.{key}", "null cell, using empty string")
                cells[str(key)] = ""
            elif isinstance(cell, bool):
                self.note(f"{path}.{key}", "converted boolean to text")
                cells[str(key)] = "true" if cell else "false"
            else:
                self.note(f"{path}.{key}", "converted value to text")
                cells[str(key)] = _number_text(cell) if is_number(cell) else str(cell)
        return cells
