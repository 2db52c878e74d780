import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubField:
    name: str
    suffix: str = ""
    required: bool = True


@dataclass(frozen=True)
class IndexedKeyFamily:
    """
    A family of numbered env vars, e.g. GEMINI_API_KEY_1 .. GEMINI_API_KEY_25.

    Each index may carry several sub-fields (CHAT_DB_3_URL, CHAT_DB_3_SERVICE_KEY).
    Fallback prefixes are tried after the primary name, in order.
    """
    name: str
    prefix: str
    max_index: int
    fields: Tuple[SubField, ...] = (SubField("value"),)
    fallback_prefixes: Tuple[str, ...] = ()

    def key_name(self, index: int, sub: SubField, fallback: str = "") -> str:
        return f"{fallback}{self.prefix}{index}{sub.suffix}"

    def candidates(self, index: int, sub: SubField) -> List[str]:
        return [self.key_name(index, sub, p) for p in ("",) + self.fallback_prefixes]

    def key_names(self) -> List[str]:
        # every name this family can read, primary and fallback
        return [
            name
            for i in range(1, self.max_index + 1)
            for sub in self.fields
            for name in self.candidates(i, sub)
        ]


@dataclass(frozen=True)
class IndexedEntry:
    index: int
    values: Dict[str, str] = field(default_factory=dict)


def _resolve(environ: Mapping[str, Optional[str]], names: List[str]) -> Optional[str]:
    for name in names:
        value = environ.get(name)
        if value and value.strip():
            return value
    return None


def collect_indexed(environ: Mapping[str, Optional[str]], family: IndexedKeyFamily) -> List[IndexedEntry]:
    """
    Sweep indexes 1..max_index and return the fully specified entries in index order.

    An index where something is set but a required sub-field is not is dropped
    with a warning; nothing is filled in for it.
    """
    entries: List[IndexedEntry] = []
    for index in range(1, family.max_index + 1):
        values: Dict[str, str] = {}
        missing: List[str] = []
        for sub in family.fields:
            value = _resolve(environ, family.candidates(index, sub))
            if value is not None:
                values[sub.name] = value
            elif sub.required:
                missing.append(family.key_name(index, sub))

        if not values:
            continue
        if missing:
            log.warning(
                "%s entry %d is incomplete (missing %s); skipping it",
                family.name, index, ", ".join(missing),
            )
            continue
        entries.append(IndexedEntry(index=index, values=values))
    return entries


def collect_indexed_values(environ: Mapping[str, Optional[str]], family: IndexedKeyFamily) -> List[str]:
    """Single-field families: just the values, gaps closed."""
    sub = family.fields[0]
    return [e.values[sub.name] for e in collect_indexed(environ, family)]


GEMINI_KEYS = IndexedKeyFamily(name="gemini", prefix="GEMINI_API_KEY_", max_index=25)
SPEECHIFY_KEYS = IndexedKeyFamily(name="speechify", prefix="SPEECHIFY_API_KEY_", max_index=8)
SEARCHAPI_KEYS = IndexedKeyFamily(name="searchApi", prefix="SEARCHAPI_KEY_", max_index=5)

API_KEY_FAMILIES: Tuple[IndexedKeyFamily, ...] = (GEMINI_KEYS, SPEECHIFY_KEYS, SEARCHAPI_KEYS)
