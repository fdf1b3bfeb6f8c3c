"""sonar_maven.precedence

Merge named configuration fragments into one resolved mapping.

Why this exists
---------------
The same scanner setting can come from many places. A few examples:

* a plugin parameter: explicit override > build plugin > reporting plugin >
  plugin management > default
* a module property: user ``-D`` > ``SONARQUBE_SCANNER_PARAMS`` > POM
  properties > values derived from the Maven model
* a global property: user > system > environment > current project

Rather than hard-coding each chain as nested conditionals, every chain is an
ordered list of :class:`ConfigurationFragment` objects handed to a
:class:`PrecedenceResolver`. Adding a new origin is one ``add()`` call.

Resolution rules
----------------
* Fragments are ordered highest priority first.
* ``None`` and ``""`` both mean "not contributed". The fragment is skipped
  for that key and the next one down is consulted.
* A key that no fragment contributes is absent from the result, never
  present with an empty value.
* Values are never trimmed or coerced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

__all__ = [
    "ConfigurationFragment",
    "ResolvedConfiguration",
    "PrecedenceResolver",
    "resolve_first",
]


@dataclass(frozen=True)
class ConfigurationFragment:
    """One origin's partial view of the configuration."""

    name: str
    values: Mapping[str, Optional[str]] = field(default_factory=dict)

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def keys(self) -> Iterable[str]:
        return self.values.keys()


@dataclass(frozen=True)
class ResolvedConfiguration:
    """Final settings mapping plus the name of the fragment each value came from."""

    values: Dict[str, str]
    sources: Dict[str, str]

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def __getitem__(self, key: str) -> str:
        return self.values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(key, default)

    def source_of(self, key: str) -> Optional[str]:
        return self.sources.get(key)

    def as_dict(self) -> Dict[str, str]:
        return dict(self.values)


class PrecedenceResolver:
    """Ordered list of named fragments, highest priority first.

    The resolver is a small builder::

        resolved = (
            PrecedenceResolver()
            .add("user", user_props)
            .add("env", env_props)
            .add("pom", pom_props)
            .resolve()
        )

    Each ``add`` appends a fragment *below* every fragment already present.
    """

    def __init__(self, fragments: Optional[Iterable[ConfigurationFragment]] = None) -> None:
        self._fragments: List[ConfigurationFragment] = list(fragments or [])

    @property
    def fragments(self) -> Tuple[ConfigurationFragment, ...]:
        return tuple(self._fragments)

    def add(self, name: str, values: Optional[Mapping[str, Optional[str]]]) -> "PrecedenceResolver":
        self._fragments.append(ConfigurationFragment(name=name, values=dict(values or {})))
        return self

    def add_fragment(self, fragment: ConfigurationFragment) -> "PrecedenceResolver":
        self._fragments.append(fragment)
        return self

    def resolve(self) -> ResolvedConfiguration:
        values: Dict[str, str] = {}
        sources: Dict[str, str] = {}
        for fragment in self._fragments:
            for key, value in fragment.values.items():
                if not value or key in values:
                    continue
                values[key] = value
                sources[key] = fragment.name
        return ResolvedConfiguration(values=values, sources=sources)

    def resolve_one(self, key: str) -> Optional[str]:
        """Resolve a single key without building the full mapping."""
        for fragment in self._fragments:
            value = fragment.get(key)
            if value:
                return value
        return None


def resolve_first(key: str, *fragments: ConfigurationFragment, default: Optional[str] = None) -> Optional[str]:
    """Resolve ``key`` across ``fragments`` and fall back to ``default``."""
    value = PrecedenceResolver(fragments).resolve_one(key)
    return default if value is None else value
