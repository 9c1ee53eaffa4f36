"""
Term Sets: explicit, validated model specifications.

A model family is an ordered set of terms, never a parsed formula string:

    covariates = TermSet.of("sales", "customer_rate")
    stepwise   = covariates.extend(STEP_TERMS)

Terms come in two kinds:
  SimpleTerm       one dataset column (name defaults to the column)
  InteractionTerm  product of two simple terms, named "left:right"

Interaction identity ignores order, so sales:stepGoodPlus and
stepGoodPlus:sales are the same term. Every Term Set respects marginality
(an interaction's components are present as simple terms), which makes
subset checks on Term Sets equivalent to nesting of the model families.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Iterator, Tuple, Union

import numpy as np

from core.schema import SCORE_COLUMN, STEP_THRESHOLDS


@dataclass(frozen=True)
class SimpleTerm:
    name: str
    column: str = ""

    def __post_init__(self):
        if not self.name:
            raise ValueError("Term name must be non-empty.")
        if not self.column:
            object.__setattr__(self, "column", self.name)

    @property
    def key(self) -> Tuple[str, ...]:
        return (self.name,)

    @property
    def components(self) -> Tuple["SimpleTerm", ...]:
        return (self,)

    def values(self, dataset) -> np.ndarray:
        return dataset.column(self.column)


@dataclass(frozen=True)
class InteractionTerm:
    left: SimpleTerm
    right: SimpleTerm

    def __post_init__(self):
        if self.left.name == self.right.name:
            raise ValueError(f"Cannot interact {self.left.name!r} with itself.")

    @property
    def name(self) -> str:
        return f"{self.left.name}:{self.right.name}"

    @property
    def key(self) -> Tuple[str, ...]:
        return tuple(sorted((self.left.name, self.right.name)))

    @property
    def components(self) -> Tuple[SimpleTerm, ...]:
        return (self.left, self.right)

    def values(self, dataset) -> np.ndarray:
        return self.left.values(dataset) * self.right.values(dataset)


Term = Union[SimpleTerm, InteractionTerm]


def _as_term(term: Union[Term, str]) -> Term:
    if isinstance(term, (SimpleTerm, InteractionTerm)):
        return term
    if isinstance(term, str):
        if ":" in term:
            raise ValueError(
                f"{term!r} looks like an interaction; build it with InteractionTerm."
            )
        return SimpleTerm(term)
    raise TypeError(f"Expected a term or column name, got {type(term).__name__}")


@dataclass(frozen=True)
class TermSet:
    """Ordered, duplicate-free set of model terms. The empty set is the intercept-only model."""
    terms: Tuple[Term, ...] = ()

    def __post_init__(self):
        terms = tuple(_as_term(t) for t in self.terms)
        object.__setattr__(self, "terms", terms)

        seen = set()
        for t in terms:
            if t.key in seen:
                raise ValueError(f"Duplicate term {t.name!r} in term set.")
            seen.add(t.key)

        simple = {t.key for t in terms if isinstance(t, SimpleTerm)}
        for t in terms:
            if isinstance(t, InteractionTerm):
                missing = [c.name for c in t.components if c.key not in simple]
                if missing:
                    raise ValueError(
                        f"Interaction {t.name!r} requires main effects {missing} in the term set."
                    )

    @classmethod
    def of(cls, *terms: Union[Term, str]) -> "TermSet":
        return cls(tuple(terms))

    def __len__(self) -> int:
        return len(self.terms)

    def __iter__(self) -> Iterator[Term]:
        return iter(self.terms)

    def __contains__(self, term) -> bool:
        return _as_term(term).key in self.keys()

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(t.name for t in self.terms)

    @property
    def simple_terms(self) -> Tuple[SimpleTerm, ...]:
        return tuple(t for t in self.terms if isinstance(t, SimpleTerm))

    @property
    def interaction_terms(self) -> Tuple[InteractionTerm, ...]:
        return tuple(t for t in self.terms if isinstance(t, InteractionTerm))

    def keys(self) -> FrozenSet[Tuple[str, ...]]:
        return frozenset(t.key for t in self.terms)

    def closure(self) -> FrozenSet[Tuple[str, ...]]:
        """Term keys plus the simple components of every interaction."""
        keys = set(self.keys())
        for t in self.interaction_terms:
            keys.update(c.key for c in t.components)
        return frozenset(keys)

    def is_nested_in(self, other: "TermSet") -> bool:
        """True if every term here is also in other (non-strict subset)."""
        return self.keys() <= other.closure()

    def extend(self, terms: Iterable[Union[Term, str]]) -> "TermSet":
        """New term set with terms appended; terms already present are skipped."""
        out = list(self.terms)
        keys = set(self.keys())
        for t in terms:
            t = _as_term(t)
            if t.key not in keys:
                out.append(t)
                keys.add(t.key)
        return TermSet(tuple(out))

    def __repr__(self) -> str:
        inner = ", ".join(self.names) if self.terms else "(intercept only)"
        return f"TermSet[{inner}]"


# Building blocks for the promotion analysis
SALES = SimpleTerm("sales")
CUSTOMER_RATE = SimpleTerm("customer_rate")
PERFORMANCE_SCORE = SimpleTerm(SCORE_COLUMN)

COVARIATE_TERMS: Tuple[SimpleTerm, ...] = (SALES, CUSTOMER_RATE)
STEP_TERMS: Tuple[SimpleTerm, ...] = tuple(SimpleTerm(name) for name in STEP_THRESHOLDS)

NULL_TERMS = TermSet()
