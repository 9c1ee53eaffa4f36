"""
Interaction Model Builder.

Extends a base Term Set with every (categorical × continuous) product. Purely
structural: the result is handed to models.logistic.fit_logistic unchanged.
"""

from __future__ import annotations

from typing import Iterable, List, Union

from .terms import InteractionTerm, SimpleTerm, Term, TermSet, _as_term


def _simple_group(terms: Iterable[Union[SimpleTerm, str]], label: str) -> List[SimpleTerm]:
    group = []
    for t in terms:
        t = _as_term(t)
        if not isinstance(t, SimpleTerm):
            raise ValueError(f"{label} group may only hold simple terms, got {t.name!r}")
        group.append(t)
    if not group:
        raise ValueError(f"{label} group is empty.")
    return group


def build_interaction_terms(
    base: TermSet,
    categorical: Iterable[Union[SimpleTerm, str]],
    continuous: Iterable[Union[SimpleTerm, str]],
) -> TermSet:
    """
    Return base + any missing main effects + all categorical:continuous products.

    Products are ordered categorical-major, so for categorical (a, b) and
    continuous (x, y) the appended interactions are a:x, a:y, b:x, b:y.
    """
    cat = _simple_group(categorical, "Categorical")
    cont = _simple_group(continuous, "Continuous")

    overlap = {t.name for t in cat} & {t.name for t in cont}
    if overlap:
        raise ValueError(f"Categorical and continuous groups overlap: {sorted(overlap)}")

    products: List[Term] = [InteractionTerm(c, x) for c in cat for x in cont]
    return base.extend(cat).extend(cont).extend(products)
