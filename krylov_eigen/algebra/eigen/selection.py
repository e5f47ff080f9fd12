"""
Selection rules for wanted Ritz values.

The rule decides which Ritz values count as "wanted" (the first k after sorting)
and the order of the final eigenvalues. Sorting is stable, so complex-conjugate
pairs produced next to each other stay adjacent.

Rules:
    'LM' = largest magnitude            'SM' = smallest magnitude
    'LR' = largest real part            'SR' = smallest real part
    'LI' = largest |imaginary part|     'SI' = smallest |imaginary part|
    'LA' = largest algebraic            'SA' = smallest algebraic
    'BE' = both ends (alternating largest / smallest algebraic)
Aliases: 'largest', 'smallest', 'both'.
"""

from enum import Enum, unique
from typing import Union
import numpy as np
from numpy.typing import NDArray

# -----------------------------------------------------------------------------

@unique
class SortRule(Enum):
    """
    Enumeration of the Ritz value selection rules.
    """
    LM = 'LM'
    SM = 'SM'
    LR = 'LR'
    SR = 'SR'
    LI = 'LI'
    SI = 'SI'
    LA = 'LA'
    SA = 'SA'
    BE = 'BE'

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, which: Union[str, 'SortRule'], symmetric: bool) -> 'SortRule':
        """
        Resolve `which` for the symmetric or the general solver.

        Raises:
            ValueError: unknown rule, or a rule that makes no sense for the problem type
        """
        if isinstance(which, cls):
            rule = which
        else:
            key     = str(which).strip()
            alias   = {
                'largest'   : 'LA' if symmetric else 'LR',
                'smallest'  : 'SA' if symmetric else 'SR',
                'both'      : 'BE',
            }.get(key.lower(), key.upper())
            try:
                rule = cls(alias)
            except ValueError:
                raise ValueError(f"Invalid which='{which}'. Must be one of {[r.value for r in cls]} "
                                f"or 'largest', 'smallest', 'both'") from None

        allowed = _SYMMETRIC_RULES if symmetric else _GENERAL_RULES
        if rule not in allowed:
            kind = "symmetric" if symmetric else "general"
            raise ValueError(f"which='{rule.value}' is not supported by the {kind} solver, use one of {[r.value for r in allowed]}")
        return rule

_SYMMETRIC_RULES    = (SortRule.LM, SortRule.SM, SortRule.LA, SortRule.SA, SortRule.BE)
_GENERAL_RULES      = (SortRule.LM, SortRule.SM, SortRule.LR, SortRule.SR, SortRule.LI, SortRule.SI)

# -----------------------------------------------------------------------------

def argsort_ritz(values: NDArray, rule: SortRule) -> NDArray:
    """
    Indices ordering `values` from most to least wanted under `rule`.
    """
    values = np.asarray(values)
    if rule is SortRule.LM:
        key = -np.abs(values)
    elif rule is SortRule.SM:
        key = np.abs(values)
    elif rule in (SortRule.LR, SortRule.LA):
        key = -np.real(values)
    elif rule in (SortRule.SR, SortRule.SA):
        key = np.real(values)
    elif rule is SortRule.LI:
        key = -np.abs(np.imag(values))
    elif rule is SortRule.SI:
        key = np.abs(np.imag(values))
    elif rule is SortRule.BE:
        ascending   = np.argsort(np.real(values), kind='stable')
        order       = np.empty_like(ascending)
        lo, hi      = 0, ascending.shape[0] - 1
        for i in range(ascending.shape[0]):
            if i % 2 == 0:
                order[i]    = ascending[hi]
                hi         -= 1
            else:
                order[i]    = ascending[lo]
                lo         += 1
        return order
    else:
        raise ValueError(f"Unknown selection rule {rule}")
    return np.argsort(key, kind='stable')

def final_order(values: NDArray, rule: SortRule) -> NDArray:
    """
    Order of the returned eigenvalues: the selection order, except for 'BE', whose
    values are reported in ascending algebraic order.
    """
    if rule is SortRule.BE:
        return np.argsort(np.real(values), kind='stable')
    return argsort_ritz(values, rule)

# -----------------------------------------------------------------------------
#! EOF
