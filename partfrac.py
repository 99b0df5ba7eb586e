"""
Partial fraction decomposition.

The denominator is factored, a template ``A/(f) + B/(f)^2 + (C + D*x)/(g)``
is laid out over its factors and the unknown numerators are read off a
linear system built from the coefficient lists.
"""
from __future__ import annotations
import logging
from typing import Dict, List, Tuple

from division import div
from errors import AlgorithmError, CancellationError, RECOVERABLE
from expression import (Expr, Num, Pow, Sym, ZERO, add, expand, factors_of, get_den,
                        get_num, mul, power, split_coeff, terms_of, to_expr, variables)
from expression import divide as over
from factor import factor_inner
from rational import Rational
from roots import coeffs, degree
from systems import solve_rational

log = logging.getLogger(__name__)


def _deg(e: Expr, v: str) -> int:
    d = degree(e, v)
    if not isinstance(d, Num) or not d.value.is_int():
        raise AlgorithmError(f"non-integer degree of {e} in {v}")
    return d.value.to_int()


def _fill_holes(arr: List[Expr], n: int) -> List[Expr]:
    return list(arr) + [ZERO] * (n - len(arr))


def _numeric(row: List[Expr]) -> List[Rational]:
    out = []
    for c in row:
        if not isinstance(c, Num):
            raise AlgorithmError(f"symbolic coefficient {c}")
        out.append(c.value)
    return out


def create_template(den: Expr, denom_factors: Expr, v: str) -> Tuple[List[Expr], List[Expr], List[int]]:
    """Return ``(factors, cofactors, degrees)``: one entry per template fraction.

    A factor ``f^p`` contributes ``f, f^2, ..., f^p``; the cofactor is the
    denominator divided by that fraction's denominator.
    """
    den = factor_inner(den)
    f_array: List[Expr] = []
    factors_vec: List[Expr] = []
    degrees: List[int] = []
    for f in factors_of(denom_factors):
        if f.is_constant():
            continue
        if isinstance(f, Pow) and isinstance(f.exp, Num) and f.exp.value.is_int() and f.exp.value > 1:
            base = f.base
            deg = _deg(base, v)
            for j in range(f.exp.value.to_int()):
                efactor = power(base, Num(j + 1))
                f_array.append(efactor)
                factors_vec.append(expand(over(den, efactor)))
                degrees.append(deg)
        else:
            f_array.append(f)
            factors_vec.append(expand(over(den, f)))
            degrees.append(_deg(f, v))
    return f_array, factors_vec, degrees


def _decompose(symbol: Expr, v: str, as_array: bool):
    c, rest = split_coeff(symbol)
    if rest is None:
        return [symbol] if as_array else symbol
    num = expand(mul(Num(c), get_num(rest)))
    den = expand(get_den(rest))
    if not den.contains(v):
        return [symbol] if as_array else symbol

    if _deg(num, v) >= _deg(den, v):
        r, num = div(num, den)
    else:
        r = ZERO
    if _deg(den, v) == 1:
        q = over(num, den)
        return [r, q] if as_array else add(r, q)

    ofactors = factor_inner(den)
    tfactors, factors_vec, degrees = create_template(den, ofactors, v)
    nterms = coeffs(num, v) if num != ZERO else [ZERO]
    powers = [len(nterms)]
    dterms: List[List[Expr]] = []
    factors: List[Expr] = []
    ks: List[Expr] = []
    for x, f, deg in zip(factors_vec, tfactors, degrees):
        for i in range(deg):
            k = power(Sym(v), Num(i))
            t = coeffs(expand(mul(x, k)), v)
            factors.append(f)
            powers.append(len(t))
            dterms.append(t)
            ks.append(k)
    size = max(powers)
    if len(dterms) != size:
        raise AlgorithmError("template does not match the denominator degree")
    # one column per unknown numerator coefficient
    columns = [_numeric(_fill_holes(t, size)) for t in dterms]
    rows = [list(r) for r in zip(*columns)]
    partials = solve_rational(rows, _numeric(_fill_holes(nterms, size)))

    out: List[Expr] = [r]
    for k, e, f in zip(ks, partials, factors):
        out.append(mul(k, over(Num(e), f)))
    return out if as_array else add(*out)


def _group_denominators(symbol: Expr) -> Expr:
    grouped: Dict[str, List[Expr]] = {}
    for x in terms_of(symbol):
        d = get_den(x)
        slot = grouped.setdefault(d.key, [d, ZERO])
        slot[1] = add(slot[1], get_num(x))
    return add(*[over(n, d) for d, n in grouped.values()])


def partial_fractions(symbol, v: str = None, as_array: bool = False):
    """Decompose a rational function of ``v`` into partial fractions.

    When the denominator cannot be handled the terms are only grouped by
    denominator; on any other failure the input comes back unchanged.
    """
    symbol = to_expr(symbol)
    names = variables(symbol)
    if not names:
        return [symbol] if as_array else symbol
    v = v or names[0]
    try:
        return _decompose(symbol, v, as_array)
    except CancellationError:
        raise
    except RECOVERABLE as e:
        log.debug("partial_fractions gave up on %s: %r", symbol, e)
    try:
        return _group_denominators(symbol)
    except CancellationError:
        raise
    except RECOVERABLE as e:
        log.debug("grouping denominators failed for %s: %r", symbol, e)
    return symbol
