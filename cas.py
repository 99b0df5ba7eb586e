"""
Public surface of the algebra engine.

Every operation accepts expressions or strings and returns expressions.
``CAS`` bundles them as methods; the module-level functions call a shared
instance.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from division import div as _div, divide as _divide, gcd as _gcd, lcm as _lcm
from errors import CancellationError, RECOVERABLE
from expression import (Add, Expr, Num, Sym, ONE, add, expand as _expand, get_den, get_num, mul,
                        split_coeff, to_expr, together)
from expression import divide as over
from factor import factor as _factor, factor_inner
from partfrac import partial_fractions as _partial_fractions
from roots import coeffs as _coeffs, degree as _degree, line as _line, roots as _roots, sq_complete as _sq_complete
from solver import solve as _solve

log = logging.getLogger(__name__)

ExprLike = Union[Expr, str, int]

# simplify recurses into the terms of a residual sum this deep
_SIMPLIFY_DEPTH = 3


class CAS:
    """Facade over factoring, division, roots, partial fractions and solving."""

    def parse(self, expr: ExprLike) -> Expr:
        return to_expr(expr)

    def expand(self, expr: ExprLike) -> Expr:
        return _expand(to_expr(expr))

    def factor(self, expr: ExprLike) -> Expr:
        return _factor(to_expr(expr))

    def simplify(self, expr: ExprLike) -> Expr:
        """Cancel common factors and factor; the input comes back when that fails."""
        symbol = to_expr(expr)
        try:
            return self._simplify(symbol, 0)
        except CancellationError:
            raise
        except RECOVERABLE as e:
            log.debug("simplify gave up on %s: %r", symbol, e)
            return symbol

    def _simplify(self, symbol: Expr, depth: int) -> Expr:
        c, rest = split_coeff(symbol)
        if rest is None or isinstance(rest, Sym):
            return symbol
        s = together(_expand(rest))
        num, den = _expand(get_num(s)), _expand(get_den(s))
        if den != ONE:
            g = _gcd(num, den)
            if not g.is_constant():
                num, den = _div(num, g)[0], _div(den, g)[0]
        s = factor_inner(over(num, den))
        if isinstance(s, Add) and depth < _SIMPLIFY_DEPTH:
            s = add(*[self._simplify(t, depth + 1) for t in s.terms])
        return mul(Num(c), s)

    def gcd(self, *exprs: ExprLike) -> Expr:
        return _gcd(*[to_expr(e) for e in exprs])

    def lcm(self, *exprs: ExprLike) -> Expr:
        return _lcm(*[to_expr(e) for e in exprs])

    def roots(self, expr: ExprLike) -> List[Expr]:
        return _roots(to_expr(expr))

    def div(self, a: ExprLike, b: ExprLike) -> List[Expr]:
        return _div(to_expr(a), to_expr(b))

    def divide(self, a: ExprLike, b: ExprLike) -> Expr:
        return _divide(to_expr(a), to_expr(b))

    def partial_fractions(self, expr: ExprLike, var: Optional[str] = None) -> Expr:
        return _partial_fractions(to_expr(expr), var)

    def degree(self, expr: ExprLike, var: Optional[str] = None) -> Expr:
        return _degree(to_expr(expr), var)

    def solve(self, eqns: Any, var: Union[str, Sequence[str], None] = None, real: bool = False):
        return _solve(eqns, var, real)

    def sq_complete(self, expr: ExprLike, var: str) -> Dict[str, Expr]:
        return _sq_complete(to_expr(expr), var)

    def coeffs(self, expr: ExprLike, var: Optional[str] = None) -> List[Expr]:
        return _coeffs(to_expr(expr), var)

    def line(self, p1: Sequence, p2: Sequence, var: str = "x") -> Expr:
        return _line(p1, p2, var)


_cas = CAS()


def expand(expr: ExprLike) -> Expr:
    return _cas.expand(expr)


def factor(expr: ExprLike) -> Expr:
    return _cas.factor(expr)


def simplify(expr: ExprLike) -> Expr:
    return _cas.simplify(expr)


def gcd(*exprs: ExprLike) -> Expr:
    return _cas.gcd(*exprs)


def lcm(*exprs: ExprLike) -> Expr:
    return _cas.lcm(*exprs)


def roots(expr: ExprLike) -> List[Expr]:
    return _cas.roots(expr)


def div(a: ExprLike, b: ExprLike) -> List[Expr]:
    return _cas.div(a, b)


def divide(a: ExprLike, b: ExprLike) -> Expr:
    return _cas.divide(a, b)


def partial_fractions(expr: ExprLike, var: Optional[str] = None) -> Expr:
    return _cas.partial_fractions(expr, var)


def degree(expr: ExprLike, var: Optional[str] = None) -> Expr:
    return _cas.degree(expr, var)


def solve(eqns: Any, var: Union[str, Sequence[str], None] = None, real: bool = False):
    return _cas.solve(eqns, var, real)


def sq_complete(expr: ExprLike, var: str) -> Dict[str, Expr]:
    return _cas.sq_complete(expr, var)


def coeffs(expr: ExprLike, var: Optional[str] = None) -> List[Expr]:
    return _cas.coeffs(expr, var)


def line(p1: Sequence, p2: Sequence, var: str = "x") -> Expr:
    return _cas.line(p1, p2, var)
