"""
Roots Module

Closed-form roots (quadratic, cubic, quartic, binomial) and the small
polynomial utilities the solver leans on: coefficient lists, degree,
completing the square and the line through two points.

Coefficient arguments of the closed forms are lowest power first, the
order ``coeffs`` returns them in, so ``quad(*coeffs(p, x))`` works.
"""
from __future__ import annotations
import logging
from typing import Callable, Dict, List, Optional, Sequence, Union

from edag import build, diff
from errors import MalformedInputError, NotPolynomialError, ValueLimitExceededError
from expression import (E, HALF, I, PI, Add, Expr, Mul, Num, Pow, Sym, ONE, ZERO, add, collect,
                        expand, fn, mul, multiplier, power, to_expr, variables)
from jenkins_traub import proots
from rational import Rational

log = logging.getLogger(__name__)

THIRD = Num(Rational(1, 3))


def _sqrt(x: Expr) -> Expr:
    return power(x, HALF)


def _cbrt(x: Expr) -> Expr:
    return power(x, THIRD)


def quad(c, b, a) -> List[Expr]:
    """Roots of ``a*x^2 + b*x + c``."""
    a, b, c = to_expr(a), to_expr(b), to_expr(c)
    # expanded so the radical does not nest unexpanded products
    discriminant = expand(b ** 2 - a * c * 4)
    det = _sqrt(discriminant)
    den = a * 2
    return [expand((-b + det) / den), expand((-b - det) / den)]


def cubic(d, c, b, a) -> List[Expr]:
    """Cardano's roots of ``a*x^3 + b*x^2 + c*x + d``.

    With ``x = C1 + C2 - b/(3a)`` the other two roots rotate ``C1`` and
    ``C2`` by the complex cube roots of unity in opposite directions.
    ``C2`` is taken as ``-u/C1`` so the pair stays on matching branches.
    """
    a, b, c, d = (to_expr(v) for v in (a, b, c, d))
    t = -(b ** 3) / (a ** 3 * 27) + b * c / (a ** 2 * 6) - d / (a * 2)
    u = c / (a * 3) - b ** 2 / (a ** 2 * 9)
    v = b / (a * 3)
    r = _sqrt(t ** 2 + u ** 3)
    plus, minus = expand(t + r), expand(t - r)
    if plus == ZERO:
        plus, minus = minus, plus
    if plus == ZERO:
        c1 = c2 = ZERO
    else:
        c1 = _cbrt(plus)
        c2 = -u / c1
    w = -HALF + _sqrt(Num(3)) / 2 * I
    w2 = -HALF - _sqrt(Num(3)) / 2 * I
    return [c1 + c2 - v, c1 * w + c2 * w2 - v, c1 * w2 + c2 * w - v]


def quartic(e, d, c, b, a) -> List[Expr]:
    """Roots of ``a*x^4 + b*x^3 + c*x^2 + d*x + e`` through the resolvent cubic."""
    a, b, c, d, e = (to_expr(v) for v in (a, b, c, d, e))
    p = (a * c * 8 - b ** 2 * 3) / (a ** 2 * 8)
    q = (b ** 3 - a * b * c * 4 + a ** 2 * d * 8) / (a ** 3 * 8)
    d0 = a * e * 12 - b * d * 3 + c ** 2
    d1 = c ** 3 * 2 - b * c * d * 9 + b ** 2 * e * 27 + a * d ** 2 * 27 - a * c * e * 72
    big_q = _cbrt((d1 + _sqrt(d1 ** 2 - d0 ** 3 * 4)) / 2)
    s = HALF * _sqrt(-(Num(Rational(2, 3)) * p) + (a * 3) ** -1 * (big_q + d0 / big_q))
    shift = -(b / (a * 4))
    minus = HALF * _sqrt(-(s ** 2) * 4 - p * 2 + q / s)
    plus = HALF * _sqrt(-(s ** 2) * 4 - p * 2 - q / s)
    return [shift - s + minus, shift - s - minus, shift + s + plus, shift + s - plus]


def csolve(eq, var: str) -> List[Expr]:
    """Roots of ``a*x^n + b`` with numeric a and b: ``|b/a|^(1/n)`` on the n-th roots circle."""
    buckets = collect(to_expr(eq), var)
    powers = sorted(p for p in buckets if p != 0)
    if len(powers) != 1:
        return []
    n = powers[0]
    a, b = buckets[n], buckets.get(0, ZERO)
    if not (isinstance(a, Num) and isinstance(b, Num)):
        return []
    c = -b.value / a.value
    if c.is_zero():
        return [ZERO] * n
    radius = power(Num(abs(c)), Num(Rational(1, n)))
    turn = 1 if c < 0 else 0
    return [mul(radius, power(E, mul(I, PI, Num(Rational(2 * k + turn, n))))) for k in range(n)]


def roots(symbol) -> List[Expr]:
    """All roots of a univariate polynomial, real and complex."""
    symbol = to_expr(symbol)
    if symbol.is_constant():
        return []
    return proots(symbol)


def froot(f: Union[Expr, Callable[[float], float]], guess: float,
          dx: Optional[Callable[[float], float]] = None) -> Optional[float]:
    """Newton's method from ``guess``; None when it fails to settle."""
    mesh = 1e-12
    fx = build(f) if isinstance(f, Expr) else f
    if dx is None:
        if not isinstance(f, Expr):
            raise TypeError("a derivative is required for a callable")
        dx = build(diff(f, variables(f)[0]))
    xn = float(guess)
    for _ in range(10000):
        try:
            x = xn - fx(xn) / dx(xn)
        except ZeroDivisionError:
            log.debug("froot: zero derivative at %s", xn)
            return None
        delta = abs(abs(x) - abs(xn))
        xn = x
        if delta < mesh:
            return xn
    return None


def sum_prod(a, b) -> List[Expr]:
    """The two numbers whose sum is ``a`` and whose product is ``b``."""
    # roots of -b*y^2 + a*y - 1, inverted
    return [power(r, Num(-1)) for r in quad(Num(-1), to_expr(a), -to_expr(b))]


def coeffs(symbol, wrt: Optional[str] = None) -> List[Expr]:
    """Coefficients lowest power first, holes filled with zero.

    Expressions free of ``wrt`` come back as the single coefficient.
    """
    symbol = expand(to_expr(symbol))
    names = variables(symbol)
    if wrt is None:
        if len(names) > 1:
            raise MalformedInputError(
                "Polynomial contains more than one variable. Please specify which variable is to be used!")
        wrt = names[0] if names else "x"
    if wrt not in names:
        return [symbol]
    buckets = collect(symbol, wrt, expanded=True)
    out = [ZERO] * (max(buckets) + 1)
    for p, c in buckets.items():
        out[p] = c
    return out


def _degrees(symbol: Expr, v: str, numeric: List[Expr], symbolic: List[Expr]) -> None:
    if isinstance(symbol, (Add, Mul)):
        for x in symbol.children():
            _degrees(x, v, numeric, symbolic)
    elif isinstance(symbol, Pow) and isinstance(symbol.base, Sym) and symbol.base.name == v:
        (numeric if isinstance(symbol.exp, Num) else symbolic).append(symbol.exp)
    elif isinstance(symbol, Pow) and isinstance(symbol.exp, Num) and symbol.exp.value.is_int():
        inner: List[Expr] = []
        _degrees(symbol.base, v, inner, symbolic)
        numeric.extend(mul(x, symbol.exp) for x in inner)
    elif isinstance(symbol, Sym) and symbol.name == v:
        numeric.append(ONE)
    else:
        numeric.append(ZERO)


def degree(symbol, v: Optional[str] = None) -> Expr:
    """Highest power of ``v``; symbolic exponents give ``max(...)``."""
    symbol = to_expr(symbol)
    if v is None:
        names = variables(symbol)
        if len(names) > 1:
            raise MalformedInputError("You must specify the variable for multivariate polynomials!")
        if not names:
            return ZERO
        v = names[0]
    numeric: List[Expr] = []
    symbolic: List[Expr] = []
    _degrees(symbol, v, numeric, symbolic)
    deg = max(numeric, key=lambda x: x.value) if numeric else None
    if symbolic:
        return fn("max", *([deg] if deg is not None else []), *symbolic)
    return deg if deg is not None else ZERO


def sq_complete(symbol, v: str, raw: bool = False) -> Union[Dict[str, Expr], List[Expr]]:
    """Complete the square: ``{"a": a*x + e, "c": d, "f": (a*x + e)^2 + d}``."""
    symbol = to_expr(symbol)
    try:
        collect(symbol, v)
    except NotPolynomialError:
        raise ValueLimitExceededError("Must be a polynomial!")
    deg = degree(symbol, v)
    if deg != Num(2):
        raise ValueLimitExceededError(f"Cannot complete square for degree {deg}")
    c0, c1, a = coeffs(symbol, v)
    sign = multiplier(c1).sign()
    b = c1 / 2
    c = b ** 2
    sqrt_a = _sqrt(a)
    e = _sqrt(c) / sqrt_a
    d = c0 - e ** 2
    if raw:
        return [a, b, d]
    sym = sqrt_a * Sym(v) + (-e if sign < 0 else e)
    return {"a": sym, "c": d, "f": sym ** 2 + d}


def line(v1: Sequence, v2: Sequence, x: str = "x") -> Expr:
    """Line through the points ``v1`` and ``v2``."""
    if len(v1) < 2 or len(v2) < 2:
        raise MalformedInputError(f'Line expects a vector! Received "{v1}" & "{v2}"')
    x1, y1 = to_expr(v1[0]), to_expr(v1[1])
    x2, y2 = to_expr(v2[0]), to_expr(v2[1])
    m = (y2 - y1) / (x2 - x1)
    return Sym(x) * m - x1 * m + y1
