"""
Factor Module

Factorisation of expressions over the rationals.

The entry point ``factor`` builds one ``FactorSet`` per call and walks the
expression with a ``Factorizer``. Single-variable sums go through coefficient
gcd, lowest power, square-free decomposition, trial division by numerically
found roots and a brute-force digit search; sums in several variables go
through common monomials, sums and differences of cubes, a multivariate
square-free pass, difference of squares and zero fishing.

Every heuristic step is allowed to give up: it then returns its input
untouched. Only ``CancellationError`` escapes.
"""
from __future__ import annotations
import functools
import logging
import math
from fractions import Fraction
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from config import check_timeout, settings
from division import div, div_with_check, restore_functions, sub_functions
from edag import diff
from errors import AlgorithmError, NotPolynomialError, give_up_to
from expression import (Add, Expr, Fn, Mul, Num, Pow, Sym, MINUS_ONE, ONE, ZERO, add,
                        base_exp, expand, factors_of, get_den, get_num, is_imaginary, mul,
                        multiplier, negate, power, split_coeff, subs, terms_of, to_expr,
                        total_degree, variables)
from expression import divide as over
from jenkins_traub import numeric_roots
from polynomial import Polynomial
from rational import Rational, divisors, ifactor, int_root, is_prime, qgcd

log = logging.getLogger(__name__)

CONST_KEY = "#"

# search() only factors values at the base up to this size
_SEARCH_LIMIT = 10 ** 12


class FactorSet:
    """Accumulates the factors found while factoring one expression.

    Factors are keyed by their canonical key, numbers share one slot. The
    optional ``pre_add`` hook rewrites every factor before it is stored and
    ``power`` raises every stored factor to a stripped exponent.
    """

    def __init__(self) -> None:
        self.factors: Dict[str, Expr] = {}
        self.length = 0
        self.pre_add: Optional[Callable[[Expr], Expr]] = None
        self.power: Optional[Expr] = None

    def add(self, s: Expr) -> "FactorSet":
        s = to_expr(s)
        if s == ONE:
            return self
        if isinstance(s, Mul):
            if not s.coeff.is_one():
                self.add(Num(s.coeff))
            for f in s.factors:
                self.add(f)
            return self
        if self.pre_add is not None:
            s = self.pre_add(s)
        if self.power is not None:
            s = power(s, self.power)
        if s == ONE:
            return self
        if s == MINUS_ONE and self.length > 0 and self._absorb_sign():
            return self
        self._store(s)
        return self

    def _store(self, s: Expr) -> None:
        k = CONST_KEY if isinstance(s, Num) else s.key
        cur = self.factors.get(k)
        if cur is None:
            self.factors[k] = s
            self.length += 1
            return
        merged = mul(cur, s)
        if merged == ONE:
            del self.factors[k]
            self.length -= 1
        else:
            self.factors[k] = merged

    def _absorb_sign(self) -> bool:
        # fold a -1 into the first factor that can carry it
        for k, f in list(self.factors.items()):
            if k == CONST_KEY:
                flipped: Optional[Expr] = negate(f)
            elif isinstance(f, Add):
                flipped = add(*[negate(t) for t in f.terms])
            elif (isinstance(f, Pow) and isinstance(f.base, Add) and isinstance(f.exp, Num)
                  and f.exp.value.is_int() and f.exp.value.to_int() % 2 == 1):
                flipped = power(add(*[negate(t) for t in f.base.terms]), f.exp)
            else:
                flipped = None
            if flipped is None:
                continue
            del self.factors[k]
            self.length -= 1
            if flipped != ONE:
                self._store(flipped)
            return True
        return False

    def __iter__(self) -> Iterator[Expr]:
        return iter(list(self.factors.values()))

    def __len__(self) -> int:
        return self.length

    def count(self) -> int:
        return len(self.factors)

    def to_expression(self) -> Expr:
        if not self.factors:
            return ONE
        symbolic = [f for f in self.factors.values() if not f.is_constant()]
        constant = [f for f in self.factors.values() if f.is_constant()]
        return mul(*(symbolic + constant))

    def __str__(self) -> str:
        return str(self.to_expression())


# =====================
# Monomial helpers
# =====================

def _neg_terms(s: Expr) -> Expr:
    return add(*[negate(t) for t in terms_of(s)])


def _scale_terms(s: Expr, c: Rational) -> Expr:
    return add(*[mul(Num(c), t) for t in terms_of(s)])


def _power_of(t: Expr, v: str) -> Optional[Rational]:
    """Numeric exponent of ``v`` in the monomial ``t``; None when absent."""
    for f in factors_of(split_coeff(t)[1] or ONE):
        b, x = base_exp(f)
        if isinstance(b, Sym) and b.name == v:
            if not isinstance(x, Num):
                raise AlgorithmError(f"symbolic power in {t}")
            return x.value
    return None


def _monomial_root(t: Expr, n: int) -> Optional[Expr]:
    """Exact n-th root of a positive monomial, or None."""
    c, rest = split_coeff(t)
    if c < 0:
        return None
    rn, rd = int_root(c.numerator(), n), int_root(c.denominator(), n)
    if rn is None or rd is None:
        return None
    parts: List[Expr] = [Num(Rational(rn, rd))]
    for f in factors_of(rest) if rest is not None else ():
        b, x = base_exp(f)
        if not isinstance(x, Num) or not x.value.is_int() or x.value.to_int() % n:
            return None
        parts.append(power(b, Num(x.value / n)))
    return mul(*parts)


def _abs_term(t: Expr) -> Tuple[int, Expr]:
    c = multiplier(t)
    return (-1, negate(t)) if c < 0 else (1, t)


class Factorizer:
    """Recursive factoring with a depth budget.

    One instance per top-level call; ``depth`` counts nested ``_factor``
    calls and factoring gives up on a sub-expression once it reaches
    ``settings.max_factor_depth``.
    """

    def __init__(self) -> None:
        self.depth = 0

    # -----------------
    # Entry points
    # -----------------
    def factor(self, symbol: Expr) -> Expr:
        check_timeout()
        return self._guarded_inner(symbol)

    @give_up_to(lambda self, symbol: to_expr(symbol))
    def _guarded_inner(self, symbol: Expr) -> Expr:
        return self.factor_inner(symbol, FactorSet())

    def factor_inner(self, symbol: Expr, factors: Optional[FactorSet] = None) -> Expr:
        check_timeout()
        symbol = to_expr(symbol)
        if symbol.is_constant():
            return symbol
        retval = self._factor(symbol, factors)
        if retval == symbol or retval.is_constant():
            return retval
        if isinstance(retval, Mul) and get_den(retval) == ONE:
            # give every factor found a second pass
            retval = mul(Num(retval.coeff), *[self._factor(f) for f in retval.factors])
        return retval

    def split(self, symbol: Expr) -> Tuple[Expr, Expr]:
        """Factor and separate the constant part from the symbolic part."""
        f = self.factor_inner(symbol)
        c: Expr = ONE
        s: Expr = ONE
        for x in ([Num(f.coeff)] + list(f.factors)) if isinstance(f, Mul) else [f]:
            if x.is_constant():
                c = mul(c, x)
            else:
                s = mul(s, x)
        return c, s

    def _factor(self, symbol: Expr, factors: Optional[FactorSet] = None) -> Expr:
        check_timeout()
        if self.depth >= settings.max_factor_depth:
            log.debug("factor depth budget exhausted at %s", symbol)
            return symbol
        self.depth += 1
        try:
            return self._factor_body(symbol, factors)
        finally:
            self.depth -= 1

    @give_up_to(lambda self, symbol, factors=None: symbol)
    def _factor_body(self, symbol: Expr, factors: Optional[FactorSet]) -> Expr:
        if isinstance(symbol, (Sym, Fn)) or symbol.is_constant():
            return symbol
        if get_den(symbol) != ONE:
            num, den = get_num(symbol), get_den(symbol)
            if num == symbol:
                return symbol
            return over(self.factor_inner(num), self.factor_inner(den))
        if isinstance(symbol, Mul):
            return mul(Num(symbol.coeff), *[self._factor(f) for f in symbol.factors])
        base, p = symbol, 1
        if isinstance(symbol, Pow):
            if not (isinstance(symbol.base, Add) and isinstance(symbol.exp, Num) and symbol.exp.value.is_int()):
                return symbol
            base, p = symbol.base, symbol.exp.value.to_int()
        if not isinstance(base, Add):
            return symbol
        # expand first; unexpanded sub-terms hide common factors
        base = expand(base)
        if not isinstance(base, Add):
            return power(self._factor(base), Num(p))
        return self._factor_sum(base, p, factors)

    def _factor_sum(self, s: Expr, p: int, factors: Optional[FactorSet]) -> Expr:
        factors = factors if factors is not None else FactorSet()
        original = s
        atoms: Dict[str, Expr] = {}
        s = sub_functions(s, atoms)
        if atoms:
            factors.pre_add = functools.partial(restore_functions, subs=atoms)
        if p != 1:
            factors.power = Num(p)

        names = variables(s)
        if is_imaginary(s):
            names.append("i")
        multi_var = len(names) > 1
        if multi_var and all(isinstance(t, Sym) for t in terms_of(s)):
            return power(original, Num(p))

        s = self.coeff_factor(s, factors)
        if not multi_var:
            v = names[0]
            s = self.power_factor(s, factors, v)
            s = self.square_free(s, factors, v)
            found = FactorSet()
            s = self.trial_and_error(s, found, v)
            for f in found:
                factors.add(f)
            if not len(found):
                s = self.quad_factor(s, factors, v)
        else:
            s = self.common(s, factors)
            s = self.cube_factor(s, factors)
            s = self.mfactor(s, factors)
        factors.add(s)
        return factors.to_expression()

    # -----------------
    # Common pieces
    # -----------------
    def coeff_factor(self, s: Expr, factors: Optional[FactorSet]) -> Expr:
        """Divide out the rational gcd of the coefficients and make the lead positive."""
        if not isinstance(s, Add):
            return s
        g = qgcd(*[multiplier(t) for t in s.terms])
        if not g.is_zero() and not g.is_one():
            s = _scale_terms(s, g.invert())
            if factors is not None:
                factors.add(Num(g))
        terms = sorted(s.terms, key=lambda t: (t.is_constant(), -float(total_degree(t))))
        lead = terms[0]
        if total_degree(lead) > total_degree(terms[1]) or terms[1].is_constant():
            if multiplier(lead) < 0:
                if factors is not None:
                    factors.add(MINUS_ONE)
                s = _neg_terms(s)
        return s

    def power_factor(self, s: Expr, factors: FactorSet, v: str) -> Expr:
        """Divide out the lowest power of ``v``."""
        if not isinstance(s, Add):
            return s
        powers = [_power_of(t, v) for t in s.terms]
        if any(x is None for x in powers):
            return s
        d = min(powers)
        if d <= 0:
            return s
        q = power(Sym(v), Num(d))
        factors.add(q)
        return add(*[over(t, q) for t in s.terms])

    @give_up_to(lambda self, s, factors: s)
    def common(self, s: Expr, factors: FactorSet) -> Expr:
        """Pull the greatest common monomial out of a sum."""
        if not isinstance(s, Add):
            return s
        terms = list(terms_of(expand(s)))
        lowest: Dict[str, Tuple[Expr, Rational]] = {}
        counts: Dict[str, int] = {}
        for t in terms:
            for f in factors_of(split_coeff(t)[1] or ONE):
                b, x = base_exp(f)
                if not isinstance(x, Num):
                    raise AlgorithmError("symbolic power")
                cur = lowest.get(b.key)
                if cur is None or x.value < cur[1]:
                    lowest[b.key] = (b, x.value)
                counts[b.key] = counts.get(b.key, 0) + 1
        shared = [power(b, Num(x)) for k, (b, x) in lowest.items() if counts[k] == len(terms) and x > 0]
        c = qgcd(*[multiplier(t) for t in terms])
        if not c.is_zero() and not c.is_one():
            factors.add(Num(c))
            terms = [mul(Num(c.invert()), t) for t in terms]
        if shared:
            f = mul(*shared)
            factors.add(f)
            terms = [over(t, f) for t in terms]
        return add(*terms)

    # -----------------
    # Single variable
    # -----------------
    def square_free(self, s: Expr, factors: FactorSet, v: str) -> Expr:
        if s.is_constant() or isinstance(s, Sym):
            return s
        try:
            poly = Polynomial.from_expression(s, v)
        except NotPolynomialError:
            return s
        part, witness, i = poly.square_free()
        if i != 1:
            t = power(witness.to_expression(), Num(i))
            factors.add(self.factor_inner(t))
            return self.square_free(part.to_expression(), factors, v)
        return s

    @give_up_to(lambda self, s, factors, v: s)
    def trial_and_error(self, s: Expr, factors: FactorSet, v: str) -> Expr:
        """Divide out binomials built from the numerically found roots."""
        if s.is_constant() or isinstance(s, Sym):
            return s
        poly = Polynomial.from_expression(s, v)
        if poly.deg() <= 1:
            return s
        cnst = poly.coeffs[0]
        primes = list(ifactor(cnst.to_int())) if cnst.is_int() and abs(cnst) < _SEARCH_LIMIT else []
        primes = [p for p in primes if p > 1]
        found: List[Expr] = []
        for r in numeric_roots(poly):
            check_timeout()
            if abs(r.imag) > 1e-12 or r.real == 0:
                continue
            r = r.real
            p = 1
            if abs(abs(r) - 1) > 1e-12:
                for x in primes:
                    n = round(math.log(x) / math.log(abs(r)), 8)
                    if n >= 1 and float(n).is_integer():
                        p = int(n)
                        # x is the root raised to the power n
                        r = x if p % 2 == 0 or r > 0 else -x
                        break
            root = Fraction(r).limit_denominator(10 ** 4)
            terms: List[Optional[Rational]] = [None] * (p + 1)
            terms[0] = Rational(-root.numerator)
            terms[p] = Rational(root.denominator)
            cand = Polynomial(terms, poly.variable).fill()
            q, rem = poly.divide(cand)
            if rem.equals_number(0):
                poly = q
                found.append(cand.to_expression())
        if not poly.equals_number(1):
            poly = self.search(poly, factors)
        for f in found:
            factors.add(f)
        return poly.to_expression()

    @staticmethod
    def mix(o: Dict[int, int], include_negatives: bool = False) -> List[int]:
        """Products of prime powers from an ``ifactor`` map."""
        m: List[int] = []
        for factor, p in o.items():
            for j in range(len(m)):
                t = m[j] * factor
                m.append(t)
                if include_negatives:
                    m.append(-t)
            for j in range(1, p + 1):
                m.append(factor ** j)
        return m

    def search(self, poly: Polynomial, factors: FactorSet, base: int = 10) -> Polynomial:
        """Brute-force search for a factor whose value at ``base`` divides ``poly(base)``."""
        v = poly.variable

        def check(c1: int, c2: int, n: int, p: int) -> Optional[Tuple[Polynomial, Polynomial]]:
            cand = Polynomial.fit(c1, c2, n, base, p, v)
            if cand is not None and len(cand.coeffs) > 1 and not cand.is_zero():
                q, r = poly.divide(cand)
                if r.equals_number(0):
                    factors.add(cand.to_expression())
                    return q, cand
            return None

        cnst, lc = poly.coeffs[0], poly.lc()
        subbed = poly.sub(base)
        if not (cnst.is_int() and lc.is_int() and subbed.is_int()):
            return poly
        subbed_int = subbed.to_int()
        if subbed_int == 0 or abs(subbed_int) > _SEARCH_LIMIT or abs(lc) > _SEARCH_LIMIT or abs(cnst) > _SEARCH_LIMIT:
            return poly
        nfactors = self.mix({k: e for k, e in ifactor(subbed_int).items() if k > 1}, subbed_int < 0)
        ltfactors = [1] + [k for k in ifactor(lc.to_int()) if k > 1]
        cfactors = [1] + [k for k in ifactor(cnst.to_int()) if k > 1]
        lc_neg, cnst_neg = lc < 0, cnst < 0
        cp = math.ceil(len(poly.coeffs) / 2)
        while cp > 0:
            cp -= 1
            for x in ltfactors:
                for y in cfactors:
                    for n in nfactors:
                        check_timeout()
                        found = check(x, y, n, cp)
                        if found is None and (lc_neg or cnst_neg):
                            found = check(-x if lc_neg else x, -y if cnst_neg else y, n, cp)
                        if found is not None:
                            poly = found[0]
                            at = poly.sub(base)
                            if not (at.is_int() and is_prime(at.to_int())):
                                poly = self.search(poly, factors, base)
                            return poly
        return poly

    def quad_factor(self, s: Expr, factors: FactorSet, v: str) -> Expr:
        """Split ``c2*x^2 + c1*x + c0`` over the divisors of the leading coefficient."""
        try:
            poly = Polynomial.from_expression(s, v)
        except NotPolynomialError:
            return s
        if poly.deg() != 2 or not all(c.is_int() for c in poly.coeffs):
            return s
        c0, c1, c2 = (c.to_int() for c in poly.coeffs)
        x = Sym(v)
        for a1 in divisors(c2):
            a2 = c2 // a1
            disc = c1 * c1 - 4 * a2 * a1 * c0
            sq = int_root(disc, 2) if disc >= 0 else None
            if sq is None:
                continue
            for top in (c1 + sq, c1 - sq):
                if top % (2 * a2):
                    continue
                r1 = top // (2 * a2)
                if r1 == 0 or c0 % r1:
                    continue
                r2 = c0 // r1
                factors.add(add(mul(Num(a2), x), Num(r2)))
                factors.add(add(mul(Num(a1), x), Num(r1)))
                return ONE
        return s

    # -----------------
    # Several variables
    # -----------------
    def cube_factor(self, s: Expr, factors: FactorSet) -> Expr:
        """Sum and difference of cubes."""
        if not isinstance(s, Add) or len(s.terms) != 2:
            return s
        (sign_a, a), (sign_b, b) = (_abs_term(t) for t in s.terms)
        x, y = _monomial_root(a, 3), _monomial_root(b, 3)
        if x is None or y is None:
            return s
        if sign_a < sign_b:
            sign_a, sign_b = sign_b, sign_a
            x, y = y, x
        square = lambda u: power(u, Num(2))
        if sign_a == 1 and sign_b == -1:
            factors.add(add(x, negate(y)))
            factors.add(expand(add(square(x), mul(x, y), square(y))))
            return ONE
        if sign_a == 1 and sign_b == 1:
            factors.add(add(x, y))
            factors.add(expand(add(square(x), negate(mul(x, y)), square(y))))
            return ONE
        return s

    def m_sqfr_factor(self, s: Expr, factors: FactorSet) -> Expr:
        """Square-free pass for several variables using partial derivatives."""
        if isinstance(s, Fn):
            return s
        for v in reversed(variables(s)):
            guard = 0
            while True:
                check_timeout()
                guard += 1
                if guard > settings.max_division_iterations:
                    break
                if isinstance(s, Sym) and s.name == v:
                    factors.add(s)
                    s = ONE
                    break
                d = self.coeff_factor(expand(diff(s, v)), None)
                if d == ZERO or d == ONE or d == MINUS_ONE:
                    break
                if isinstance(d, Num) and isinstance(s, Add):
                    if any(not (multiplier(t) / d.value).is_int() for t in s.terms):
                        break
                q, r = div_with_check(s, d)
                if r != ZERO or q == s:
                    break
                if q.is_constant():
                    factors.add(q)
                    s = d
                    break
                factors.add(q)
                s = d
        return s

    @give_up_to(lambda self, s, factors: s)
    def sqdiff(self, s: Expr, factors: FactorSet) -> Expr:
        """Difference of squares, also ``(a+c) - b^2`` with ``a+c`` a perfect square."""
        if s.is_constant() or not isinstance(s, Add):
            return s
        if len(s.terms) == 2:
            # whole monomials: x^2*y^2 - 1
            (sign_a, a), (sign_b, b) = (_abs_term(t) for t in s.terms)
            if sign_a == sign_b:
                return s
            if sign_a < 0:
                a, b = b, a
            ra, rb = _monomial_root(a, 2), _monomial_root(b, 2)
            if ra is None or rb is None:
                return s
            factors.add(add(ra, negate(rb)))
            factors.add(add(ra, rb))
            return ONE
        groups: Dict[str, List[Expr]] = {}
        constants: List[Expr] = []
        for t in s.terms:
            names = variables(t)
            if not names:
                constants.append(t)
            elif len(names) > 1:
                return s
            else:
                groups.setdefault(names[0], []).append(t)
        if len(groups) != 2:
            return s
        ga, gb = groups.values()
        for comp, single in ((ga, gb), (gb, ga)):
            if len(single) != 1 or multiplier(single[0]) > 0:
                continue
            rb = _monomial_root(negate(single[0]), 2)
            if rb is None:
                continue
            f = self.factor_inner(add(*(comp + constants)))
            if isinstance(f, Pow) and f.exp == Num(2):
                factors.add(add(f.base, negate(rb)))
                factors.add(add(f.base, rb))
                return ONE
        return s

    def reduce(self, s: Expr, factors: FactorSet) -> Expr:
        """``x^n - y^n`` for odd n: divide out ``x - y``."""
        if not isinstance(s, Add) or len(s.terms) != 2:
            return s
        hi, lo = sorted(s.terms, key=lambda t: multiplier(t), reverse=True)
        if multiplier(hi) != 1 or multiplier(lo) != -1:
            return s
        bh, xh = base_exp(split_coeff(hi)[1])
        bl, xl = base_exp(split_coeff(lo)[1])
        if not (isinstance(xh, Num) and xh == xl and xh.value.is_int()):
            return s
        n = xh.value.to_int()
        if n < 3 or n % 2 == 0:
            return s
        factors.add(add(bh, negate(bl)))
        return add(*[mul(power(bh, Num(n - i)), power(bl, Num(i - 1))) for i in range(1, n + 1)])

    @give_up_to(lambda self, s, factors: s)
    def zeroes(self, s: Expr, factors: FactorSet) -> Expr:
        """Guess ``(a^p + b^p + ...)`` from the terms left after zeroing all but one variable."""
        s = expand(s)
        names = variables(s)
        found: List[Tuple[Rational, str, int]] = []
        for v in names:
            t = s
            for other in names:
                if other != v:
                    t = subs(t, other, ZERO)
            t = expand(t)
            if t == ZERO or isinstance(t, Add):
                return s
            k = _power_of(t, v)
            if k is None or not k.is_int():
                return s
            found.append((multiplier(t), v, k.to_int()))
        if len(found) < 2:
            return s
        powers = [k for _, _, k in found]
        if len(set(powers)) == 1:
            n_terms = len(terms_of(s))
            den = round((math.sqrt(8 * n_terms - 1) - 3) / 2)
            if len(found) == 2:
                p = Rational(powers[0], n_terms - 1)
            elif len(found) == 3 and den != 0:
                p = Rational(powers[0], den)
            else:
                p = Rational(functools.reduce(math.gcd, powers))
        else:
            p = Rational(functools.reduce(math.gcd, powers))
        if not p.is_int() or p.is_zero():
            return s
        pi = p.to_int()
        parts: List[Expr] = []
        for c, v, k in found:
            if k % pi:
                return s
            n = k // pi
            if c < 0 and n % 2 == 0:
                return s
            root = _monomial_root(Num(abs(c)), n)
            if root is None:
                return s
            parts.append(mul(root if c > 0 else negate(root), power(Sym(v), Num(pi))))
        guess = add(*parts)
        if not isinstance(guess, Add):
            return s
        for _ in range(settings.max_division_iterations):
            q, r = div(s, guess)
            if r != ZERO:
                break
            s = q
            factors.add(guess)
            if s == ONE:
                break
        return s

    @give_up_to(lambda self, s, factors: s)
    def mfactor(self, s: Expr, factors: FactorSet) -> Expr:
        if isinstance(s, Fn):
            factors.add(s)
            return ONE
        s = self.m_sqfr_factor(s, factors)

        names = variables(s)
        grouped: Dict[str, Expr] = {}
        lowest: Dict[str, Rational] = {}
        for v in names:
            acc: List[Expr] = []
            for t in terms_of(s):
                k = _power_of(t, v)
                if k is None:
                    continue
                if v not in lowest or k < lowest[v]:
                    lowest[v] = k
                acc.append(t)
            grouped[v] = add(*acc)

        for v in names:
            new_factor = expand(over(grouped[v], power(Sym(v), Num(lowest[v]))))
            if new_factor == ONE or new_factor == MINUS_ONE:
                break
            q, r = div(s, new_factor)
            if q == ZERO:
                break
            if r == ZERO and any(not multiplier(t).is_int() for t in terms_of(q)):
                break
            negative = isinstance(new_factor, Num) and new_factor.value < 0
            if r == ZERO and not negative:
                inner, left = div_with_check(s, q)
                if inner == ZERO or left != ZERO:
                    return s
                factors.add(q)
                if inner.is_constant():
                    factors.add(inner)
                    return ONE
                return inner

        s = self.sqdiff(s, factors)
        s = self.reduce(s, factors)
        s = self.zeroes(s, factors)
        return s


# trial division past this is too slow to be worth it
_IFACTOR_LIMIT = 10 ** 12


def integer_factors(n: Rational) -> Expr:
    """Prime factorisation of an integer, ``12 -> 2^2*3``.

    The prime powers are held apart; canonical arithmetic would fold them
    straight back into the number.
    """
    k = n.to_int()
    if abs(k) < 4 or abs(k) >= _IFACTOR_LIMIT or is_prime(abs(k)):
        return Num(n)
    fs = ifactor(abs(k))
    parts = tuple(Pow(Num(p), Num(e)) if e > 1 else Num(p) for p, e in sorted(fs.items()))
    if k > 0 and len(parts) == 1:
        return parts[0]
    return Mul(Rational(1 if k > 0 else -1), parts)


def factor(expr) -> Expr:
    """Factor ``expr``; returns it unchanged when no factorisation is found.

    An integer comes back as its product of prime powers.
    """
    expr = to_expr(expr)
    if isinstance(expr, Num) and expr.value.is_int():
        return integer_factors(expr.value)
    return Factorizer().factor(expr)


def factor_inner(expr, factors: Optional[FactorSet] = None) -> Expr:
    return Factorizer().factor_inner(to_expr(expr), factors)
