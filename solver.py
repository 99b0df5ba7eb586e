"""
Equation Solver Module

Single equations are brought to ``expression = 0`` form and dispatched on
their shape: polynomials in one variable go through factoring and the
closed forms, other one-variable equations through a sign-change scan
refined by bisection and Newton's method, and the rest through rewriting
(isolating the variable and applying inverse functions). Lists of
equations are handed to the system solvers in ``systems``.
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from config import check_timeout, settings
from edag import build, build_vectorized, diff, evaluate
from errors import (AlgorithmError, CancellationError, DivisionByZeroError, MalformedInputError,
                    NotPolynomialError, RECOVERABLE)
from expression import (E, HALF, I, MINUS_ONE, Add, Expr, Fn, Mul, Num, Pow, Sym, ZERO, add, base_exp,
                        collect, expand, factors_of, fn, get_den, get_num, has_function, is_imaginary,
                        is_integer, is_polynomial, mul, negate, power, replace, split_coeff, subs,
                        terms_of, to_expr, to_text, together, transform, variables, walk)
from expression import divide as over
from factor import factor_inner
from jenkins_traub import proots
from parser import parse_equation
from roots import coeffs, csolve, cubic, quad, quartic

log = logging.getLogger(__name__)

_INVERSE = {"sin": "asin", "cos": "acos", "tan": "atan"}

# |f| beyond this during Newton means the iterate is lost
_OVERFLOW = 1e25
_BSEARCH_ITERATIONS = 80


def _reciprocal(f: Expr) -> bool:
    return isinstance(f, Pow) and isinstance(f.exp, Num) and f.exp.value < 0


def _is_sqrt(t: Expr) -> bool:
    if isinstance(t, Mul) and len(t.factors) == 1:
        t = t.factors[0]
    return isinstance(t, Pow) and t.exp == HALF


def _remove_denom(a: Expr, b: Expr) -> Tuple[Expr, Expr]:
    a, b = together(a), together(b)
    den = mul(get_den(a), get_den(b))
    a, b = expand(mul(a, den)), expand(mul(b, den))
    if isinstance(a, Mul):
        keep: List[Expr] = [Num(a.coeff)]
        for f in a.factors:
            if _reciprocal(f):
                b = over(b, f)
            else:
                keep.append(f)
        return mul(*keep), b
    for t in terms_of(a):
        for f in factors_of(t):
            if _reciprocal(f):
                lin = power(f.base, Num(-f.exp.value))
                return expand(mul(lin, a)), expand(mul(lin, b))
    return a, b


@dataclass
class Equation:
    """``lhs = rhs``; rejects equations between two different numbers."""
    lhs: Expr
    rhs: Expr = ZERO

    def __post_init__(self) -> None:
        self.lhs, self.rhs = to_expr(self.lhs), to_expr(self.rhs)
        a, b = self.lhs, self.rhs
        if a == b:
            return
        if ((isinstance(a, Num) and isinstance(b, Num))
                or (a == I and b.is_constant()) or (b == I and a.is_constant())):
            raise MalformedInputError(f"{a} does not equal {b}")

    @classmethod
    def from_string(cls, text: str) -> "Equation":
        return cls(*parse_equation(text))

    def __str__(self) -> str:
        return f"{self.lhs}={self.rhs}"

    def to_lhs(self, expanded: bool = False) -> Expr:
        """Move everything to the left: ``lhs - rhs`` with denominators cleared."""
        a, b = _remove_denom(self.lhs, self.rhs)
        if a.is_constant() and not b.is_constant():
            a, b = b, a
        t = add(a, negate(b))
        if expanded:
            t = expand(t)
        return _remove_denom(t, ZERO)[0]

    def remove_denom(self) -> "Equation":
        return Equation(*_remove_denom(self.lhs, self.rhs))

    def sub(self, name: str, value) -> "Equation":
        return Equation(subs(self.lhs, name, value), subs(self.rhs, name, value))

    def is_zero(self) -> bool:
        return expand(self.to_lhs()) == ZERO

    def variables(self) -> List[str]:
        return sorted(set(variables(self.lhs)) | set(variables(self.rhs)))


EquationLike = Union[Equation, Expr, str]


def to_lhs(eqn: EquationLike, expanded: bool = False) -> Expr:
    if isinstance(eqn, Expr):
        return eqn
    if isinstance(eqn, str):
        eqn = Equation.from_string(eqn)
    if not isinstance(eqn, Equation):
        raise MalformedInputError(f"cannot solve {type(eqn).__name__}")
    return eqn.to_lhs(expanded)


class _Solutions:
    """Ordered solution list without duplicates (by text form)."""

    def __init__(self) -> None:
        self.items: List[Expr] = []
        self.seen = set()

    def add(self, r) -> None:
        if r is None:
            return
        if isinstance(r, (list, tuple)):
            for x in r:
                self.add(x)
            return
        if isinstance(r, float) and not math.isfinite(r):
            return
        r = to_expr(r)
        k = to_text(r)
        if k not in self.seen:
            self.seen.add(k)
            self.items.append(r)


def _float(e: Expr) -> float:
    return e.value.numerator() / e.value.denominator()


class Solver:
    """Solves one equation for one variable."""

    def solve(self, eqns, var: Optional[str] = None, real: bool = False):
        if isinstance(eqns, (list, tuple)):
            from systems import solve_system
            return solve_system(list(eqns), var if isinstance(var, (list, tuple)) else None)
        if isinstance(eqns, str):
            eqns = Equation.from_string(eqns) if "=" in eqns else to_expr(eqns)
        if var is None:
            names = eqns.variables() if isinstance(eqns, (Equation, Expr)) else []
            var = names[0] if names else "x"
        out = self._solve(eqns, var, 0)
        if real:
            out = [s for s in out if not is_imaginary(s)]
        return out

    def _solve(self, eqns: Union[Equation, Expr], v: str, depth: int) -> List[Expr]:
        if depth > settings.max_solve_depth:
            log.debug("solve depth exceeded for %s", eqns)
            return []
        depth += 1
        check_timeout()
        if isinstance(eqns, Equation):
            branches = self.abs_solve(eqns, v, depth)
            if branches is not None:
                return self._validate(eqns.to_lhs(), v, branches)
            if eqns.is_zero():
                return [ZERO]
            if eqns.lhs == Sym(v) and not eqns.rhs.contains(v):
                return [eqns.rhs]
            if eqns.rhs == Sym(v) and not eqns.lhs.contains(v):
                return [eqns.lhs]
            eqns = eqns.to_lhs()
        symbol = to_expr(eqns)
        return self._validate(symbol, v, self._solve_expr(symbol, v, depth))

    def _solve_expr(self, eq: Expr, v: str, depth: int) -> List[Expr]:
        found = _Solutions()
        if isinstance(eq, Mul):
            # only the numerator can vanish
            num = get_num(eq)
            if isinstance(num, Mul):
                for f in num.factors:
                    if f.contains(v):
                        found.add(self._solve(f, v, depth))
                return found.items
            eq = num
        if not eq.contains(v):
            return []
        if isinstance(eq, Pow) and isinstance(eq.exp, Num):
            x = eq.exp.value
            if x == HALF.value or (x.is_int() and x > 1):
                return self._solve(eq.base, v, depth)
        if isinstance(eq, Sym):
            return [ZERO]

        names = variables(eq)
        eq, fractionals = self.correct_denom(eq, v)
        if eq == ZERO:
            return [ZERO]
        cfact = None
        if len(fractionals) == 1:
            q = next(iter(fractionals))
            raised = self._raise_powers(eq, v, q)
            if raised is not None:
                eq, cfact = raised, q

        found.add(self.sqrt_solve(eq, v, depth))
        if len(names) == 1:
            if is_polynomial(eq, v):
                found.add(self._solve_polynomial(eq, v, depth))
            else:
                found.items = self._tidy(found.items + self._solve_numeric(eq, v))
        elif isinstance(eq, Add) and not any(isinstance(n, Fn) and n.contains(v) for n in walk(eq)):
            found.add(self._solve_multivariate(eq, v, depth))
        else:
            found.add(self._solve_rewrite(eq, v, depth))

        if cfact:
            return [power(s, Num(cfact)) for s in found.items]
        return found.items

    # -----------------
    # Shape handlers
    # -----------------
    def _solve_polynomial(self, eq: Expr, v: str, depth: int) -> List[Expr]:
        factored = factor_inner(eq)
        symbolic = [f for f in factors_of(factored) if f.contains(v)]
        if len(symbolic) > 1:
            out: List[Expr] = []
            for f in symbolic:
                out.extend(self._solve(f, v, depth))
            return out
        cs = coeffs(eq, v)
        deg = len(cs) - 1
        if all(isinstance(c, Num) for c in cs):
            rts = proots(eq)
            if all(is_integer(r) for r in rts):
                return rts
        if deg == 1:
            return [over(cs[0], negate(cs[1]))]
        if deg == 2:
            return quad(*cs)
        if deg == 3:
            return cubic(*cs)
        return proots(eq)

    def _solve_numeric(self, eq: Expr, v: str) -> List[float]:
        try:
            step = settings.step_size
            points = sorted(set(self.get_points(eq, v, step)
                                + self.get_points(eq, v, step / 2)
                                + self.get_points(eq, v, step / 10, extended=True)))
            f = build(eq, [v])
            fp = build(diff(eq, v), [v])
        except CancellationError:
            raise
        except RECOVERABLE as e:
            log.debug("cannot scan %s numerically: %r", eq, e)
            return []
        found: List[float] = []
        rest: List[float] = []
        for point in points:
            check_timeout()
            s = self.bisection(point, f)
            if s is None:
                rest.append(point)
            else:
                found.append(s)
        last = rest[0] if rest else None
        for point in rest:
            check_timeout()
            s = self.newton(point, f, fp, last)
            if s is not None:
                found.append(s)
            last = point
        return found

    def _solve_multivariate(self, eq: Expr, v: str, depth: int) -> List[Expr]:
        found = _Solutions()
        try:
            factored = factor_inner(eq)
            if isinstance(factored, Mul) and expand(factored) == expand(eq):
                for f in factored.factors:
                    found.add(self._solve(f, v, depth))
                return found.items
            try:
                cs = coeffs(eq, v)
            except NotPolynomialError:
                cs = [eq]
            deg = len(cs) - 1
            if deg == 0:
                found.add(self._solve_exponential(eq, v))
            elif deg == 1:
                found.add(over(cs[0], negate(cs[1])))
            elif deg == 2:
                found.add(quad(*cs))
            elif deg == 3:
                found.add(cubic(*cs))
            elif deg == 4:
                found.add(quartic(*cs))
            else:
                found.add(csolve(eq, v))
                if not found.items:
                    found.add(self.divide_and_conquer(eq, v, depth))
            if not found.items and factored != eq:
                found.add(self._solve(factored, v, depth))
        except CancellationError:
            raise
        except RECOVERABLE as e:
            log.debug("multivariate solve of %s gave up: %r", eq, e)
        return found.items

    def _solve_exponential(self, eq: Expr, v: str) -> List[Expr]:
        # a*b^(m*x + k) = rhs  ->  x = (log(rhs/a)/log(b) - k)/m
        lhs, rhs = self._separate(eq, v)
        c, rest = split_coeff(lhs)
        if rest is None:
            return []
        pows = [f for f in factors_of(rest) if f.contains(v)]
        if len(pows) != 1 or not isinstance(pows[0], Pow) or pows[0].base.contains(v):
            return []
        a = mul(Num(c), *[f for f in factors_of(rest) if not f.contains(v)])
        linear = self._linear_parts(pows[0].exp, v)
        if linear is None:
            return []
        m, k = linear
        x = over(fn("log", over(rhs, a)), fn("log", pows[0].base))
        return [over(add(x, negate(k)), m)]

    def _solve_rewrite(self, eq: Expr, v: str, depth: int) -> List[Expr]:
        found = _Solutions()
        try:
            lhs, rhs = self.rewrite(eq, None, v)
            if isinstance(lhs, Fn):
                if lhs.name == "abs":
                    if lhs.args[0] == Sym(v):
                        found.add([rhs, negate(rhs)])
                elif lhs.name in _INVERSE:
                    found.add(self.inverse_function_solve(_INVERSE[lhs.name], lhs, rhs, v))
                elif lhs.name in ("log", "ln"):
                    base = lhs.args[1] if len(lhs.args) > 1 else E
                    linear = self._linear_parts(lhs.args[0], v)
                    if linear is not None:
                        m, k = linear
                        found.add(over(add(power(base, rhs), negate(k)), m))
            else:
                neq = Equation(lhs, rhs).to_lhs()
                if neq == eq:
                    raise AlgorithmError("rewriting made no progress")
                found.add(self._solve(neq, v, depth))
        except CancellationError:
            raise
        except RECOVERABLE as e:
            log.debug("rewrite of %s gave up: %r", eq, e)
            if isinstance(eq, Add):
                lhs, rhs = self._separate(eq, v)
                if isinstance(lhs, Pow) and lhs.base == Sym(v):
                    found.add(power(rhs, power(lhs.exp, MINUS_ONE)))
        return found.items

    # -----------------
    # Helpers
    # -----------------
    @staticmethod
    def _separate(eq: Expr, v: str) -> Tuple[Expr, Expr]:
        lhs = add(*[t for t in terms_of(eq) if t.contains(v)])
        rhs = negate(add(*[t for t in terms_of(eq) if not t.contains(v)]))
        return lhs, rhs

    @staticmethod
    def _linear_parts(e: Expr, v: str) -> Optional[Tuple[Expr, Expr]]:
        """``(m, k)`` when ``e == m*v + k``."""
        try:
            buckets = collect(e, v)
        except NotPolynomialError:
            return None
        if 1 not in buckets or set(buckets) - {0, 1}:
            return None
        return buckets[1], buckets.get(0, ZERO)

    @staticmethod
    def _raise_powers(eq: Expr, v: str, q: int) -> Optional[Expr]:
        """Substitute ``v -> v^q`` when every occurrence of ``v`` is a plain power."""
        target = Sym(v)
        for n in walk(eq):
            if isinstance(n, (Fn, Pow)) and n.contains(v) and not (isinstance(n, Pow) and n.base == target):
                return None

        def visit(n: Expr) -> Optional[Expr]:
            if n == target:
                return power(target, Num(q))
            if isinstance(n, Pow) and n.base == target and isinstance(n.exp, Num):
                return power(target, Num(n.exp.value * q))
            return None
        return transform(eq, visit)

    def correct_denom(self, symbol: Expr, v: str, _depth: int = 0) -> Tuple[Expr, Dict[int, int]]:
        """Clear denominators in ``v``; also count the fractional powers of ``v`` by denominator."""
        symbol = expand(symbol)
        if isinstance(symbol, Add) and _depth < settings.max_solve_depth:
            for t in symbol.terms:
                den = get_den(t)
                if den.contains(v):
                    return self.correct_denom(add(*[mul(x, den) for x in symbol.terms]), v, _depth + 1)
        fractionals: Dict[int, int] = {}
        for t in terms_of(symbol):
            for f in factors_of(t):
                b, p = base_exp(f)
                if b == Sym(v) and isinstance(p, Num) and not p.value.is_int():
                    q = p.value.denominator()
                    fractionals[q] = fractionals.get(q, 0) + 1
        return symbol, fractionals

    def sqrt_solve(self, symbol: Expr, v: str, depth: int) -> Optional[List[Expr]]:
        """Isolate the square roots, square both sides and keep what checks out."""
        if not isinstance(symbol, Add):
            return None
        sqrts = [t for t in symbol.terms if _is_sqrt(t) and t.contains(v)]
        if not sqrts:
            return None
        rem = [t for t in symbol.terms if not (_is_sqrt(t) and t.contains(v))]
        squared = expand(add(power(add(*rem), Num(2)), negate(power(add(*sqrts), Num(2)))))
        keep = []
        for s in self._solve(squared, v, depth):
            if is_imaginary(s):
                keep.append(s)
                continue
            try:
                val = evaluate(subs(symbol, v, s))
            except CancellationError:
                raise
            except RECOVERABLE:
                continue
            if abs(val) < settings.zero_epsilon:
                keep.append(s)
        return keep

    def divide_and_conquer(self, symbol: Expr, v: str, depth: int) -> List[Expr]:
        """Solve the factors of ``symbol`` one at a time."""
        out: List[Expr] = []
        factored = factor_inner(symbol)
        if isinstance(factored, Mul):
            for f in factored.factors:
                out.extend(self._solve(f, v, depth))
        return out

    def inverse_function_solve(self, name: str, lhs: Fn, rhs: Expr, v: str) -> Optional[Expr]:
        linear = self._linear_parts(lhs.args[0], v)
        if linear is None:
            return None
        m, k = linear
        return over(add(fn(name, rhs), negate(k)), m)

    def abs_solve(self, eqn: Equation, v: str, depth: int) -> Optional[List[Expr]]:
        """Split an equation headed by a single ``abs`` into its two branches."""
        hits = [n for side in (eqn.lhs, eqn.rhs) for n in walk(side) if isinstance(n, Fn) and n.name == "abs"]
        if len(hits) != 1:
            return None
        target = hits[0]
        if target != eqn.lhs and target != eqn.rhs:
            return None
        out: List[Expr] = []
        for branch in (negate(target.args[0]), target.args[0]):
            swap = {target.key: branch}
            out.extend(self._solve(Equation(replace(eqn.lhs, swap), replace(eqn.rhs, swap)), v, depth))
        return out

    def rewrite(self, rhs: Expr, lhs: Optional[Expr], v: str) -> Tuple[Expr, Expr]:
        """Peel ``rhs = lhs`` until the side holding ``v`` is a function, a power or ``v``.

        Returns ``(side with v, other side)``.
        """
        lhs = ZERO if lhs is None else lhs
        if isinstance(rhs, Add):
            sqrts = [t for t in rhs.terms if _is_sqrt(t) and t.contains(v)]
            if len(sqrts) == 1:
                rem = [t for t in rhs.terms if t != sqrts[0]]
                lhs = expand(power(add(lhs, negate(add(*rem))), Num(2)))
                rhs = expand(power(sqrts[0], Num(2)))
        else:
            rhs = expand(rhs)

        if isinstance(rhs, Add) and rhs.contains(v):
            moved = [t for t in rhs.terms if not t.contains(v)]
            rhs = add(*[t for t in rhs.terms if t.contains(v)])
            if moved:
                return self.rewrite(rhs, add(lhs, negate(add(*moved))), v)
            return rhs, lhs
        if isinstance(rhs, Mul) and rhs.contains(v):
            if lhs == ZERO:
                return rhs, lhs
            keep = [f for f in rhs.factors if f.contains(v)]
            rest = mul(Num(rhs.coeff), *[f for f in rhs.factors if not f.contains(v)])
            return self.rewrite(mul(*keep), over(lhs, rest), v)
        if isinstance(rhs, Pow) and rhs.contains(v):
            if rhs.exp.contains(v) and not rhs.base.contains(v):
                return self.rewrite(rhs.exp, over(fn("log", lhs), fn("log", rhs.base)), v)
            if not rhs.exp.contains(v):
                p = power(rhs.exp, MINUS_ONE)
                return self.rewrite(power(rhs, p), power(expand(lhs), p), v)
        return rhs, lhs

    # -----------------
    # Numeric search
    # -----------------
    def get_points(self, symbol: Expr, v: str, step: float = 0.01, extended: bool = False) -> List[float]:
        """Candidate starting points: 0 plus both ends of every sign change on ``[-R, R]``."""
        f = build_vectorized(symbol, v)
        start = 0
        points: List[float] = [float(start)]
        if has_function(symbol, "log"):
            points.append(0.1)

        def test_side(side: np.ndarray, limit: int) -> None:
            signs = np.sign(f(side))
            valid = np.flatnonzero(~np.isnan(signs))
            if not valid.size:
                return
            s = signs[valid]
            prev = np.concatenate(([s[0]], s[:-1]))
            hits: List[float] = []
            for i in valid[s != prev]:
                if len(hits) >= limit:
                    break
                hits.append(float(side[i]))
                if i > 0:
                    hits.append(float(side[i - 1]))
            points.extend(hits)

        radius = settings.solve_radius
        test_side(np.arange(-radius, start, step), settings.roots_per_side)
        test_side(np.arange(start, radius, step), settings.roots_per_side)
        if extended:
            # one look far outside the range
            test_side(np.array([radius, radius * radius]), 1)
            test_side(np.array([-radius * radius, -radius]), 1)
        return points

    def bisection(self, point: float, f: Callable[[float], float]) -> Optional[float]:
        left, right = point - 1, point + 1
        if np.sign(f(left)) == np.sign(f(right)):
            return None
        safety = 0
        while True:
            epsilon = abs(right - left)
            safety += 1
            if safety > settings.max_bisection_iter or math.isnan(epsilon):
                return None
            middle = (left + right) / 2
            if f(left) * f(middle) > 0:
                left = middle
            else:
                right = middle
            if epsilon < settings.epsilon:
                break
        solution = (left + right) / 2
        at = f(solution)
        if not math.isnan(at) and abs(at) <= settings.bisection_epsilon:
            return round(solution, 13)
        return None

    def bsearch(self, left: Optional[float], right: float, f: Callable[[float], float]) -> Optional[float]:
        """Narrow a sign-change interval when Newton's iterates blow up."""
        if left is None:
            return None
        f_left, f_right = f(left), f(right)
        if np.sign(f_left) == np.sign(f_right) or math.isnan(f_left) or math.isnan(f_right):
            return None
        for _ in range(_BSEARCH_ITERATIONS):
            x = (left + right) / 2
            if np.sign(f_left) == np.sign(f(x)):
                if x == left:
                    break
                left = x
                f_left = f(left)
            else:
                if x == right:
                    break
                right = x
            if left == right:
                break
        if not math.isfinite(f(left)) or not math.isfinite(f(right)):
            return None
        return left

    def newton(self, point: float, f: Callable[[float], float], fp: Callable[[float], float],
               point2: Optional[float] = None) -> Optional[float]:
        x0 = point
        x: Optional[float] = None
        delta = 0.0
        iterations = 0
        while True:
            fx0 = f(x0)
            if x0 == 0 and fx0 == 0:
                return 0.0
            iterations += 1
            if iterations > settings.max_newton_iterations:
                return None
            fpx0 = fp(x0)
            if math.isnan(fpx0) or math.isnan(fx0):
                return None
            if fpx0 == 0:
                # flat spot, repeat the last step
                if x is None:
                    return None
                x += delta
            elif not math.isfinite(fx0) or not math.isfinite(fpx0) or abs(fx0) > _OVERFLOW:
                return self.bsearch(point2, x0, f)
            else:
                x = x0 - fx0 / fpx0
            delta = x - x0
            if delta == 0 and not math.isfinite(fpx0):
                return None
            x0 = x
            if not abs(delta) > settings.newton_epsilon:
                break
        return x if math.isfinite(x) else None

    # -----------------
    # Post-processing
    # -----------------
    def _tidy(self, items: Sequence) -> List[Expr]:
        """Sort numeric solutions ascending, drop near duplicates, then symbolic ones by text."""
        exprs = [s if isinstance(s, Expr) else to_expr(float(f"{s:.15g}")) for s in items]
        numeric = sorted((e for e in exprs if isinstance(e, Num)), key=lambda e: e.value)
        symbolic = sorted((e for e in exprs if not isinstance(e, Num)), key=to_text)
        out: List[Expr] = []
        prev: Optional[float] = None
        for e in numeric:
            x = _float(e)
            if prev is not None and abs(x - prev) < settings.epsilon:
                continue
            out.append(e)
            prev = x
        seen = set()
        for e in symbolic:
            if to_text(e) not in seen:
                seen.add(to_text(e))
                out.append(e)
        return out

    def _validate(self, symbol: Expr, v: str, items: List[Expr]) -> List[Expr]:
        """Drop real solutions that clearly do not satisfy ``symbol = 0``."""
        if not settings.filter_solutions:
            return items
        keep: List[Expr] = []
        for s in items:
            if is_imaginary(s) or not s.is_constant() or not symbol.contains(v):
                keep.append(s)
                continue
            try:
                den = evaluate(subs(get_den(symbol), v, s))
                if math.isfinite(den) and abs(den) < settings.zero_epsilon:
                    raise DivisionByZeroError(f"{symbol} has a pole at {s}")
                val = evaluate(subs(symbol, v, s))
                scale = sum(abs(evaluate(subs(t, v, s))) for t in terms_of(symbol))
            except CancellationError:
                raise
            except DivisionByZeroError:
                log.debug("dropping %s: pole of %s", s, symbol)
                continue
            except RECOVERABLE:
                keep.append(s)
                continue
            if math.isfinite(val) and abs(val) > math.sqrt(settings.zero_epsilon) * max(1.0, scale):
                log.debug("dropping %s: %s evaluates to %s", s, symbol, val)
                continue
            keep.append(s)
        return keep


def solve(eqns, var=None, real: bool = False):
    """Solve an equation (or a list of them).

    A single equation gives a list of solutions; a system gives a dict
    mapping each variable to its value(s). ``real`` drops complex solutions.
    """
    return Solver().solve(eqns, var, real)
