from __future__ import annotations
import cmath
import math
from dataclasses import dataclass, field
from typing import List, Optional, Union

from errors import DivisionByZeroError, NotPolynomialError
from expression import Expr, Num, Sym, add, collect, mul, power, to_expr
from rational import Rational, qgcd

Number = Union[int, Rational]


@dataclass
class Polynomial:
    """Dense univariate polynomial with rational coefficients.

    ``coeffs[i]`` is the coefficient of ``variable**i``. Arithmetic methods
    mutate in place and return ``self``; clone first to keep an operand.
    """
    coeffs: List[Optional[Rational]] = field(default_factory=list)
    variable: str = "x"

    @staticmethod
    def from_expression(expr: Expr, variable: Optional[str] = None) -> "Polynomial":
        expr = to_expr(expr)
        names = expr.variables()
        if len(names) > 1 or (variable is not None and names and names[0] != variable):
            raise NotPolynomialError(f"Polynomial expected! Received {expr}")
        variable = variable or (names[0] if names else "x")
        buckets = collect(expr, variable)
        coeffs: List[Optional[Rational]] = [None] * (max(buckets) + 1)
        for p, c in buckets.items():
            if not isinstance(c, Num):
                raise NotPolynomialError(f"Polynomial expected! Received {expr}")
            coeffs[p] = c.value
        return Polynomial(coeffs, variable).fill()

    @staticmethod
    def from_array(arr: List[Number], variable: str = "x") -> "Polynomial":
        return Polynomial([Rational(c) if c is not None else None for c in arr], variable).fill()

    @staticmethod
    def from_order(order: int, coeff: Number, variable: str) -> "Polynomial":
        coeffs: List[Optional[Rational]] = [None] * (order + 1)
        coeffs[order] = Rational(coeff)
        return Polynomial(coeffs, variable).fill()

    @staticmethod
    def fit(c1: int, c2: int, n: int, base: int, p: int, variable: str) -> Optional["Polynomial"]:
        """Fit ``c1*x^p + ... + c2`` so that it evaluates to ``n`` at ``base``.

        The leading and constant coefficients are taken as known; the middle
        ones are read off like digits. Returns None when no exact fit exists.
        """
        terms: List[Optional[Rational]] = [None] * (p + 1)
        t = Rational(n - c2)
        terms[0] = Rational(c2)
        terms[p] = Rational(c1)
        t = t - Rational(c1) * Rational(base) ** p
        for i in range(p - 1, 0, -1):
            b = Rational(base) ** i
            q = t / b
            c = q.sign() * math.floor(abs(q).fraction())
            t = t - b * c
            terms[i] = Rational(c)
        if not t.is_zero():
            return None
        return Polynomial(terms, variable).fill()

    def clone(self) -> "Polynomial":
        return Polynomial(list(self.coeffs), self.variable)

    def fill(self, x: Number = 0) -> "Polynomial":
        self.coeffs = [Rational(x) if c is None else c for c in self.coeffs]
        return self

    def trim(self) -> "Polynomial":
        while len(self.coeffs) > 1 and self.coeffs[-1].is_zero():
            self.coeffs.pop()
        return self

    def add(self, other: "Polynomial") -> "Polynomial":
        n = max(len(self.coeffs), len(other.coeffs))
        self.coeffs = [self._at(i) + other._at(i) for i in range(n)]
        return self

    def subtract(self, other: "Polynomial") -> "Polynomial":
        n = max(len(self.coeffs), len(other.coeffs))
        self.coeffs = [self._at(i) - other._at(i) for i in range(n)]
        return self

    def multiply(self, other: "Polynomial") -> "Polynomial":
        out = [Rational(0)] * max(len(self.coeffs) + len(other.coeffs) - 1, 1)
        for i, a in enumerate(self.coeffs):
            if a.is_zero():
                continue
            for j, b in enumerate(other.coeffs):
                out[i + j] = out[i + j] + a * b
        self.coeffs = out
        return self

    def divide(self, divisor: "Polynomial") -> List["Polynomial"]:
        """Schoolbook division; returns ``[quotient, remainder]``."""
        den = divisor.clone().trim()
        if den.is_zero():
            raise DivisionByZeroError("division by the zero polynomial")
        dividend = list(self.coeffs)
        n = len(dividend)
        mp = len(den.coeffs) - 1
        lead = den.coeffs[mp]
        quotient = [Rational(0)] * max(n - mp, 1)
        for i in range(n):
            p = n - (i + 1)
            d = p - mp
            if d < 0:
                break
            q = dividend[p] / lead
            quotient[d] = q
            if q.is_zero():
                continue
            for j in range(mp + 1):
                dividend[j + d] = dividend[j + d] - den.coeffs[j] * q
        return [Polynomial(quotient, self.variable).trim(), Polynomial(dividend, self.variable).trim()]

    def is_zero(self) -> bool:
        return all(c.is_zero() for c in self.coeffs)

    def sub(self, n: Number) -> Rational:
        total = Rational(0)
        for i, c in enumerate(self.coeffs):
            if not c.is_zero():
                total = total + c * Rational(n) ** i
        return total

    def deg(self) -> int:
        self.trim()
        return len(self.coeffs) - 1

    def lc(self) -> Rational:
        return self.coeffs[self.deg()]

    def monic(self) -> "Polynomial":
        lc = self.lc()
        self.coeffs = [c / lc for c in self.coeffs]
        return self

    def gcd(self, other: "Polynomial") -> "Polynomial":
        """Euclidean GCD, made primitive with a positive leading coefficient."""
        a = self.clone().trim()
        b = other.clone().trim()
        if a.deg() < b.deg():
            a, b = b, a
        while not b.is_zero():
            r = a.divide(b)[1]
            a, b = b, r
        nonzero = [c for c in a.coeffs if not c.is_zero()]
        if not nonzero:
            return a
        g = qgcd(*nonzero)
        if a.lc() < 0:
            g = -g
        if not g.is_one():
            a.coeffs = [c / g for c in a.coeffs]
        return a

    def diff(self) -> "Polynomial":
        self.coeffs = [c * i for i, c in enumerate(self.coeffs) if i > 0] or [Rational(0)]
        return self

    def integrate(self) -> "Polynomial":
        self.coeffs = [Rational(0)] + [c / (i + 1) for i, c in enumerate(self.coeffs)]
        return self

    def gcf(self) -> List:
        """Return ``[rational gcd of the non-zero coefficients, lowest non-zero power]``."""
        nonzero = [c for c in self.coeffs if not c.is_zero()]
        first = next((i for i, c in enumerate(self.coeffs) if not c.is_zero()), 0)
        return [qgcd(*nonzero) if nonzero else Rational(0), first]

    def quad(self, incl_img: bool = False) -> List[complex | float]:
        if len(self.coeffs) > 3:
            raise ValueError(f"Cannot calculate quadratic order of {len(self.coeffs) - 1}")
        if not self.coeffs:
            raise ValueError("Polynomial array has no terms")
        a = float(self._at(2))
        b = float(self._at(1))
        c = float(self._at(0))
        dsc = b * b - 4 * a * c
        if dsc < 0:
            if not incl_img:
                return []
            r = cmath.sqrt(dsc)
            return [(-b + r) / (2 * a), (-b - r) / (2 * a)]
        r = math.sqrt(dsc)
        return [(-b + r) / (2 * a), (-b - r) / (2 * a)]

    def square_free(self) -> List:
        """Return ``[square_free_part, multiplicity_witness, counter]``."""
        a = self.clone().trim()
        i = 1
        b = a.clone().diff()
        c = a.gcd(b)
        w = a.divide(c)[0]
        output = Polynomial([Rational(1)], a.variable)
        guard = len(a.coeffs) + 2
        while not c.equals_number(1) and guard > 0:
            guard -= 1
            y = w.gcd(c)
            z = w.divide(y)[0]
            # a smaller square factor may surface before the one being peeled
            if not z.equals_number(1) and i > 1:
                t = z.clone()
                for _ in range(1, i):
                    t.multiply(z)
                z = t
            output.multiply(z)
            i += 1
            w = y
            c = c.divide(y)[0]
        return [output, w, i]

    def equals_number(self, x: Number) -> bool:
        self.trim()
        return len(self.coeffs) == 1 and self.coeffs[0] == Rational(x)

    def to_expression(self) -> Expr:
        v = Sym(self.variable)
        return add(*[mul(Num(c), power(v, Num(i))) for i, c in enumerate(self.coeffs) if not c.is_zero()])

    def to_string(self) -> str:
        return str(self.to_expression())

    def __str__(self) -> str:
        return self.to_string()

    def _at(self, i: int) -> Rational:
        if i < len(self.coeffs) and self.coeffs[i] is not None:
            return self.coeffs[i]
        return Rational(0)
