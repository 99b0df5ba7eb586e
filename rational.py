from __future__ import annotations
import math
from fractions import Fraction
from typing import Dict, List, Optional

class Rational:
	__slots__ = ("_f",)
	def __init__(self, num: int | str | Fraction | Rational, den: int | None = None) -> None:
		if isinstance(num, Rational):
			num = num._f
		if isinstance(num, Fraction):
			self._f = num if den is None else num / den
		elif isinstance(num, str):
			self._f = Fraction(num) if den is None else Fraction(num) / den
		else:
			if den == 0:
				raise ZeroDivisionError("division by zero")
			self._f = Fraction(num, 1 if den is None else den)
	@staticmethod
	def _raw(other: Rational | int) -> Fraction | int:
		return other._f if isinstance(other, Rational) else other
	def __add__(self, other: Rational | int) -> Rational:
		return Rational(self._f + Rational._raw(other))
	__radd__ = __add__
	def __sub__(self, other: Rational | int) -> Rational:
		return Rational(self._f - Rational._raw(other))
	def __rsub__(self, other: int) -> Rational:
		return Rational(other - self._f)
	def __mul__(self, other: Rational | int) -> Rational:
		return Rational(self._f * Rational._raw(other))
	__rmul__ = __mul__
	def __truediv__(self, other: Rational | int) -> Rational:
		o = Rational._raw(other)
		if o == 0:
			raise ZeroDivisionError("division by zero")
		return Rational(self._f / o)
	def __rtruediv__(self, other: int) -> Rational:
		if self._f == 0:
			raise ZeroDivisionError("division by zero")
		return Rational(other / self._f)
	def __mod__(self, other: Rational | int) -> Rational:
		o = Rational._raw(other)
		if o == 0:
			raise ZeroDivisionError("division by zero")
		# sign follows the dividend
		return Rational(self._f - o * int(self._f / o))
	def __neg__(self) -> Rational:
		return Rational(-self._f)
	def __abs__(self) -> Rational:
		return Rational(abs(self._f))
	def __pow__(self, exp: int) -> Rational:
		if exp == 0:
			return Rational(1,1)
		if self._f == 0 and exp < 0:
			raise ZeroDivisionError("division by zero")
		return Rational(self._f ** exp)
	def __eq__(self, other: object) -> bool:
		if isinstance(other, int):
			return self._f == other
		if not isinstance(other, Rational):
			return False
		return self._f == other._f
	def __hash__(self) -> int:
		return hash(self._f)
	def __lt__(self, other: Rational | int) -> bool:
		return self._f < Rational._raw(other)
	def __le__(self, other: Rational | int) -> bool:
		return self._f <= Rational._raw(other)
	def __gt__(self, other: Rational | int) -> bool:
		return self._f > Rational._raw(other)
	def __ge__(self, other: Rational | int) -> bool:
		return self._f >= Rational._raw(other)
	def __float__(self) -> float:
		return float(self._f)
	def __bool__(self) -> bool:
		return self._f != 0
	def __repr__(self) -> str:
		return f"Rational({self.to_string()})"
	def fraction(self) -> Fraction:
		return self._f
	def is_zero(self) -> bool:
		return self._f == 0
	def is_one(self) -> bool:
		return self._f == 1
	def is_int(self) -> bool:
		return self._f.denominator == 1
	def is_negative(self) -> bool:
		return self._f < 0
	def sign(self) -> int:
		return (self._f > 0) - (self._f < 0)
	def to_int(self) -> int:
		return self._f.numerator // self._f.denominator
	def numerator(self) -> int:
		return self._f.numerator
	def denominator(self) -> int:
		return self._f.denominator
	def invert(self) -> Rational:
		return Rational(1) / self
	def to_decimal(self, prec: Optional[int] = None) -> float:
		v = float(self._f)
		return v if prec is None else round(v, prec)
	def to_string(self) -> str:
		if self._f.denominator == 1:
			return str(self._f.numerator)
		return f"{self._f.numerator}/{self._f.denominator}"
	def __str__(self) -> str:
		return self.to_string()


ZERO = Rational(0)
ONE = Rational(1)


def qgcd(*values: Rational) -> Rational:
	"""GCD over the rationals: gcd of numerators over lcm of denominators."""
	nums = [abs(v.numerator()) for v in values]
	dens = [v.denominator() for v in values]
	n = 0
	for a in nums:
		n = math.gcd(n, a)
	d = 1
	for b in dens:
		d = d * b // math.gcd(d, b)
	if n == 0:
		return Rational(0)
	return Rational(n, d)


def is_prime(n: int) -> bool:
	n = abs(n)
	if n < 2:
		return False
	if n < 4:
		return True
	if n % 2 == 0 or n % 3 == 0:
		return False
	i = 5
	while i * i <= n:
		if n % i == 0 or n % (i + 2) == 0:
			return False
		i += 6
	return True


def ifactor(n: int) -> Dict[int, int]:
	"""Prime factorisation of |n| as {prime: power}. A negative n adds {-1: 1}."""
	out: Dict[int, int] = {}
	if n < 0:
		out[-1] = 1
		n = -n
	if n < 2:
		return out
	while n % 2 == 0:
		out[2] = out.get(2, 0) + 1
		n //= 2
	p = 3
	while p * p <= n:
		while n % p == 0:
			out[p] = out.get(p, 0) + 1
			n //= p
		p += 2
	if n > 1:
		out[n] = out.get(n, 0) + 1
	return out


def divisors(n: int) -> List[int]:
	"""Positive divisors of |n| in ascending order."""
	n = abs(n)
	if n == 0:
		return []
	small, large = [], []
	i = 1
	while i * i <= n:
		if n % i == 0:
			small.append(i)
			if i != n // i:
				large.append(n // i)
		i += 1
	return small + large[::-1]


def int_root(n: int, k: int) -> Optional[int]:
	"""Exact k-th root of a non-negative integer, or None."""
	if n < 0:
		return None
	if n in (0, 1):
		return n
	r = int(round(n ** (1.0 / k)))
	for c in (r - 1, r, r + 1):
		if c >= 0 and c ** k == n:
			return c
	return None


def split_root(n: int, k: int) -> tuple[int, int]:
	"""Write |n| as a^k * b with b free of k-th powers; returns (a, b)."""
	n = abs(n)
	outside, inside = 1, 1
	for p, e in ifactor(n).items():
		outside *= p ** (e // k)
		inside *= p ** (e % k)
	return outside, inside
