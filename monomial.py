from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple
from errors import AlgorithmError
from expression import Expr, Num, Sym, base_exp, factors_of, mul, power, split_coeff, terms_of
from rational import Rational

# slot holding numeric terms
CONST_HASH = '#'

class VariableMap:
	"""Variable -> slot table shared by reference by every term of one division.

	Never mutated once built.
	"""
	__slots__ = ("_index", "_names")
	def __init__(self, names: Iterable[str]) -> None:
		index = {}
		order: List[str] = []
		for n in names:
			if n not in index:
				index[n] = len(order)
				order.append(n)
		self._index = index
		self._names: Tuple[str, ...] = tuple(order)
	@staticmethod
	def for_variables(names: Iterable[str]) -> VariableMap:
		return VariableMap(list(names) + [CONST_HASH])
	def __len__(self) -> int:
		return len(self._names)
	def __getitem__(self, name: str) -> int:
		return self._index[name]
	def __contains__(self, name: str) -> bool:
		return name in self._index
	def name(self, slot: int) -> str:
		return self._names[slot]
	def const_slot(self) -> int:
		return self._index.get(CONST_HASH, -1)

@dataclass(eq=False)
class Monomial:
	coeff: Rational
	terms: List[Optional[Rational]] = field(default_factory=list)
	map: Optional[VariableMap] = None
	@staticmethod
	def t_base(expr: Expr, vmap: VariableMap) -> List[Monomial]:
		"""Split an expanded expression into one term per summand."""
		out: List[Monomial] = []
		for t in terms_of(expr):
			c, rest = split_coeff(t)
			m = Monomial(c, [None] * len(vmap), vmap)
			if rest is None:
				m.terms[vmap[CONST_HASH]] = Rational(1)
			else:
				for f in factors_of(rest):
					b, x = base_exp(f)
					if not isinstance(b, Sym) or b.name not in vmap or not isinstance(x, Num):
						raise AlgorithmError(f"'{f}' is not a monomial factor")
					m.terms[vmap[b.name]] = x.value
			out.append(m.fill())
		return out
	def fill(self) -> Monomial:
		n = len(self.map)
		self.terms = [Rational(0) if t is None else t for t in self.terms] + [Rational(0)] * (n - len(self.terms))
		return self
	@property
	def sum(self) -> Rational:
		s = Rational(0)
		for t in self.terms:
			s = s + t
		return s
	@property
	def count(self) -> int:
		return sum(1 for t in self.terms if not t.is_zero())
	def __len__(self) -> int:
		return self.count
	def get_img(self) -> str:
		# the constant slot does not take part in grouping
		const = self.map.const_slot()
		return ' '.join(t.to_string() for i, t in enumerate(self.terms) if i != const)
	def divide(self, other: Monomial) -> Monomial:
		return Monomial(self.coeff / other.coeff, [a - b for a, b in zip(self.terms, other.terms)], self.map)
	def multiply(self, other: Monomial) -> Monomial:
		return Monomial(self.coeff * other.coeff, [a + b for a, b in zip(self.terms, other.terms)], self.map)
	def is_zero(self) -> bool:
		return self.coeff.is_zero()
	def dominates(self, other: Monomial) -> bool:
		# every exponent at least the other's
		return all(a >= b for a, b in zip(self.terms, other.terms))
	def to_expression(self) -> Expr:
		parts: List[Expr] = [Num(self.coeff)]
		const = self.map.const_slot()
		for i, t in enumerate(self.terms):
			if t.is_zero() or i == const:
				continue
			parts.append(power(Sym(self.map.name(i)), Num(t)))
		return mul(*parts)
	def to_string(self) -> str:
		return f"{{ coeff: {self.coeff}, terms: [{','.join(t.to_string() for t in self.terms)}], sum: {self.sum}, count: {self.count} }}"
	def __str__(self) -> str:
		return self.to_string()
