from __future__ import annotations
import networkx as nx
import numpy as np
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence
from expression import (CONSTANTS, Add, Expr, Mul, Num, Pow, Sym, ONE, ZERO,
	HALF, MINUS_ONE, add, divide, fn, mul, power, to_expr)
from rational import Rational

# Hash-consed expression DAG on networkx.DiGraph; edges run child -> parent
@dataclass
class Node:
	type: str  # 'VAR','CONST','OP'
	symbol: str
	value: Any = None
	op: Optional[str] = None
	expr: Optional[Expr] = None
	children: List[str] = field(default_factory=list)  # ordered child node ids

_real_fns: Dict[str, Callable[[Any], Any]] = {
	'sin': np.sin,
	'cos': np.cos,
	'tan': np.tan,
	'asin': np.arcsin,
	'acos': np.arccos,
	'atan': np.arctan,
	'sinh': np.sinh,
	'cosh': np.cosh,
	'tanh': np.tanh,
	'log': np.log,
	'ln': np.log,
	'abs': np.abs,
}

_const_values = {'pi': np.pi, 'e': np.e}

class EDAG:
	def __init__(self) -> None:
		self.g = nx.DiGraph()
		self.root: Optional[str] = None
		self._id = 0
		self._index: Dict[str, str] = {}
		self._order: Optional[List[str]] = None
	def _nid(self) -> str:
		self._id += 1
		return f"n{self._id}"
	@staticmethod
	def from_expression(expr: Expr) -> EDAG:
		dag = EDAG()
		dag.root = dag._intern(to_expr(expr))
		return dag
	def _intern(self, e: Expr) -> str:
		hit = self._index.get(e.key)
		if hit is not None:
			return hit
		if isinstance(e, Num):
			node = Node('CONST', e.key, value=e.value, expr=e)
		elif isinstance(e, Sym):
			if e.name in CONSTANTS:
				node = Node('CONST', e.name, value=_const_values.get(e.name, 1j), expr=e)
			else:
				node = Node('VAR', e.name, expr=e)
		else:
			if isinstance(e, Add):
				op, kids = '+', list(e.terms)
			elif isinstance(e, Mul):
				op, kids = '*', ([Num(e.coeff)] if not e.coeff.is_one() else []) + list(e.factors)
			elif isinstance(e, Pow):
				op, kids = '^', [e.base, e.exp]
			else:
				op, kids = e.name, list(e.args)
			node = Node('OP', op, op=op, expr=e, children=[self._intern(k) for k in kids])
		nid = self._nid()
		self.g.add_node(nid, data=node)
		for cid in node.children:
			self.g.add_edge(cid, nid)
		self._index[e.key] = nid
		self._order = None
		return nid
	def order(self) -> List[str]:
		if self._order is None:
			self._order = list(nx.topological_sort(self.g))
		return self._order
	def variables(self) -> List[str]:
		return sorted(d['data'].symbol for _, d in self.g.nodes(data=True) if d['data'].type == 'VAR')
	def expression(self) -> Expr:
		if self.root is None:
			raise RuntimeError('no expression loaded')
		return self.g.nodes[self.root]['data'].expr
	def __str__(self) -> str:
		return str(self.expression())

	# -----------------
	# Numeric evaluation
	# -----------------
	@staticmethod
	def _pow(a: Any, b: Any, exp: Optional[Rational], complex_mode: bool) -> Any:
		if complex_mode:
			return np.power(np.complex128(a), b)
		if exp is not None and not exp.is_int() and exp.denominator() % 2 == 1:
			# real odd root, negative bases included
			root = np.sign(a) * np.power(np.abs(a), 1.0 / exp.denominator())
			return np.power(root, exp.numerator())
		return np.power(a, b)
	def eval(self, env: Dict[str, Any] | None = None, complex_mode: bool = False) -> Any:
		if self.root is None:
			raise RuntimeError('no expression loaded')
		env = env or {}
		kind = np.complex128 if complex_mode else np.float64
		vals: Dict[str, Any] = {}
		with np.errstate(all='ignore'):
			for nid in self.order():
				data: Node = self.g.nodes[nid]['data']
				if data.type == 'CONST':
					v = data.value
					if isinstance(v, Rational):
						v = v.numerator() / v.denominator()
					elif isinstance(v, complex) and not complex_mode:
						v = np.nan
					vals[nid] = kind(v)
					continue
				if data.type == 'VAR':
					if data.symbol not in env:
						raise KeyError(f"Variable '{data.symbol}' not in env")
					vals[nid] = np.asarray(env[data.symbol], dtype=kind)
					continue
				args = [vals[c] for c in data.children]
				if data.op == '+':
					vals[nid] = sum(args[1:], args[0])
				elif data.op == '*':
					out = args[0]
					for a in args[1:]:
						out = out * a
					vals[nid] = out
				elif data.op == '^':
					exp_expr = data.expr.exp
					exp = exp_expr.value if isinstance(exp_expr, Num) else None
					vals[nid] = EDAG._pow(args[0], args[1], exp, complex_mode)
				elif data.op in _real_fns:
					vals[nid] = _real_fns[data.op](args[0])
				else:
					raise ValueError(f"Unknown op {data.op}")
		return vals[self.root]
	def compile(self, names: Sequence[str] | None = None, complex_mode: bool = False) -> Callable[..., Any]:
		names = list(names) if names is not None else self.variables()
		self.order()
		cast = complex if complex_mode else float
		def f(*args: Any) -> Any:
			return cast(self.eval(dict(zip(names, args)), complex_mode))
		return f
	def vectorize(self, name: str) -> Callable[[Any], np.ndarray]:
		# one variable, evaluated over a whole sample array at once
		def f(xs: Any) -> np.ndarray:
			xs = np.asarray(xs, dtype=np.float64)
			return np.broadcast_to(self.eval({name: xs}), xs.shape)
		return f

	# -----------------
	# Symbolic differentiation
	# -----------------
	def derivative(self, var: str) -> Expr:
		d: Dict[str, Expr] = {}
		for nid in self.order():
			data: Node = self.g.nodes[nid]['data']
			if data.type == 'CONST':
				d[nid] = ZERO
				continue
			if data.type == 'VAR':
				d[nid] = ONE if data.symbol == var else ZERO
				continue
			kids = [self.g.nodes[c]['data'].expr for c in data.children]
			dk = [d[c] for c in data.children]
			if all(x == ZERO for x in dk):
				d[nid] = ZERO
			elif data.op == '+':
				d[nid] = add(*dk)
			elif data.op == '*':
				parts = []
				for i, di in enumerate(dk):
					if di != ZERO:
						parts.append(mul(di, *[k for j, k in enumerate(kids) if j != i]))
				d[nid] = add(*parts)
			elif data.op == '^':
				b, x = kids
				db, dx = dk
				if dx == ZERO:
					d[nid] = mul(x, power(b, add(x, MINUS_ONE)), db)
				elif db == ZERO:
					d[nid] = mul(data.expr, fn('log', b), dx)
				else:
					d[nid] = mul(data.expr, add(mul(dx, fn('log', b)), mul(x, db, power(b, MINUS_ONE))))
			else:
				d[nid] = mul(_chain(data.op, kids[0]), dk[0])
		return d[self.root]

def _chain(name: str, u: Expr) -> Expr:
	if name == 'sin':
		return fn('cos', u)
	if name == 'cos':
		return mul(MINUS_ONE, fn('sin', u))
	if name == 'tan':
		return power(fn('cos', u), Num(-2))
	if name in ('asin', 'acos'):
		inner = power(add(ONE, mul(MINUS_ONE, power(u, Num(2)))), mul(MINUS_ONE, HALF))
		return inner if name == 'asin' else mul(MINUS_ONE, inner)
	if name == 'atan':
		return power(add(ONE, power(u, Num(2))), MINUS_ONE)
	if name in ('log', 'ln'):
		return power(u, MINUS_ONE)
	if name == 'abs':
		return divide(u, fn('abs', u))
	if name == 'sinh':
		return fn('cosh', u)
	if name == 'cosh':
		return fn('sinh', u)
	if name == 'tanh':
		return add(ONE, mul(MINUS_ONE, power(fn('tanh', u), Num(2))))
	raise ValueError(f"No derivative rule for {name}")

def diff(expr: Expr, var: str) -> Expr:
	return EDAG.from_expression(expr).derivative(var)

def build(expr: Expr, names: Sequence[str] | None = None, complex_mode: bool = False) -> Callable[..., Any]:
	"""Compile an expression into a numeric function of ``names`` (default: its free variables)."""
	return EDAG.from_expression(expr).compile(names, complex_mode)

def build_vectorized(expr: Expr, name: str) -> Callable[[Any], np.ndarray]:
	return EDAG.from_expression(expr).vectorize(name)

def evaluate(expr: Expr, env: Dict[str, Any] | None = None, complex_mode: bool = False) -> Any:
	v = EDAG.from_expression(expr).eval(env, complex_mode)
	return complex(v) if complex_mode else float(v)
