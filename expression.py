"""
Expression Module

Immutable expression trees used by every algebra routine. Nodes are built
through canonicalising constructors (``add``, ``mul``, ``power``, ``fn``) so
that two mathematically identical sums or products always share the same
canonical key:

- ``Num``  exact rational constant
- ``Sym``  variable or reserved constant (``pi``, ``e``, ``i``)
- ``Fn``   function application
- ``Add``  flattened sum with like terms collected
- ``Mul``  rational coefficient times distinct-base factors
- ``Pow``  base raised to an exponent

Structural equality is key equality. Nodes are never mutated after
construction, so cloning is the identity.
"""
from __future__ import annotations
import math
from enum import Enum
from fractions import Fraction
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from errors import DivisionByZeroError, NotPolynomialError
from rational import Rational, int_root, ifactor, split_root

CONSTANTS = ("pi", "e", "i")

# ifactor is trial division; above this radicals are only checked for exact roots
_FACTOR_LIMIT = 10 ** 12


class Group(Enum):
    NUMBER = "N"
    SYMBOL = "S"
    FUNCTION = "FN"
    SUM = "CP"
    PRODUCT = "CB"
    POWER = "EX"


class Expr:
    __slots__ = ("_key",)

    group: Group

    def __init__(self) -> None:
        self._key: Optional[str] = None

    @property
    def key(self) -> str:
        if self._key is None:
            self._key = self._make_key()
        return self._key

    def _make_key(self) -> str:
        raise NotImplementedError

    def children(self) -> Tuple["Expr", ...]:
        return ()

    def rebuild(self, children: List["Expr"]) -> "Expr":
        return self

    # ----- arithmetic -----
    def __add__(self, other) -> "Expr":
        return add(self, to_expr(other))

    def __radd__(self, other) -> "Expr":
        return add(to_expr(other), self)

    def __sub__(self, other) -> "Expr":
        return add(self, negate(to_expr(other)))

    def __rsub__(self, other) -> "Expr":
        return add(to_expr(other), negate(self))

    def __mul__(self, other) -> "Expr":
        return mul(self, to_expr(other))

    def __rmul__(self, other) -> "Expr":
        return mul(to_expr(other), self)

    def __truediv__(self, other) -> "Expr":
        return divide(self, to_expr(other))

    def __rtruediv__(self, other) -> "Expr":
        return divide(to_expr(other), self)

    def __pow__(self, other) -> "Expr":
        return power(self, to_expr(other))

    def __rpow__(self, other) -> "Expr":
        return power(to_expr(other), self)

    def __neg__(self) -> "Expr":
        return negate(self)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (int, Rational, Fraction)):
            other = to_expr(other)
        if not isinstance(other, Expr):
            return False
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"

    def __str__(self) -> str:
        return to_text(self)

    def clone(self) -> "Expr":
        return self

    def contains(self, name: str) -> bool:
        return name in free_symbols(self)

    def variables(self) -> List[str]:
        return sorted(free_symbols(self))

    def is_constant(self) -> bool:
        return not free_symbols(self)


class Num(Expr):
    __slots__ = ("value",)
    group = Group.NUMBER

    def __init__(self, value: Rational | int) -> None:
        super().__init__()
        self.value = value if isinstance(value, Rational) else Rational(value)

    def _make_key(self) -> str:
        return self.value.to_string()


class Sym(Expr):
    __slots__ = ("name",)
    group = Group.SYMBOL

    def __init__(self, name: str) -> None:
        super().__init__()
        self.name = name

    def _make_key(self) -> str:
        return self.name


class Fn(Expr):
    __slots__ = ("name", "args")
    group = Group.FUNCTION

    def __init__(self, name: str, args: Tuple[Expr, ...]) -> None:
        super().__init__()
        self.name = name
        self.args = tuple(args)

    def _make_key(self) -> str:
        return f"{self.name}({','.join(a.key for a in self.args)})"

    def children(self) -> Tuple[Expr, ...]:
        return self.args

    def rebuild(self, children: List[Expr]) -> Expr:
        return fn(self.name, *children)


class Add(Expr):
    __slots__ = ("terms",)
    group = Group.SUM

    def __init__(self, terms: Tuple[Expr, ...]) -> None:
        super().__init__()
        self.terms = tuple(terms)

    def _make_key(self) -> str:
        return "+(" + ",".join(t.key for t in self.terms) + ")"

    def children(self) -> Tuple[Expr, ...]:
        return self.terms

    def rebuild(self, children: List[Expr]) -> Expr:
        return add(*children)


class Mul(Expr):
    __slots__ = ("coeff", "factors")
    group = Group.PRODUCT

    def __init__(self, coeff: Rational, factors: Tuple[Expr, ...]) -> None:
        super().__init__()
        self.coeff = coeff
        self.factors = tuple(factors)

    def _make_key(self) -> str:
        return "*(" + self.coeff.to_string() + ";" + ",".join(f.key for f in self.factors) + ")"

    def children(self) -> Tuple[Expr, ...]:
        return self.factors

    def rebuild(self, children: List[Expr]) -> Expr:
        return mul(Num(self.coeff), *children)


class Pow(Expr):
    __slots__ = ("base", "exp")
    group = Group.POWER

    def __init__(self, base: Expr, exp: Expr) -> None:
        super().__init__()
        self.base = base
        self.exp = exp

    def _make_key(self) -> str:
        return f"^({self.base.key},{self.exp.key})"

    def children(self) -> Tuple[Expr, ...]:
        return (self.base, self.exp)

    def rebuild(self, children: List[Expr]) -> Expr:
        return power(children[0], children[1])


ExprLike = Union[Expr, int, Rational, Fraction, float, str]

ZERO = Num(0)
ONE = Num(1)
MINUS_ONE = Num(-1)
HALF = Num(Rational(1, 2))
I = Sym("i")
E = Sym("e")
PI = Sym("pi")


def to_expr(v: ExprLike) -> Expr:
    if isinstance(v, Expr):
        return v
    if isinstance(v, bool):
        raise TypeError("cannot convert bool to an expression")
    if isinstance(v, (int, Rational, Fraction)):
        return Num(Rational(v))
    if isinstance(v, float):
        if math.isnan(v) or math.isinf(v):
            raise ValueError(f"cannot convert {v} to an expression")
        return Num(Rational(Fraction(repr(v))))
    if isinstance(v, str):
        from parser import parse
        return parse(v)
    raise TypeError(f"cannot convert {type(v).__name__} to an expression")


def num(v: Rational | int | str) -> Num:
    return Num(Rational(v))


# =====================
# Canonical constructors
# =====================

def split_coeff(e: Expr) -> Tuple[Rational, Optional[Expr]]:
    """Split a term into (rational multiplier, remaining expression or None)."""
    if isinstance(e, Num):
        return e.value, None
    if isinstance(e, Mul):
        if len(e.factors) == 1:
            return e.coeff, e.factors[0]
        rest = Mul(Rational(1), e.factors)
        return e.coeff, rest
    return Rational(1), e


def scale(c: Rational, rest: Optional[Expr]) -> Expr:
    if rest is None or c.is_zero():
        return Num(c)
    if c.is_one():
        return rest
    if isinstance(rest, Mul):
        return Mul(c * rest.coeff, rest.factors)
    return Mul(c, (rest,))


def add(*terms: Expr) -> Expr:
    const = Rational(0)
    acc: Dict[str, List] = {}
    flat: List[Expr] = []
    for t in terms:
        if isinstance(t, Add):
            flat.extend(t.terms)
        else:
            flat.append(t)
    for t in flat:
        c, rest = split_coeff(t)
        if rest is None:
            const = const + c
            continue
        slot = acc.get(rest.key)
        if slot is None:
            acc[rest.key] = [c, rest]
        else:
            slot[0] = slot[0] + c
    out = [scale(c, rest) for c, rest in acc.values() if not c.is_zero()]
    if not const.is_zero():
        out.append(Num(const))
    if not out:
        return ZERO
    if len(out) == 1:
        return out[0]
    out.sort(key=lambda x: x.key)
    return Add(tuple(out))


def base_exp(e: Expr) -> Tuple[Expr, Expr]:
    if isinstance(e, Pow):
        return e.base, e.exp
    return e, ONE


def _factor_order(f: Expr) -> str:
    return base_exp(f)[0].key


def mul(*factors: Expr) -> Expr:
    coeff = Rational(1)
    bases: Dict[str, List] = {}
    flat: List[Expr] = []
    for f in factors:
        if isinstance(f, Mul):
            coeff = coeff * f.coeff
            flat.extend(f.factors)
        elif isinstance(f, Num):
            coeff = coeff * f.value
        else:
            flat.append(f)
    for f in flat:
        b, x = base_exp(f)
        slot = bases.get(b.key)
        if slot is None:
            bases[b.key] = [b, x, f]
        else:
            slot[1] = add(slot[1], x)
            slot[2] = None
    items: List[Expr] = []
    for b, x, single in bases.values():
        # a lone factor is already canonical
        p = single if single is not None else power(b, x)
        if isinstance(p, Num):
            coeff = coeff * p.value
        elif isinstance(p, Mul):
            coeff = coeff * p.coeff
            items.extend(p.factors)
        else:
            items.append(p)
    if coeff.is_zero():
        return ZERO
    keys = [_factor_order(f) for f in items]
    if len(set(keys)) != len(keys):
        return mul(Num(coeff), *items)
    if not items:
        return Num(coeff)
    if coeff.is_one() and len(items) == 1:
        return items[0]
    items.sort(key=_factor_order)
    return Mul(coeff, tuple(items))


def negate(e: Expr) -> Expr:
    return mul(MINUS_ONE, e)


def divide(a: Expr, b: Expr) -> Expr:
    return mul(a, power(b, MINUS_ONE))


def _int_power(k: int, e: Rational) -> Expr:
    # k > 0
    p, q = e.numerator(), e.denominator()
    whole = p // q
    r = p - whole * q
    coeff = Rational(k) ** whole
    if r == 0:
        return Num(coeff)
    m = k ** r
    if m < _FACTOR_LIMIT:
        outside, inside = split_root(m, q)
    else:
        root = int_root(m, q)
        outside, inside = (root, 1) if root is not None else (1, m)
    coeff = coeff * outside
    if inside == 1:
        return Num(coeff)
    expo = Rational(1, q)
    if inside < _FACTOR_LIMIT:
        fs = ifactor(inside)
        g = q
        for v in fs.values():
            g = math.gcd(g, v)
        if g > 1:
            inside = 1
            for pr, v in fs.items():
                inside *= pr ** (v // g)
            expo = Rational(1, q // g)
    return scale(coeff, Pow(Num(inside), Num(expo)))


def num_power(b: Rational, e: Rational) -> Expr:
    if e.is_int():
        if b.is_zero() and e < 0:
            raise DivisionByZeroError("division by zero")
        return Num(b ** e.to_int())
    if b.is_zero():
        if e < 0:
            raise DivisionByZeroError("division by zero")
        return ZERO
    if b.is_one():
        return ONE
    if b < 0:
        if e.denominator() % 2 == 1:
            sign = -1 if e.numerator() % 2 else 1
            return mul(Num(sign), num_power(-b, e))
        if e.denominator() == 2:
            return mul(power(I, Num(e.numerator())), num_power(-b, e))
        return Pow(Num(b), Num(e))
    return mul(_int_power(b.numerator(), e), _int_power(b.denominator(), -e))


def power(base: Expr, exp: Expr) -> Expr:
    if isinstance(exp, Num):
        x = exp.value
        if x.is_zero():
            return ONE
        if x.is_one():
            return base
        if isinstance(base, Num):
            return num_power(base.value, x)
        if x.is_int() and base.key == "i":
            n = x.to_int() % 4
            return (ONE, I, MINUS_ONE, Mul(Rational(-1), (I,)))[n]
        if isinstance(base, Pow):
            inner = base.exp
            if x.is_int():
                return power(base.base, mul(inner, exp))
            if isinstance(inner, Num):
                a = inner.value
                prod = a * x
                if a.is_int() and a.to_int() % 2 == 0:
                    if prod.numerator() % 2 == 1:
                        return power(fn("abs", base.base), Num(prod))
                return power(base.base, Num(prod))
            return Pow(base, exp)
        if isinstance(base, Mul):
            parts = [num_power(base.coeff, x)] + [power(f, exp) for f in base.factors]
            return mul(*parts)
        if isinstance(base, Fn) and base.name == "abs" and x.is_int() and x.to_int() % 2 == 0:
            return power(base.args[0], exp)
        return Pow(base, exp)
    if isinstance(base, Num) and (base.value.is_one() or base.value.is_zero()):
        return base
    if isinstance(base, Pow):
        return power(base.base, mul(base.exp, exp))
    if base.key == "e" and isinstance(exp, Fn) and exp.name == "log":
        return exp.args[0]
    return Pow(base, exp)


_ZERO_AT_ZERO = ("sin", "tan", "asin", "atan", "sinh", "tanh")


def fn(name: str, *args: Expr) -> Expr:
    args = tuple(to_expr(a) for a in args)
    if name == "sqrt":
        return power(args[0], HALF)
    if name == "exp":
        return power(E, args[0])
    if len(args) == 1:
        a = args[0]
        if name == "abs":
            if isinstance(a, Num):
                return Num(abs(a.value))
            if isinstance(a, Fn) and a.name == "abs":
                return a
            if isinstance(a, Mul) and a.coeff < 0:
                return mul(Num(-a.coeff), fn("abs", mul(*a.factors)))
            if a.key in ("pi", "e"):
                return a
        elif name == "log":
            if a == ONE:
                return ZERO
            if a.key == "e":
                return ONE
            if isinstance(a, Pow) and a.base.key == "e":
                return a.exp
        elif name in _ZERO_AT_ZERO and a == ZERO:
            return ZERO
        elif name in ("cos", "cosh") and a == ZERO:
            return ONE
        elif name == "acos" and a == ONE:
            return ZERO
    return Fn(name, args)


# =====================
# Traversal helpers
# =====================

def walk(e: Expr) -> Iterator[Expr]:
    yield e
    for c in e.children():
        yield from walk(c)


def free_symbols(e: Expr) -> set:
    return {n.name for n in walk(e) if isinstance(n, Sym) and n.name not in CONSTANTS}


def variables(e: Expr) -> List[str]:
    return sorted(free_symbols(e))


def functions(e: Expr, name: Optional[str] = None) -> List[Fn]:
    seen: Dict[str, Fn] = {}
    for n in walk(e):
        if isinstance(n, Fn) and (name is None or n.name == name):
            seen.setdefault(n.key, n)
    return list(seen.values())


def has_function(e: Expr, name: str) -> bool:
    return any(isinstance(n, Fn) and n.name == name for n in walk(e))


def transform(e: Expr, visit: Callable[[Expr], Optional[Expr]]) -> Expr:
    """Rebuild ``e`` bottom-up; ``visit`` may return a replacement for a node."""
    hit = visit(e)
    if hit is not None:
        return hit
    kids = e.children()
    if not kids:
        return e
    new = [transform(c, visit) for c in kids]
    if all(a is b for a, b in zip(new, kids)):
        return e
    return e.rebuild(new)


def subs(e: Expr, name: str, value: ExprLike) -> Expr:
    v = to_expr(value)
    return transform(e, lambda n: v if isinstance(n, Sym) and n.name == name else None)


def replace(e: Expr, mapping: Dict[str, Expr]) -> Expr:
    """Replace every sub-expression whose key is in ``mapping``."""
    if not mapping:
        return e
    return transform(e, lambda n: mapping.get(n.key))


def terms_of(e: Expr) -> Tuple[Expr, ...]:
    return e.terms if isinstance(e, Add) else (e,)


def factors_of(e: Expr) -> Tuple[Expr, ...]:
    if isinstance(e, Mul):
        return e.factors
    if isinstance(e, Num):
        return ()
    return (e,)


def multiplier(e: Expr) -> Rational:
    return split_coeff(e)[0]


def is_integer(e: Expr) -> bool:
    return isinstance(e, Num) and e.value.is_int()


def is_imaginary(e: Expr) -> bool:
    return "i" in {n.name for n in walk(e) if isinstance(n, Sym)}


# =====================
# Expansion and rational form
# =====================

def _distribute(a: Expr, b: Expr) -> Expr:
    if not isinstance(a, Add) and not isinstance(b, Add):
        return mul(a, b)
    return add(*[mul(x, y) for x in terms_of(a) for y in terms_of(b)])


def expand(e: Expr) -> Expr:
    if isinstance(e, (Num, Sym)):
        return e
    if isinstance(e, Fn):
        return fn(e.name, *[expand(a) for a in e.args])
    if isinstance(e, Add):
        return add(*[expand(t) for t in e.terms])
    if isinstance(e, Mul):
        out: Expr = Num(e.coeff)
        for f in e.factors:
            out = _distribute(out, expand(f))
        return out
    b, x = expand(e.base), expand(e.exp)
    if isinstance(x, Num) and x.value.is_int() and isinstance(b, (Add, Mul)):
        n = x.value.to_int()
        if n > 0:
            out = ONE
            for _ in range(n):
                out = _distribute(out, b)
            return out
        return power(expand(power(b, Num(-n))), MINUS_ONE)
    return power(b, x)


def get_num(e: Expr) -> Expr:
    if isinstance(e, Num):
        return Num(e.value.numerator())
    if isinstance(e, Mul):
        keep = [f for f in e.factors if not _is_reciprocal(f)]
        return mul(Num(e.coeff.numerator()), *keep)
    if _is_reciprocal(e):
        return ONE
    return e


def get_den(e: Expr) -> Expr:
    if isinstance(e, Num):
        return Num(e.value.denominator())
    if isinstance(e, Mul):
        den = [power(f.base, Num(-f.exp.value)) for f in e.factors if _is_reciprocal(f)]
        return mul(Num(e.coeff.denominator()), *den)
    if _is_reciprocal(e):
        return power(e.base, Num(-e.exp.value))
    return ONE


def _is_reciprocal(f: Expr) -> bool:
    return isinstance(f, Pow) and isinstance(f.exp, Num) and f.exp.value < 0


def _monomial_lcm(a: Expr, b: Expr) -> Expr:
    ca, cb = multiplier(a).numerator(), multiplier(b).numerator()
    coeff = abs(ca * cb) // math.gcd(ca, cb) if ca and cb else 1
    best: Dict[str, Tuple[Expr, Expr]] = {}
    for f in factors_of(a) + factors_of(b):
        base, x = base_exp(f)
        cur = best.get(base.key)
        if cur is None or (isinstance(x, Num) and isinstance(cur[1], Num) and x.value > cur[1].value):
            best[base.key] = (base, x)
    return mul(Num(coeff), *[power(base, x) for base, x in best.values()])


def together(e: Expr) -> Expr:
    """Bring a sum over a single common denominator."""
    if not isinstance(e, Add):
        return e
    den: Expr = ONE
    for t in e.terms:
        d = get_den(t)
        if d != ONE:
            den = _monomial_lcm(den, d)
    if den == ONE:
        return e
    top = expand(add(*[mul(t, den) for t in e.terms]))
    return divide(top, den)

# =====================
# Polynomial inspection
# =====================

def _term_power(t: Expr, var: str) -> Tuple[int, Expr]:
    if isinstance(t, Sym) and t.name == var:
        return 1, ONE
    if isinstance(t, Pow) and isinstance(t.base, Sym) and t.base.name == var:
        if isinstance(t.exp, Num) and t.exp.value.is_int() and t.exp.value >= 0:
            return t.exp.value.to_int(), ONE
        raise NotPolynomialError(f"'{t}' is not a polynomial term in {var}")
    if isinstance(t, Mul):
        p = 0
        rest: List[Expr] = []
        for f in t.factors:
            k, c = _term_power(f, var)
            p += k
            if k == 0:
                rest.append(f)
        return p, mul(Num(t.coeff), *rest)
    if t.contains(var):
        raise NotPolynomialError(f"'{t}' is not a polynomial term in {var}")
    return 0, t


def collect(e: Expr, var: str, expanded: bool = False) -> Dict[int, Expr]:
    """Map power -> coefficient expression for a polynomial in ``var``."""
    if not expanded:
        e = expand(e)
    out: Dict[int, Expr] = {}
    for t in terms_of(e):
        p, c = _term_power(t, var)
        out[p] = add(out[p], c) if p in out else c
    return {p: c for p, c in out.items() if c != ZERO} or {0: ZERO}


def is_polynomial(e: Expr, var: Optional[str] = None) -> bool:
    names = [var] if var else variables(e)
    try:
        for v in names:
            collect(e, v)
    except NotPolynomialError:
        return False
    return True


def poly_degree(e: Expr, var: str) -> int:
    return max(collect(e, var))


def total_degree(t: Expr) -> Rational:
    """Sum of the numeric exponents of the free symbols in a term."""
    d = Rational(0)
    for f in factors_of(t):
        b, x = base_exp(f)
        if isinstance(b, Sym) and b.name not in CONSTANTS and isinstance(x, Num):
            d = d + x.value
    return d


# =====================
# Text form
# =====================

def _wrap(s: str) -> str:
    return f"({s})"


def _exp_text(x: Expr) -> str:
    if isinstance(x, Sym) or (isinstance(x, Num) and x.value.is_int() and x.value >= 0):
        return to_text(x)
    return _wrap(to_text(x))


def _base_text(b: Expr) -> str:
    if isinstance(b, (Add, Mul, Pow)) or (isinstance(b, Num) and (b.value < 0 or not b.value.is_int())):
        return _wrap(to_text(b))
    return to_text(b)


def _factor_text(f: Expr) -> str:
    if isinstance(f, Pow):
        if f.exp == HALF:
            return f"sqrt({to_text(f.base)})"
        return f"{_base_text(f.base)}^{_exp_text(f.exp)}"
    if isinstance(f, Add):
        return _wrap(to_text(f))
    return to_text(f)


def _factor_rank(f: Expr) -> Tuple[int, str]:
    b = base_exp(f)[0]
    if isinstance(b, Num):
        return 0, b.key
    if isinstance(b, Sym):
        return (2 if b.name in CONSTANTS else 1), b.key
    if isinstance(b, Fn):
        return 3, b.key
    return 4, b.key


def _product_text(coeff: Rational, factors: Tuple[Expr, ...]) -> str:
    top: List[str] = []
    bottom: List[str] = []
    n, d = abs(coeff.numerator()), coeff.denominator()
    for f in sorted(factors, key=_factor_rank):
        if _is_reciprocal(f):
            bottom.append(_factor_text(power(f.base, Num(-f.exp.value))))
        else:
            top.append(_factor_text(f))
    if n != 1 or not top:
        top.insert(0, str(n))
    if d != 1:
        bottom.insert(0, str(d))
    s = "*".join(top)
    if bottom:
        den = "*".join(bottom)
        s += "/" + (_wrap(den) if len(bottom) > 1 else den)
    return ("-" if coeff < 0 else "") + s


def _term_rank(t: Expr) -> Tuple:
    if isinstance(t, Num):
        return (1, 0, "")
    if not free_symbols(t):
        return (2, 0, t.key)
    return (0, -float(total_degree(t)), t.key)


def to_text(e: Expr) -> str:
    if isinstance(e, Num):
        return e.value.to_string()
    if isinstance(e, Sym):
        return e.name
    if isinstance(e, Fn):
        return f"{e.name}({','.join(to_text(a) for a in e.args)})"
    if isinstance(e, Add):
        out = ""
        for t in sorted(e.terms, key=_term_rank):
            s = to_text(t)
            if not out:
                out = s
            elif s.startswith("-"):
                out += s
            else:
                out += "+" + s
        return out
    if isinstance(e, Mul):
        return _product_text(e.coeff, e.factors)
    if _is_reciprocal(e):
        return _product_text(Rational(1), (e,))
    return _factor_text(e)
