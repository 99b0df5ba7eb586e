"""
Division Module

Polynomial long division with remainder and the gcd / lcm built on top of
it. Operands in a single variable go through the dense ``Polynomial``; several
variables go through ``Monomial`` term lists with a leading-variable
heuristic.
"""
from __future__ import annotations
import functools
import itertools
import logging
from typing import Dict, List, Optional, Tuple

from config import check_timeout, settings
from errors import AlgorithmError, InfiniteLoopError, NotPolynomialError, give_up_to
from expression import (CONSTANTS, Add, Expr, Fn, Mul, Num, Pow, Sym, ONE, ZERO,
                        add, base_exp, collect, expand, factors_of, fn, free_symbols, get_den,
                        get_num, is_imaginary, mul, multiplier, negate, power, replace, split_coeff,
                        terms_of, to_expr, to_text, total_degree, transform, variables)
from expression import divide as over
from monomial import Monomial, VariableMap
from polynomial import Polynomial
from rational import Rational, qgcd

log = logging.getLogger(__name__)

PLACEHOLDER = "__f"


# =====================
# Opaque atoms
# =====================

def _is_atom(e: Expr) -> bool:
    """Sub-expressions that division has to treat as a plain variable."""
    if isinstance(e, Fn):
        return True
    if isinstance(e, Pow):
        if isinstance(e.exp, Num) and e.exp.value.is_int():
            # f(x)^2 keeps f(x) as the atom
            return e.exp.value < 0 and not isinstance(e.base, Sym)
        return True
    return False


def sub_functions(e: Expr, subs: Dict[str, Expr]) -> Expr:
    """Replace functions and non-integer powers by placeholder symbols.

    ``subs`` collects placeholder name -> original and may be shared across
    several calls so equal atoms get the same placeholder.
    """
    seen = {v.key: k for k, v in subs.items()}

    def visit(n: Expr) -> Optional[Expr]:
        if not _is_atom(n):
            return None
        name = seen.get(n.key)
        if name is None:
            name = f"{PLACEHOLDER}{len(subs)}"
            subs[name] = n
            seen[n.key] = name
        return Sym(name)

    return transform(e, visit)


def restore_functions(e: Expr, subs: Dict[str, Expr]) -> Expr:
    return replace(e, {Sym(k).key: v for k, v in subs.items()})


# =====================
# Division
# =====================

def _linear_symbol(e: Expr) -> Optional[Tuple[Rational, Sym]]:
    c, rest = split_coeff(e)
    if isinstance(rest, Sym) and rest.name not in CONSTANTS:
        return c, rest
    return None


def _is_linear(e: Expr) -> bool:
    return all(isinstance(t, Num) or _linear_symbol(t) is not None for t in terms_of(e))


def _unique_max(term: Monomial, any_slot: bool = False):
    top = max(term.terms)
    hits = [i for i, t in enumerate(term.terms) if t == top]
    if len(hits) > 1 and not any_slot:
        return None
    return top, hits[0], term


def _argmax(terms: List[Rational]) -> int:
    best = 0
    for j in range(1, len(terms)):
        if terms[j] > terms[best]:
            best = j
    return best


def _get_det(s: List[Monomial], divisor: List[Monomial]):
    """Pick the term and variable slot that lead the division.

    Prefers a term with a uniquely largest exponent; between terms of equal
    total degree the slot with the bigger exponent gap wins. Returns
    ``(max, slot, term)`` or None when the lead falls on the constant slot.
    """
    lookat = 0
    for _ in range(settings.max_division_iterations):
        if lookat >= len(s):
            return None
        det = s[lookat]
        umax = _unique_max(det)
        for term in s[lookat + 1:]:
            same = det.sum == term.sum
            if not same and umax:
                break
            if same:
                idx1, idx2 = _argmax(det.terms), _argmax(term.terms)
                max1, max2 = det.terms[idx1], term.terms[idx2]
                d1 = max1 - term.terms[idx1]
                d2 = max2 - det.terms[idx2]
                if d2 > d1:
                    umax = (max2, idx2, term)
                    break
                if d1 > d2:
                    umax = (max1, idx1, det)
                    break
            else:
                umax = _unique_max(term)
                if umax:
                    break
            umax = _unique_max(term)
        if not umax:
            return _unique_max(s[0], True)
        idx = umax[1]
        e = None
        for t in divisor:
            if idx == len(t.terms) - 1:
                return None
            e = t.terms[idx]
            if not e.is_zero():
                break
        if e is None:
            raise AlgorithmError("empty divisor")
        if e.is_zero():
            lookat += 1
            continue
        return umax
    raise InfiniteLoopError("Unable to pick a leading term")


def _is_larger(a: Optional[Monomial], b: Optional[Monomial]) -> bool:
    if a is None or b is None:
        return False
    return a.dominates(b)


def _can_divide(a: List[Monomial], b: List[Monomial]) -> bool:
    if a[0].sum == b[0].sum:
        return len(a) >= len(b)
    return True


def _better_lead_var(s: List[Monomial], lead_var: int) -> int:
    # a slot whose exponent is the same non-zero value in every term
    checked: List[Optional[Rational]] = list(s[0].terms)
    for t in s[1:]:
        for j, tt in enumerate(t.terms):
            if checked[j] is not None and checked[j] != tt:
                checked[j] = None
    for i, t in enumerate(checked):
        if t is not None and not t.is_zero():
            return i
    return lead_var


def _reconvert(terms: List[Monomial]) -> Expr:
    return add(*[t.to_expression() for t in terms])


def _term_division(s1: Expr, s2: Expr, names: List[str]) -> List[Expr]:
    vmap = VariableMap.for_variables(names)
    n1 = sorted(Monomial.t_base(s1, vmap), key=lambda t: t.sum, reverse=True)
    n2 = sorted(Monomial.t_base(s2, vmap), key=lambda t: t.sum, reverse=True)

    target = n2 if _is_larger(n1[0], n2[0]) and n1[0].count > n2[0].count else n1
    det = _get_det(target, n2)
    quotient: List[Monomial] = []
    den: Optional[Monomial] = None
    if det:
        lead_var = _better_lead_var(n1, det[1])

        def sf(a: Monomial, b: Monomial) -> float:
            l1, l2 = a.count, b.count
            alv, blv = a.terms[lead_var], b.terms[lead_var]
            if l2 > l1 and blv > alv:
                return l2 - l1
            return float(blv - alv)

        order = functools.cmp_to_key(sf)
        n1.sort(key=order)
        n2.sort(key=order)

        # shift the dividend up when the divisor leads with a higher degree
        fdt, fnt = n2[0], n1[0]
        if fdt.sum > fnt.sum and fnt.count > 1:
            den = Monomial(Rational(1), [Rational(0)] * len(vmap), vmap)
            for i in range(len(fnt.terms)):
                d = fdt.terms[i] - fnt.terms[i]
                if d.is_zero():
                    continue
                nd = d + 1
                den.terms[i] = nd
                for t in n1:
                    t.terms[i] = t.terms[i] + nd

        larger = _is_larger(n1[0], n2[0])
        safety = 0
        while larger and _can_divide(n1, n2):
            safety += 1
            if safety > settings.max_division_iterations:
                raise InfiniteLoopError("Unable to compute!")
            check_timeout()
            q = n1[0].divide(n2[0])
            quotient.append(q)
            n1.pop(0)
            for d_term in n2[1:]:
                t = d_term.multiply(q)
                img = t.get_img()
                for j, cur in enumerate(n1):
                    if cur.get_img() == img:
                        cur.coeff = cur.coeff - t.coeff
                        if cur.coeff.is_zero():
                            del n1[j]
                        break
                else:
                    t.coeff = -t.coeff
                    n1.append(t)
                    n1.sort(key=order)
            larger = _is_larger(n1[0] if n1 else None, n2[0])
            if not larger and len(n1) >= len(n2):
                # a later dividend term may still be divisible by the lead
                for i in range(1, len(n1)):
                    if _is_larger(n1[i], n2[0]):
                        n1.insert(0, n1.pop(i))
                        larger = True
                        break

    quot = _reconvert(quotient)
    rem = _reconvert(n1)
    if den is not None:
        d = den.to_expression()
        quot = over(quot, d)
        rem = over(rem, d)
    return [quot, rem]


def _no_division(s1, s2) -> List[Expr]:
    return [ZERO, to_expr(s1)]


@give_up_to(_no_division)
def div(s1, s2) -> List[Expr]:
    """Divide ``s1`` by ``s2`` and return ``[quotient, remainder]``.

    Gives up to ``[0, s1]`` when the division cannot be carried out.
    """
    s1, s2 = to_expr(s1), to_expr(s2)
    if s2.is_constant():
        return [add(*[over(t, s2) for t in terms_of(s1)]), ZERO]

    s1 = expand(s1)
    s2 = expand(s2)

    lin = _linear_symbol(s1)
    if lin is not None and isinstance(s2, Add) and _is_linear(s2):
        k, x = lin
        parts = collect(s2, x.name, expanded=True)
        a, b = parts.get(1), parts.get(0, ZERO)
        if a is not None and a.is_constant():
            return [over(Num(k), a), negate(over(mul(Num(k), b), a))]
    if lin is not None and _linear_symbol(s2) is not None:
        r = over(s1, s2)
        if r.is_constant():
            return [r, ZERO]
        return [ZERO, s1]

    subs: Dict[str, Expr] = {}
    if any(_is_atom(n) for n in _nodes(s1, s2)):
        s1 = sub_functions(s1, subs)
        s2 = sub_functions(s2, subs)

    names = sorted(free_symbols(s1) | free_symbols(s2))
    if is_imaginary(s1) or is_imaginary(s2):
        names.append("i")

    if len(names) == 1:
        v = names[0]
        q, r = Polynomial.from_expression(s1, v).divide(Polynomial.from_expression(s2, v))
        quot, rem = q.to_expression(), r.to_expression()
    else:
        quot, rem = _term_division(s1, s2, names)

    if subs:
        quot = restore_functions(quot, subs)
        rem = restore_functions(rem, subs)
    return [quot, rem]


def _nodes(*exprs: Expr):
    for e in exprs:
        stack = [e]
        while stack:
            n = stack.pop()
            yield n
            stack.extend(n.children())


def div_with_check(s1, s2) -> List[Expr]:
    """``div`` that verifies ``q*s2 + r == s1`` and falls back to ``[0, s1]``."""
    s1, s2 = to_expr(s1), to_expr(s2)
    q, r = div(s1, s2)
    test = expand(add(s1, negate(add(mul(q, s2), r))))
    if test == ZERO:
        return [q, r]
    log.debug("division of %s by %s did not reconstruct: %s", s1, s2, test)
    return [ZERO, s1]


def divide(s1, s2) -> Expr:
    """Return ``q + r/s2`` for the division of ``s1`` by ``s2``."""
    from factor import factor_inner

    s1, s2 = to_expr(s1), to_expr(s2)
    factored = factor_inner(s1)
    den = get_den(factored)
    if not den.is_constant():
        s1 = expand(mul(factored, den))
    else:
        den = ONE
    q, r = div(s1, s2)
    return over(add(q, over(r, s2)), den)


# =====================
# GCD / LCM
# =====================

def gcd(*args) -> Expr:
    """Greatest common divisor of expressions.

    Arguments without a common variable stay as the symbolic ``gcd(...)``.
    """
    flat: List[Expr] = []
    for a in args:
        a = to_expr(a)
        if isinstance(a, Fn) and a.name == "gcd":
            flat.extend(a.args)
        else:
            flat.append(a)
    if not flat:
        return ONE
    if len(flat) == 1:
        return flat[0]

    appeared: set = set()
    evaluate = False
    for a in flat:
        names = free_symbols(a)
        if names & appeared:
            evaluate = True
            break
        appeared |= names

    # a plain number always has a content gcd with the rest
    if not evaluate and appeared and not any(isinstance(a, Num) for a in flat):
        return fn("gcd", *flat)

    if all(get_den(a) == ONE for a in flat):
        aggregate = flat[0]
        for a in flat[1:]:
            aggregate = gcd_(a, aggregate)
        return aggregate
    return over(gcd(*[get_num(a) for a in flat]), lcm(*[get_den(a) for a in flat]))


def _is_exponential(e: Expr) -> bool:
    rest = split_coeff(e)[1]
    return isinstance(rest, Pow) and not isinstance(rest.exp, Num)


def _univariate(a: Expr, b: Expr) -> Optional[str]:
    va, vb = variables(a), variables(b)
    if len(va) == 1 and (vb == va or not vb):
        return va[0]
    if not va and len(vb) == 1:
        return vb[0]
    return None


@give_up_to(lambda a, b: fn("gcd", to_expr(a), to_expr(b)))
def gcd_(a, b) -> Expr:
    """Pairwise gcd; symbolic ``gcd(a, b)`` when it cannot be computed."""
    a0, b0 = a, b = to_expr(a), to_expr(b)
    if a.is_constant() and b.is_constant():
        if isinstance(a, Num) and isinstance(b, Num):
            return Num(qgcd(a.value, b.value))
        return ONE
    if a.is_constant() or b.is_constant():
        # a number against a polynomial: the content gcd
        c, other = (a, b) if a.is_constant() else (b, a)
        if isinstance(c, Num) and get_den(other) == ONE:
            return Num(qgcd(c.value, _content(other)))
        return ONE

    den = mul(get_den(a), get_den(b))
    a = expand(mul(a, den))
    b = expand(mul(b, den))

    if isinstance(a, Mul) or isinstance(b, Mul):
        q = over(a, b)
        t = over(b, get_den(q))
        # a common factor leaves something other than one behind
        if t != ONE:
            return over(t, den)

    if _is_exponential(a) or _is_exponential(b):
        ca, ra = split_coeff(a)
        cb, rb = split_coeff(b)
        ba, xa = base_exp(ra) if ra is not None else (ONE, ONE)
        bb, xb = base_exp(rb) if rb is not None else (ONE, ONE)
        return mul(Num(qgcd(ca, cb)), power(gcd_(ba, bb), gcd_(xa, xb)))

    if len(terms_of(a)) < len(terms_of(b)):
        a, b = b, a

    v = _univariate(a, b)
    if v is not None:
        try:
            pa = Polynomial.from_expression(a, v)
            pb = Polynomial.from_expression(b, v)
        except NotPolynomialError:
            pa = pb = None
        if pa is not None:
            return over(pa.gcd(pb).to_expression(), den)

    g = _common_factors(a, b)
    if g == ONE and not a0.is_constant() and not b0.is_constant():
        return over(fn("gcd", a0, b0), den)
    return over(g, den)


def _content(e: Expr) -> Rational:
    return qgcd(*[multiplier(t) for t in terms_of(expand(e))])


def _orient(f: Expr) -> Expr:
    # x-y rather than -x+y, so both argument orders agree
    return expand(negate(f)) if to_text(f).startswith("-") else f


def _exact(a: Expr, f: Expr) -> Optional[Expr]:
    if a == f:
        return ONE
    q, r = div_with_check(a, f)
    if r == ZERO and q != ZERO:
        return q
    return None


def _common_factors(a: Expr, b: Expr) -> Expr:
    """Content gcd times every factor of either side that divides both."""
    from factor import factor_inner

    g = qgcd(_content(a), _content(b))
    seen: Dict[str, Expr] = {}
    for s in (a, b):
        for f in factors_of(factor_inner(s)):
            base = _orient(base_exp(f)[0])
            if base.is_constant():
                continue
            c = _content(base)
            if not c.is_one():
                base = expand(over(base, Num(c)))
            seen.setdefault(base.key, base)
    candidates = sorted(seen.values(),
                        key=lambda f: (max(total_degree(t) for t in terms_of(f)), to_text(f)))
    found: List[Expr] = []
    ra, rb = a, b
    for f in candidates:
        safety = 0
        while True:
            safety += 1
            if safety > settings.max_division_iterations:
                raise InfiniteLoopError("gcd did not converge")
            check_timeout()
            qa = _exact(ra, f)
            qb = _exact(rb, f) if qa is not None else None
            if qb is None:
                break
            found.append(f)
            ra, rb = qa, qb
    return mul(Num(g), *found)


def lcm(*args) -> Expr:
    """Least common multiple: the product over the gcd of complementary products."""
    args = [to_expr(a) for a in args]
    if not args:
        return ONE
    if len(args) == 1:
        return args[0]
    numer = mul(*args)
    comps = [mul(*c) for c in itertools.combinations(args, len(args) - 1)]
    if all(isinstance(a, Sym) and a.name not in CONSTANTS for a in args):
        uniq = list({a.key: a for a in args}.values())
        den = fn("gcd", *uniq) if len(uniq) > 1 else uniq[0]
    else:
        den = gcd(*comps)
    return over(numer, den)
