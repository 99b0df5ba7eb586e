"""
Systems of equations.

Linear systems are solved through their coefficient matrix, exactly when
every coefficient is a number and by Cramer's rule otherwise. Non-linear
systems go through multivariate Newton-Raphson with a numerically
evaluated Jacobian; a singular Jacobian hands a line/circle pair over to
substitution.
"""
from __future__ import annotations
import logging
from fractions import Fraction
from typing import Dict, List, Optional, Sequence

import numpy as np

from config import check_timeout, settings
from division import divide
from edag import build, diff
from errors import AlgorithmError, DivisionByZeroError, MalformedInputError, SolveError
from expression import (Expr, Num, Sym, ZERO, add, expand, factors_of, mul, negate, subs, terms_of,
                        to_expr, variables)
from expression import divide as over
from rational import Rational
from roots import degree
from solver import solve, to_lhs

log = logging.getLogger(__name__)

Solutions = Dict[str, object]


def system_variables(eqns: Sequence[Expr]) -> List[str]:
    names = set()
    for e in eqns:
        names.update(variables(e))
    return sorted(names)


def all_linear(eqns: Sequence[Expr]) -> bool:
    """True when no term holds more than one variable, or a variable in anything but the first power."""
    for e in eqns:
        names = variables(e)
        for t in terms_of(expand(e)):
            hits = [f for f in factors_of(t) if any(f.contains(n) for n in names)]
            if len(hits) > 1 or (hits and not isinstance(hits[0], Sym)):
                return False
    return True


def solve_rational(m: Sequence[Sequence[Rational]], c: Sequence[Rational]) -> List[Rational]:
    """Solve ``m * x = c`` with numpy and recover the exact rational solution.

    Raises DivisionByZeroError for a singular matrix and AlgorithmError
    when the rounded solution does not satisfy the system exactly.
    """
    a = np.array([[float(x) for x in row] for row in m], dtype=np.float64)
    b = np.array([float(x) for x in c], dtype=np.float64)
    if np.linalg.matrix_rank(a) < len(c):
        raise DivisionByZeroError("singular coefficient matrix")
    x = np.linalg.solve(a, b)
    sol = [Rational(Fraction(float(t)).limit_denominator(10 ** 9)) for t in x]
    for row, rhs in zip(m, c):
        total = Rational(0)
        for coeff, s in zip(row, sol):
            total = total + coeff * s
        if total != rhs:
            raise AlgorithmError("no exact rational solution")
    return sol


def _det(m: List[List[Expr]]) -> Expr:
    if len(m) == 1:
        return m[0][0]
    terms = []
    for j, lead in enumerate(m[0]):
        if lead == ZERO:
            continue
        minor = [row[:j] + row[j + 1:] for row in m[1:]]
        t = mul(lead, _det(minor))
        terms.append(negate(t) if j % 2 else t)
    return expand(add(*terms))


def _linear_rows(eqns: Sequence[Expr], names: Sequence[str]):
    m = [[ZERO] * len(names) for _ in eqns]
    c = [ZERO] * len(eqns)
    for i, e in enumerate(eqns):
        for t in terms_of(expand(e)):
            owners = [j for j, n in enumerate(names) if t.contains(n)]
            if len(owners) > 1:
                raise MalformedInputError(f"Multiple variables found for term {t}")
            if owners:
                j = owners[0]
                m[i][j] = add(m[i][j], over(t, Sym(names[j])))
            else:
                c[i] = add(c[i], negate(t))
    return m, c


def solve_linear(m: List[List[Expr]], c: List[Expr], names: Sequence[str]) -> Solutions:
    if len(m) != len(names):
        raise SolveError("System does not have a distinct solution")
    if all(isinstance(x, Num) for row in m for x in row) and all(isinstance(x, Num) for x in c):
        rows = [[x.value for x in row] for row in m]
        rhs = [x.value for x in c]
        try:
            values = [Num(x) for x in solve_rational(rows, rhs)]
        except DivisionByZeroError:
            raise SolveError("System does not have a distinct solution")
        except AlgorithmError:
            a = np.array([[float(x) for x in row] for row in rows])
            values = [to_expr(float(x)) for x in np.linalg.solve(a, np.array([float(x) for x in rhs]))]
        return dict(zip(names, values))
    d = _det(m)
    if d == ZERO:
        raise SolveError("System does not have a distinct solution")
    out: Solutions = {}
    for j, name in enumerate(names):
        mj = [row[:j] + [c[i]] + row[j + 1:] for i, row in enumerate(m)]
        out[name] = divide(_det(mj), d)
    return out


def solve_non_linear_system(eqns: Sequence[Expr], tries: Optional[int] = None,
                            start: Optional[float] = None) -> Solutions:
    """Newton-Raphson from ``start``; restarts at jumped points when the steps stop shrinking."""
    if tries is not None and tries < 0:
        return {}
    start = settings.non_linear_start if start is None else start
    max_tries = settings.max_non_linear_tries
    halfway = max_tries // 2
    tries = max_tries if tries is None else tries

    names = system_variables(eqns)
    fs = [build(e, names) for e in eqns]
    jacobian = [[build(diff(e, n), names) for n in names] for e in eqns]

    c = np.full(len(names), float(start))
    norm: Optional[float] = None
    iterations = 0
    while True:
        if iterations > settings.max_newton_iterations:
            return {}
        check_timeout()
        point = list(c)
        values = np.array([f(*point) for f in fs])
        j = np.array([[df(*point) for df in row] for row in jacobian])
        try:
            inverse = np.linalg.inv(j)
        except np.linalg.LinAlgError:
            raise DivisionByZeroError("singular Jacobian")
        step = -(inverse @ values)
        c = c + step
        if iterations >= settings.non_linear_jump_at and norm is not None and norm > 1:
            if tries == halfway:
                start = 0
            sign = 1 if tries > halfway else -1
            n = tries % max(halfway, 1) + 1
            start += sign * n * settings.non_linear_jump_size
            log.debug("non-linear system not converging, restarting at %s", start)
            return solve_non_linear_system(eqns, tries - 1, start)
        last = norm
        iterations += 1
        norm = float(np.max(np.abs(step)))
        if norm == last or not norm >= settings.solution_proximity:
            break
    if not np.all(np.isfinite(c)):
        return {}
    return {name: to_expr(round(float(x), 14)) for name, x in zip(names, c)}


def solve_circle(eqns: Sequence[Expr], names: Sequence[str]) -> Solutions:
    """A line and a circle in two variables, by substitution."""
    degrees = []
    for e in eqns:
        d = []
        for n in names:
            k = degree(e, n)
            if not isinstance(k, Num):
                return {}
            d.append(k.value.to_int())
        d.append(sum(d))
        degrees.append(d)
    a, b = eqns[0], eqns[1]
    if degrees[0][2] > degrees[1][2]:
        a, b = b, a
        degrees.reverse()
    if not (degrees[0][0] == 1 and degrees[0][2] == 2 and degrees[1][0] == 2 and degrees[1][2] == 4):
        return {}
    x, y = names[0], names[1]
    x_of_y = solve(a, x)[0]
    y_points = solve(subs(b, x, x_of_y), y)
    x_points = [solve(subs(a, y, yp), x)[0] for yp in y_points[:2]]
    return {x: x_points, y: y_points}


def solve_system_by_substitution(eqns: Sequence[Expr]) -> Solutions:
    names_a = variables(eqns[0])
    names_b = variables(eqns[1]) if len(eqns) > 1 else []
    if len(eqns) == 2 and len(names_a) == 2 and names_a == names_b:
        return solve_circle(eqns, names_a)
    return {}


def solve_system(eqns: Sequence, var_array: Optional[Sequence[str]] = None) -> Solutions:
    """Solve a list of equations; returns a dict of variable -> value."""
    eqns = [to_lhs(e) for e in eqns]
    if var_array is None:
        if not all_linear(eqns):
            try:
                return solve_non_linear_system(eqns)
            except DivisionByZeroError:
                return solve_system_by_substitution(eqns)
        names = system_variables(eqns)
        if len(names) == 1:
            v = names[0]
            sols = solve(eqns[0], v)
            for e in eqns[1:]:
                sols = [s for s in sols if expand(subs(e, v, s)) == ZERO]
            return {v: sols}
        if len(names) < len(eqns):
            # the surplus equation must agree with the rest
            solutions = solve_system(eqns[:-1], names)
            last = eqns[-1]
            for name, value in solutions.items():
                last = subs(last, name, value)
            if expand(last) == ZERO:
                return solutions
    else:
        names = list(var_array)
    m, c = _linear_rows(eqns, names)
    return solve_linear(m, c, names)
