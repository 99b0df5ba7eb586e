"""Linear and non-linear systems of equations."""
import pytest

from edag import evaluate
from errors import DivisionByZeroError, MalformedInputError, SolveError
from expression import Num, Sym
from parser import parse
from rational import Rational
from solver import solve
from systems import _linear_rows, all_linear, solve_linear, solve_rational, system_variables


class TestSolveRational:
    def test_exact(self):
        m = [[Rational(1), Rational(1)], [Rational(1), Rational(-1)]]
        c = [Rational(3), Rational(-1)]
        assert solve_rational(m, c) == [Rational(1), Rational(2)]

    def test_fractions(self):
        m = [[Rational(2), Rational(0)], [Rational(0), Rational(3)]]
        assert solve_rational(m, [Rational(1), Rational(1)]) == [Rational(1, 2), Rational(1, 3)]

    def test_singular(self):
        m = [[Rational(1), Rational(2)], [Rational(2), Rational(4)]]
        with pytest.raises(DivisionByZeroError):
            solve_rational(m, [Rational(1), Rational(2)])


class TestLinear:
    def test_rows(self):
        eqns = [parse("2x+3y-5"), parse("x-y")]
        m, c = _linear_rows(eqns, ["x", "y"])
        assert m == [[Num(2), Num(3)], [Num(1), Num(-1)]]
        assert c == [Num(5), Num(0)]

    def test_product_term_is_rejected(self):
        with pytest.raises(MalformedInputError):
            _linear_rows([parse("x*y+1")], ["x", "y"])

    def test_symbolic_coefficients(self):
        m = [[Sym("a"), Num(0)], [Num(0), Num(1)]]
        c = [Num(1), Num(2)]
        out = solve_linear(m, c, ["x", "y"])
        assert evaluate(out["x"], {"a": 4.0}) == pytest.approx(0.25)
        assert out["y"] == Num(2)

    def test_singular_system(self):
        m = [[Num(1), Num(1)], [Num(1), Num(1)]]
        with pytest.raises(SolveError):
            solve_linear(m, [Num(1), Num(2)], ["x", "y"])

    def test_all_linear(self):
        assert all_linear([parse("x+y-3"), parse("2x-y")])
        assert not all_linear([parse("x^2+y^2-1")])
        assert not all_linear([parse("x*y-1")])

    def test_system_variables(self):
        assert system_variables([parse("x+z"), parse("y")]) == ["x", "y", "z"]


class TestSolveSystem:
    def test_two_lines(self):
        assert solve(["x+y=3", "x-y=-1"]) == {"x": Num(1), "y": Num(2)}

    def test_line_and_circle(self):
        out = solve(["x^2+y^2=1", "x+y=1"])
        pairs = {(evaluate(x), evaluate(y)) for x, y in zip(out["x"], out["y"])}
        assert pairs == {(0.0, 1.0), (1.0, 0.0)}
