"""Single-equation solving."""
import math

import pytest

from config import settings
from edag import evaluate
from errors import MalformedInputError
from expression import Num, Sym
from parser import parse
from solver import Equation, Solver, solve, to_lhs


def reals(sols):
    return sorted(evaluate(s) for s in sols)


def complexes(sols):
    return sorted((complex(evaluate(s, complex_mode=True)) for s in sols), key=lambda z: (z.real, z.imag))


class TestEquation:
    def test_rejects_different_numbers(self):
        with pytest.raises(MalformedInputError):
            Equation(Num(2), Num(3))

    def test_equal_numbers_are_fine(self):
        assert Equation(Num(2), Num(2)).is_zero()

    def test_to_lhs(self):
        assert Equation.from_string("x+1=3").to_lhs() == parse("x-2")

    def test_sub(self):
        eq = Equation.from_string("x^2=4").sub("x", Num(2))
        assert eq.is_zero()

    def test_variables(self):
        assert Equation.from_string("x+y=a").variables() == ["a", "x", "y"]

    def test_to_lhs_helper(self):
        assert to_lhs(parse("x-1")) == parse("x-1")
        assert to_lhs("x=1") == parse("x-1")
        with pytest.raises(MalformedInputError):
            to_lhs(42)


class TestSolve:
    def test_linear(self):
        assert solve("x-5", "x") == [Num(5)]

    def test_equation_string(self):
        assert solve("x+1=3", "x") == [Num(2)]

    def test_isolated_variable(self):
        assert solve(Equation(Sym("x"), Num(3)), "x") == [Num(3)]

    def test_quadratic(self):
        assert reals(solve("x^2-4", "x")) == [-2, 2]

    def test_complex_roots(self):
        assert complexes(solve("x^2+1", "x")) == [pytest.approx(-1j), pytest.approx(1j)]

    def test_real_only(self):
        assert solve("x^2+1", "x", real=True) == []

    def test_cubic_has_unit_root(self):
        sols = solve("x^3-1", "x")
        assert Num(1) in sols
        assert len(sols) == 3
        for z in complexes(sols):
            assert abs(z ** 3 - 1) < 1e-9

    def test_irrational_roots(self):
        sols = solve("x^2-2", "x")
        assert len(sols) == 2
        assert parse("sqrt(2)") in sols
        assert reals(sols) == pytest.approx([-math.sqrt(2), math.sqrt(2)])

    def test_complex_pair(self):
        sols = solve("x^2+x+1", "x")
        assert len(sols) == 2
        for z in complexes(sols):
            assert abs(z * z + z + 1) < 1e-9

    def test_default_variable(self):
        assert solve("y-3") == [Num(3)]

    def test_pole_is_dropped(self):
        assert solve("(x^2-1)/(x-1)", "x") == [Num(-1)]

    def test_transcendental_falls_back_to_numbers(self):
        found = [evaluate(s) for s in solve("e^x-2", "x")]
        assert any(abs(x - math.log(2)) < 1e-6 for x in found)

    def test_without_filtering(self):
        with settings.override(filter_solutions=False):
            assert solve("x-5", "x") == [Num(5)]

    def test_depth_cap_stops_nested_solving(self):
        product = parse("(x-1)*(x-2)")
        assert reals(solve(product, "x")) == [1, 2]
        with settings.override(max_solve_depth=0):
            assert solve(product, "x") == []
        with settings.override(max_solve_depth=-1):
            assert solve("x-5", "x") == []


class TestTidy:
    def test_numbers_sorted_and_deduplicated(self):
        out = Solver()._tidy([3.0, Num(1), parse("a"), 1.0 + 1e-14])
        assert out == [Num(1), Num(3), Sym("a")]

    def test_symbolic_sorted_by_text(self):
        out = Solver()._tidy([parse("b"), parse("a"), parse("b")])
        assert out == [Sym("a"), Sym("b")]
