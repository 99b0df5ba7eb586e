"""Closed-form roots, numeric roots and the polynomial utilities."""
import math

import pytest

from edag import evaluate
from errors import MalformedInputError, ValueLimitExceededError
from expression import Fn, Num, Sym, subs
from jenkins_traub import numeric_roots, proots
from parser import parse
from roots import coeffs, csolve, cubic, degree, froot, line, quad, quartic, roots, sq_complete, sum_prod


def as_complex(rs):
    return [complex(evaluate(r, complex_mode=True)) for r in rs]


class TestClosedForms:
    def test_quad(self):
        assert quad(6, -5, 1) == [Num(3), Num(2)]

    def test_quad_complex(self):
        rs = as_complex(quad(1, 0, 1))
        assert sorted(rs, key=lambda z: z.imag) == [pytest.approx(-1j), pytest.approx(1j)]

    def test_quad_symbolic(self):
        r1, r2 = quad(parse("-a"), 0, 1)
        assert r1 == parse("sqrt(a)")
        assert r2 == parse("-sqrt(a)")

    @pytest.mark.parametrize("poly", ["x^3-6x^2+11x-6", "x^3-1", "2x^3+3x+1"])
    def test_cubic_roots_are_roots(self, poly):
        p = parse(poly)
        for z in as_complex(cubic(*coeffs(p, "x"))):
            assert abs(evaluate(subs(p, "x", Sym("t")), {"t": z}, complex_mode=True)) < 1e-8

    def test_quartic_roots_are_roots(self):
        p = parse("x^4-5x^2+4")
        got = sorted(z.real for z in as_complex(quartic(*coeffs(p, "x"))))
        assert got == pytest.approx([-2, -1, 1, 2])

    def test_csolve(self):
        rs = csolve(parse("x^3-8"), "x")
        assert len(rs) == 3
        assert rs[0] == Num(2)
        for z in as_complex(rs):
            assert abs(z ** 3 - 8) < 1e-9

    def test_csolve_needs_a_binomial(self):
        assert csolve(parse("x^2+x+1"), "x") == []


class TestNumericRoots:
    def test_proots(self):
        assert set(proots(parse("x^2-5x+6"))) == {Num(2), Num(3)}

    def test_zero_roots_listed_last(self):
        rs = proots(parse("x^3-x^2"))
        assert rs[-1] == Num(0)
        assert Num(1) in rs

    def test_complex(self):
        assert set(proots(parse("x^2+1"))) == {parse("i"), parse("-i")}

    def test_numeric_roots_degree_cap(self):
        with pytest.raises(ValueLimitExceededError):
            numeric_roots(parse("x^101+1"))

    def test_high_degree(self):
        p = parse("x^6-1")
        rs = numeric_roots(p)
        assert len(rs) == 6
        for z in rs:
            assert abs(z ** 6 - 1) < 1e-9

    def test_roots(self):
        assert set(roots("x^2-4")) == {Num(2), Num(-2)}
        assert roots("7") == []

    def test_froot(self):
        assert froot(parse("x^2-2"), 1.0) == pytest.approx(math.sqrt(2))
        assert froot(lambda x: x * x - 9, 2.0, lambda x: 2 * x) == pytest.approx(3.0)

    def test_froot_needs_derivative_for_callables(self):
        with pytest.raises(TypeError):
            froot(lambda x: x, 1.0)


class TestUtilities:
    def test_sum_prod(self):
        assert set(sum_prod(5, 6)) == {Num(2), Num(3)}

    def test_coeffs(self):
        assert coeffs("3x^2+1") == [Num(1), Num(0), Num(3)]
        assert coeffs("a*x^2+b*x", "x") == [Num(0), Sym("b"), Sym("a")]

    def test_coeffs_of_constants(self):
        # known quirk: a constant is its own sole coefficient, whatever its type
        assert coeffs("5") == [Num(5)]
        assert coeffs("y", "x") == [Sym("y")]

    def test_coeffs_needs_a_variable(self):
        with pytest.raises(MalformedInputError):
            coeffs("x*y+1")

    def test_degree(self):
        assert degree("x^3+x") == Num(3)
        assert degree("x^2*y", "y") == Num(1)
        assert degree("5") == Num(0)
        assert degree("(x+1)^3", "x") == Num(3)

    def test_symbolic_degree(self):
        d = degree("x^n+x", "x")
        assert isinstance(d, Fn)
        assert d.name == "max"

    def test_degree_needs_a_variable(self):
        with pytest.raises(MalformedInputError):
            degree("x*y")

    def test_sq_complete(self):
        out = sq_complete("x^2+2x+5", "x")
        assert out["a"] == parse("x+1")
        assert out["c"] == Num(4)
        assert out["f"] == parse("(x+1)^2+4")

    def test_sq_complete_negative_middle(self):
        out = sq_complete("x^2-6x+1", "x")
        assert out["a"] == parse("x-3")
        assert out["c"] == Num(-8)

    def test_sq_complete_needs_a_quadratic(self):
        with pytest.raises(ValueLimitExceededError):
            sq_complete("x^3+1", "x")
        with pytest.raises(ValueLimitExceededError):
            sq_complete("sin(x)", "x")

    def test_line(self):
        assert line([1, 2], [3, 6]) == parse("2x")
        assert line([0, 1], [1, 1], "t") == Num(1)
        with pytest.raises(MalformedInputError):
            line([1], [2, 3])

    def test_line_rational_slope(self):
        assert line([0, 0], [2, 1]) == parse("x/2")
