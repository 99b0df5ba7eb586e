"""Partial fraction decomposition."""
import pytest

from edag import evaluate
from expression import ZERO, Num, terms_of
from parser import parse
from partfrac import create_template, partial_fractions


def agrees(a, b, var="x"):
    for x in (0.5, 2.5, -3.25, 7.0):
        assert evaluate(a, {var: x}) == pytest.approx(evaluate(b, {var: x}))


class TestPartialFractions:
    def test_difference_of_squares(self):
        out = partial_fractions("1/(x^2-1)", "x")
        assert out == parse("1/(2(x-1))-1/(2(x+1))")

    def test_improper_fraction_keeps_quotient(self):
        out = partial_fractions("x^2/(x^2-1)", "x")
        agrees(out, parse("x^2/(x^2-1)"))
        assert Num(1) in terms_of(out)

    def test_repeated_factor(self):
        src = parse("(x+3)/((x+1)^2*(x-2))")
        out = partial_fractions(src, "x")
        agrees(out, src)
        assert len(terms_of(out)) == 3

    def test_linear_denominator_unchanged(self):
        assert partial_fractions("3/(x+2)", "x") == parse("3/(x+2)")

    def test_constant(self):
        assert partial_fractions("5") == Num(5)

    def test_as_array(self):
        out = partial_fractions("1/(x^2-1)", "x", as_array=True)
        assert out[0] == ZERO
        assert len(out) == 3

    def test_default_variable(self):
        agrees(partial_fractions("1/(x^2-1)"), parse("1/(x^2-1)"))


class TestTemplate:
    def test_powers_are_unrolled(self):
        den = parse("(x+1)^2*(x-2)")
        factors, cofactors, degrees = create_template(den, den, "x")
        assert parse("(x+1)^2") in factors
        assert parse("x+1") in factors
        assert degrees == [1, 1, 1]
        assert len(cofactors) == 3
