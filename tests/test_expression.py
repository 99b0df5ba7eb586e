"""Canonical construction, text form and rational-form helpers of expressions."""
import pytest

from errors import DivisionByZeroError
from expression import (I, Add, Fn, Mul, Num, Pow, Sym, ONE, ZERO, add, expand, get_den, get_num,
                        mul, power, subs, to_expr, together, variables)
from parser import parse
from rational import Rational


class TestCanonicalForm:
    def test_sums_are_order_independent(self):
        assert parse("x+y") == parse("y+x")
        assert parse("x+x") == parse("2x")
        assert parse("x-x") == ZERO

    def test_products_merge_powers(self):
        assert parse("x*x^2") == parse("x^3")
        assert parse("x/x") == ONE
        assert isinstance(parse("2*x*y"), Mul)

    def test_numeric_folding(self):
        assert parse("2+3*4") == Num(14)
        assert parse("1/2+1/3") == Num(Rational(5, 6))
        assert parse("sqrt(4)") == Num(2)
        assert parse("8^(1/3)") == Num(2)

    def test_radicals(self):
        assert str(parse("sqrt(8)")) == "2*sqrt(2)"
        assert parse("sqrt(x)^2") == Sym("x")
        assert parse("sqrt(x^2)") == Fn("abs", (Sym("x"),))
        assert parse("sqrt(-4)") == parse("2i")

    def test_irrational_roots_of_integers(self):
        r = parse("sqrt(2)")
        assert r == Pow(Num(2), Num(Rational(1, 2)))
        assert mul(r, r) == Num(2)
        assert parse("sqrt(2)*sqrt(3)") != parse("sqrt(6)")
        assert parse("2^(5/6)") == power(Num(2), Num(Rational(5, 6)))
        assert str(parse("sqrt(1/2)")) == "sqrt(2)/2"

    def test_powers_of_i(self):
        assert parse("i^2") == Num(-1)
        assert parse("i^4") == ONE

    def test_zero_division(self):
        with pytest.raises(DivisionByZeroError):
            parse("1/0")

    def test_constants_are_not_variables(self):
        assert variables(parse("pi*x + e^y")) == ["x", "y"]
        assert parse("2*pi").is_constant()
        assert parse("x+1").contains("x")
        assert not parse("x+1").contains("y")


class TestText:
    @pytest.mark.parametrize("text,expected", [
        ("x^2+2x+1", "x^2+2*x+1"),
        ("1/x", "1/x"),
        ("x/2", "x/2"),
        ("-x", "-x"),
        ("(x+1)^2", "(x+1)^2"),
        ("sin(x)", "sin(x)"),
    ])
    def test_to_text(self, text, expected):
        assert str(parse(text)) == expected

    def test_text_round_trips(self):
        e = parse("3*x^2*y - y/(x+1) + 7")
        assert parse(str(e)) == e


class TestRationalForm:
    def test_expand(self):
        assert expand(parse("(x+1)^2")) == parse("x^2+2x+1")
        assert expand(parse("(x-1)(x+1)")) == parse("x^2-1")
        assert expand(parse("2(x+y)")) == parse("2x+2y")

    def test_numerator_and_denominator(self):
        e = parse("3x/(4(x+1))")
        assert get_num(e) == parse("3x")
        assert get_den(e) == parse("4(x+1)")
        assert get_den(parse("x+1")) == ONE

    def test_together(self):
        assert together(parse("1/x + 1/y")) == parse("(x+y)/(x*y)")

    def test_subs(self):
        assert subs(parse("x^2+y"), "x", 3) == parse("9+y")
        assert subs(parse("x+1"), "x", parse("y-1")) == Sym("y")

    def test_to_expr(self):
        assert to_expr(3) == Num(3)
        assert to_expr(0.5) == Num(Rational(1, 2))
        assert to_expr("x") == Sym("x")
        with pytest.raises(TypeError):
            to_expr(True)
        with pytest.raises(ValueError):
            to_expr(float("nan"))

    def test_operators(self):
        x = Sym("x")
        assert x + 1 == parse("x+1")
        assert (x ** 2 - 1) / 2 == parse("(x^2-1)/2")
        assert -x * 3 == parse("-3x")
