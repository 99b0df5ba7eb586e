"""Exact rational arithmetic and the integer helpers."""
import pytest

from rational import Rational, divisors, ifactor, int_root, is_prime, qgcd, split_root


class TestRational:
    def test_arithmetic(self):
        a, b = Rational(1, 2), Rational(1, 3)
        assert a + b == Rational(5, 6)
        assert a - b == Rational(1, 6)
        assert a * b == Rational(1, 6)
        assert a / b == Rational(3, 2)
        assert -a == Rational(-1, 2)
        assert abs(Rational(-3, 4)) == Rational(3, 4)

    def test_normalised_on_construction(self):
        r = Rational(4, -6)
        assert r.numerator() == -2
        assert r.denominator() == 3
        assert r.to_string() == "-2/3"

    def test_decimal_strings_are_exact(self):
        assert Rational("0.1") == Rational(1, 10)
        assert Rational("2.5").to_string() == "5/2"

    def test_mod_follows_the_dividend(self):
        assert Rational(7) % 3 == Rational(1)
        assert Rational(-7, 2) % 2 == Rational(-3, 2)

    def test_division_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            Rational(1, 0)
        with pytest.raises(ZeroDivisionError):
            Rational(1) / 0
        with pytest.raises(ZeroDivisionError):
            Rational(0) ** -1

    def test_comparisons_and_predicates(self):
        assert Rational(1, 3) < Rational(1, 2)
        assert Rational(2) >= 2
        assert Rational(0).is_zero()
        assert Rational(3, 3).is_one()
        assert Rational(4, 2).is_int()
        assert Rational(-1, 5).is_negative()
        assert Rational(-1, 5).sign() == -1

    def test_conversions(self):
        assert float(Rational(1, 4)) == 0.25
        assert Rational(2, 3).to_decimal(3) == 0.667
        assert Rational(7, 2).to_int() == 3
        assert Rational(2, 5).invert() == Rational(5, 2)

    def test_hashable(self):
        assert len({Rational(1, 2), Rational(2, 4)}) == 1


class TestIntegerHelpers:
    def test_qgcd(self):
        assert qgcd(Rational(4), Rational(6)) == 2
        assert qgcd(Rational(1, 2), Rational(1, 3)) == Rational(1, 6)
        assert qgcd(Rational(0)) == 0

    def test_ifactor(self):
        assert ifactor(12) == {2: 2, 3: 1}
        assert ifactor(-12) == {-1: 1, 2: 2, 3: 1}
        assert ifactor(1) == {}

    def test_divisors(self):
        assert divisors(12) == [1, 2, 3, 4, 6, 12]
        assert divisors(-9) == [1, 3, 9]
        assert divisors(0) == []

    def test_is_prime(self):
        assert is_prime(97)
        assert is_prime(2)
        assert not is_prime(91)
        assert not is_prime(1)

    def test_roots(self):
        assert int_root(27, 3) == 3
        assert int_root(26, 3) is None
        assert int_root(-4, 2) is None
        assert split_root(72, 2) == (6, 2)
