"""Dense univariate polynomials and sparse multivariate terms."""
import pytest

from errors import DivisionByZeroError, NotPolynomialError
from monomial import CONST_HASH, Monomial, VariableMap
from parser import parse
from polynomial import Polynomial
from rational import Rational


def P(*coeffs):
    return Polynomial.from_array(list(coeffs))


class TestPolynomial:
    def test_from_expression(self):
        p = Polynomial.from_expression(parse("3x^2 - 1"))
        assert p.coeffs == [-1, 0, 3]
        assert p.variable == "x"
        assert p.deg() == 2
        assert p.lc() == 3

    def test_from_expression_rejects(self):
        with pytest.raises(NotPolynomialError):
            Polynomial.from_expression(parse("x*y"))
        with pytest.raises(NotPolynomialError):
            Polynomial.from_expression(parse("sin(x)"))

    def test_divide(self):
        q, r = P(-1, 0, 1).divide(P(-1, 1))
        assert q.coeffs == [1, 1]
        assert r.equals_number(0)
        q, r = P(1, 0, 1).divide(P(-1, 1))
        assert q.to_expression() == parse("x+1")
        assert r.equals_number(2)

    def test_divide_trims_the_quotient(self):
        q, r = P(1, 1, 0).divide(P(1, 1))
        assert q.coeffs == [1]
        assert q.deg() == 0
        assert r.is_zero()

    def test_divide_by_zero(self):
        with pytest.raises(DivisionByZeroError):
            P(1, 1).divide(P(0))

    def test_multiply_add_subtract(self):
        assert P(1, 1).multiply(P(-1, 1)).coeffs == [-1, 0, 1]
        assert P(1, 2).add(P(0, 0, 3)).coeffs == [1, 2, 3]
        assert P(1, 2).subtract(P(1, 2)).is_zero()

    def test_gcd_is_primitive(self):
        g = P(-2, 0, 2).gcd(P(2, 2))
        assert g.coeffs == [1, 1]

    def test_square_free(self):
        part, witness, i = P(1, 2, 1).square_free()
        assert i == 2
        assert witness.coeffs == [1, 1]
        assert part.equals_number(1)

    def test_square_free_of_square_free(self):
        part, witness, i = P(-1, 0, 1).square_free()
        assert i == 1

    @pytest.mark.parametrize("coeffs", [(-1, 0, 1), (0, -1, 0, 1), (2, -3, 0, 1), (1, 2, 1)])
    def test_square_free_parts_are_coprime_to_their_derivative(self, coeffs):
        part, witness, _ = P(*coeffs).square_free()
        for f in (part, witness):
            assert f.gcd(f.clone().diff()).equals_number(1)

    def test_evaluation_and_calculus(self):
        assert P(1, 0, 1).sub(2) == 5
        assert P(1, 2, 3).diff().coeffs == [2, 6]
        assert P(2, 6).integrate().coeffs == [0, 2, 3]

    def test_gcf(self):
        g, lowest = P(0, 4, 6).gcf()
        assert g == 2
        assert lowest == 1

    def test_fit_reads_digits(self):
        p = Polynomial.fit(1, 1, 111, 10, 2, "x")
        assert p.to_expression() == parse("x^2+x+1")
        assert Polynomial.fit(1, 1, 112, 10, 1, "x") is None

    def test_quad(self):
        assert sorted(P(6, -5, 1).quad()) == pytest.approx([2, 3])
        assert P(1, 0, 1).quad() == []
        assert sorted(P(1, 0, 1).quad(True), key=lambda z: z.imag) == [-1j, 1j]

    def test_monic(self):
        assert P(2, 4).monic().coeffs == [Rational(1, 2), 1]


class TestMonomial:
    def setup_method(self):
        self.vmap = VariableMap.for_variables(["x", "y"])

    def test_variable_map(self):
        assert len(self.vmap) == 3
        assert self.vmap["y"] == 1
        assert self.vmap.const_slot() == 2
        assert self.vmap.name(0) == "x"
        assert CONST_HASH in self.vmap

    def test_t_base(self):
        terms = Monomial.t_base(parse("3x^2*y + 5"), self.vmap)
        by_coeff = {t.coeff.to_string(): t for t in terms}
        assert by_coeff["3"].terms == [2, 1, 0]
        assert by_coeff["3"].sum == 3
        assert by_coeff["3"].count == 2
        assert by_coeff["5"].terms == [0, 0, 1]

    def test_get_img_ignores_the_constant_slot(self):
        one = Monomial.t_base(parse("7"), self.vmap)[0]
        bare = Monomial(Rational(1), [Rational(0)] * 3, self.vmap)
        assert one.get_img() == bare.get_img()

    def test_divide_and_multiply(self):
        a = Monomial.t_base(parse("6x^2*y"), self.vmap)[0]
        b = Monomial.t_base(parse("2x"), self.vmap)[0]
        q = a.divide(b)
        assert q.to_expression() == parse("3x*y")
        assert q.multiply(b).to_expression() == parse("6x^2*y")
        assert a.dominates(b)
        assert not b.dominates(a)

    def test_non_monomial_factor(self):
        from errors import AlgorithmError
        with pytest.raises(AlgorithmError):
            Monomial.t_base(parse("sin(x)"), self.vmap)
