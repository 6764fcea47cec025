import warnings
from fractions import Fraction

import pytest

from compactbases.quadrature import *
from compactbases.knotsets import LinearKnotSet, ExpKnotSet


def test_lerp():
    a, b = 0.3, 1.7
    assert lerp(a, b, 0.0) == a
    assert lerp(a, b, 1.0) == b
    assert np.isclose(lerp(a, b, 0.25), a + 0.25*(b - a))
    # complex parameter: imaginary part moves perpendicular to [a,b]
    assert np.isclose(lerp(a, b, 0.5 + 0.5j), a + (0.5 + 0.5j)*(b - a))
    # complex end points
    za, zb = 1.0 + 1.0j, 3.0 - 1.0j
    assert lerp(za, zb, 1.0) == zb
    assert np.isclose(lerp(za, zb, 0.5), 2.0)


def test_lerp_rounding():
    eps = np.finfo(float).eps
    for a, b in ((0.3, 1.7), (-2.5, 1e-3), (1e5, 1e5 + 1.0), (7.0, -3.0)):
        t = np.linspace(0, 1, 101)
        exact = np.array([float(Fraction(a) + Fraction(s)*(Fraction(b) - Fraction(a))) for s in t])
        assert np.all(np.abs(lerp(a, b, t) - exact) <= 3*eps*max(abs(a), abs(b)))


def test_num_quadrature_points():
    assert num_quadrature_points(2, 0) == 1
    assert num_quadrature_points(3, 3) == 4
    assert num_quadrature_points(7, 3) == 8


def test_change_interval():
    x, w = gauss_legendre(3)
    xs, ws = change_interval(x, w, 1.0, 3.0)
    assert np.allclose(xs, 2 + x)
    assert np.allclose(ws.sum(), 2.0)
    # rotation applies to the nodes only
    g = np.exp(1j*np.pi/4)
    xr, wr = change_interval(x, w, 1.0, 3.0, g)
    assert np.allclose(xr, g*xs)
    assert np.allclose(wr, ws)
    # broadcasting over several intervals
    xb, wb = change_interval(x, w, np.array([[0.0], [1.0]]), np.array([[1.0], [2.0]]))
    assert xb.shape == (2, 3)
    assert np.allclose(xb[1] - xb[0], 1.0)


def test_gauss_lobatto():
    x, w = gauss_lobatto(2)
    assert np.allclose(x, [-1, 1])
    assert np.allclose(w, [1, 1])
    x, w = gauss_lobatto(3)
    assert np.allclose(x, [-1, 0, 1])
    assert np.allclose(w, [1/3, 4/3, 1/3])
    for n in range(2, 12):
        x, w = gauss_lobatto(n)
        assert x[0] == -1.0 and x[-1] == 1.0
        assert np.all(np.diff(x) > 0)
        # exact for polynomials of degree 2n-3
        for d in range(2*n - 2):
            exact = 2/(d + 1) if d % 2 == 0 else 0.0
            assert abs(w.dot(x**d) - exact) < 1e-12
    with pytest.raises(ValueError):
        gauss_lobatto(1)


def test_lgwt():
    t = LinearKnotSet(2, 0, 1, 3)
    x, w = lgwt(t, 2)
    assert np.allclose(x, [0.0704416, 0.262892, 0.403775, 0.596225, 0.737108, 0.929558], atol=1e-6)
    assert np.allclose(w, 1/6)

    t = ExpKnotSet(2, -2, 2, 5)
    x, w = lgwt(t, 2)
    assert x.size == 2 * t.numintervals
    assert np.isclose(w.sum(), 100.0)
    # integrate a cubic exactly
    assert np.isclose(w.dot(x**3), 100.0**4 / 4)


def test_lgwt_warning():
    t = LinearKnotSet(3, 0, 1, 3)
    with pytest.warns(QuadratureOrderWarning):
        lgwt(t, 1)
    with warnings.catch_warnings():
        warnings.simplefilter('error')
        lgwt(t, 3)


def test_element_grid():
    x, w = element_grid(4, 1.0, 2.0)
    assert x[0] == 1.0 and x[-1] == 2.0
    assert np.isclose(w.sum(), 1.0)
    g = np.exp(1j*np.pi/4)
    x, w = element_grid(4, 1.0, 2.0, 1.0, g)
    assert np.isclose(x[0], 1.0)
    assert np.isclose(x[-1], 1.0 + g)
    assert np.isclose(w.sum(), 1.0)
    x, w = element_grid(4, 2.0, 3.0, 1.0, g)
    assert np.isclose(x[0], 1.0 + g)
    assert np.isclose(x[-1], 1.0 + 2*g)
