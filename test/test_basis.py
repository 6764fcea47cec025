import pytest

import compactbases
from compactbases.basis import *
from compactbases import (FiniteDifferences, StaggeredFiniteDifferences,
        ImplicitFiniteDifferences, BSpline, LinearKnotSet, FEDVR, num_quadrature_points)


def test_restriction():
    R = FiniteDifferences(10, 0.1)
    A = R[:, 2:7]
    assert isinstance(A, RestrictedBasis)
    assert A.parent is R
    assert len(A) == 5
    assert A.indices == range(2, 7)
    assert np.allclose(A.locs, R.locs[2:7])
    assert A.family == R.family
    assert A.domain == R.domain
    # nested restriction composes
    B = A[:, 1:3]
    assert B.parent is R
    assert B.indices == range(3, 5)
    assert B == R.restrict(3, 5)
    # single function
    assert R[:, 4].indices == range(4, 5)
    with pytest.raises(ValueError):
        RestrictedBasis(R, range(5, 12))


def test_evaluate_restricted():
    R = FiniteDifferences(10, 0.1)
    x = np.linspace(0, 1.1, 23)
    chi = R.evaluate(x)
    assert chi.shape == (23, 10)
    A = R[:, 3:8]
    assert np.allclose(A.evaluate(x).toarray(), chi.toarray()[:, 3:8])
    assert np.allclose(R[x, 3:8].toarray(), chi.toarray()[:, 3:8])
    assert np.allclose(R[x, 4], chi.toarray()[:, 4])
    assert np.isclose(A[0.45, 1], 0.5)
    # ranges select functions like slices
    assert R[0.45, range(3, 8)].shape == (1, 5)
    assert np.allclose(R[x, range(3, 8)].toarray(), chi.toarray()[:, 3:8])


def test_interpolation_roundtrip():
    f = lambda x: np.exp(-(x - 1)**2)
    eiphi = np.exp(1j*np.pi/6)
    bases = [
        FiniteDifferences(40, 0.1),
        StaggeredFiniteDifferences.uniform(40, 0.1),
        StaggeredFiniteDifferences.log_linear(0.01, 0.5, 0.05, 4.0, Z=0.0),
        ImplicitFiniteDifferences(40, 0.1),
        FEDVR(np.linspace(0, 4, 5), 6),
        FEDVR(np.linspace(0, 4, 5), 6, t0=2.0, eiphi=eiphi),
        BSpline(LinearKnotSet(4, 0.0, 4.0, 9)),
    ]
    for R in bases:
        for B in (R, R[:, 1:-1]):
            c = B.interpolate(f)
            assert np.allclose(B.interpolate(B.expand(c)), c), str(B)


def test_expansion():
    t = LinearKnotSet(4, 0.0, 1.0, 6)
    R = BSpline(t)
    f = lambda x: 1 - 2*x + x**3
    u = R.expand(R.interpolate(f))
    x = np.linspace(0, 1, 50)
    assert np.allclose(u(x), f(x))
    assert np.isclose(u(0.3), f(0.3))
    assert np.allclose((2*u)(x), 2*f(x))
    assert np.allclose((u*3.0).coeffs, 3*u.coeffs)
    with pytest.raises(ValueError):
        Expansion(R, np.ones(len(R) + 1))


def test_expansion_product():
    R = FEDVR(np.linspace(0, 1, 6), 5)
    f = R.expand(R.interpolate(lambda x: np.sin(x)))
    g = R.expand(R.interpolate(lambda x: np.cos(x)))
    h = f * g
    assert isinstance(h, Expansion)
    assert np.allclose(h.coeffs, R.interpolate(lambda x: np.sin(x)*np.cos(x)))


def test_interpolate_domain():
    R = FiniteDifferences(10, 0.25)
    assert np.allclose(R.interpolate(np.sin, domain=(0.0, 2.75)), np.sin(R.locs))
    with pytest.raises(ValueError):
        R.interpolate(np.sin, domain=(0.0, 2.0))


def test_combined_restriction():
    R = FiniteDifferences(10, 0.1)
    M = combined_restriction(R[:, 0:5], R[:, 2:8]).toarray()
    assert M.shape == (5, 6)
    expected = np.zeros((5, 6))
    expected[2, 0] = expected[3, 1] = expected[4, 2] = 1
    assert np.array_equal(M, expected)


def test_allocate_matrix():
    R = BSpline(LinearKnotSet(3, 0.0, 1.0, 5))
    S = allocate_matrix(R)
    assert S.shape == (7, 7)
    assert sorted(S.offsets) == [-2, -1, 0, 1, 2]
    assert S.nnz == 0 or not S.toarray().any()
    S = allocate_matrix(R[:, 0:4], R[:, 2:7])
    assert S.shape == (4, 5)
    # parent band |i-j| <= 2 shifted by the restriction offset 2
    assert sorted(S.offsets) == [-3, -2, -1, 0]


def test_incompatible():
    A = FiniteDifferences(10, 0.1)
    B = FiniteDifferences(10, 0.2)
    C = BSpline(LinearKnotSet(3, 0.0, 1.0, 5))
    with pytest.raises(IncompatibleBasesError):
        assert_compatible_bases(A, B)
    with pytest.raises(IncompatibleBasesError):
        mass_matrix(A, C)
    with pytest.raises(IncompatibleBasesError):
        operator_matrix(C, A, np.sin)
    # IncompatibleBasesError is a ValueError
    with pytest.raises(ValueError):
        mass_matrix(A, B)


def test_default_operator_order():
    assert compactbases.get_default_operator_order() == 3
    t = LinearKnotSet(4, 0.0, 1.0, 3)
    try:
        compactbases.set_default_operator_order(5)
        R = BSpline(t)
        assert R.x.size == 3 * num_quadrature_points(4, 5)
    finally:
        compactbases.set_default_operator_order(3)
    assert BSpline(t).x.size == 3 * num_quadrature_points(4, 3)
    with pytest.raises(ValueError):
        compactbases.set_default_operator_order(-1)


def test_str():
    assert 'Finite' in str(FiniteDifferences(10, 0.1))
    assert 'restricted to 2:5' in str(FiniteDifferences(10, 0.1)[:, 2:5])
    assert 'Staggered' in str(StaggeredFiniteDifferences.uniform(10, 0.1))
    assert 'BSpline' in str(BSpline(LinearKnotSet(3, 0.0, 1.0, 5)))
