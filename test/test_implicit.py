import threading

import pytest
import scipy.sparse

from compactbases.finite_differences import *
from compactbases.operators import CachedSolver, make_solver


def _random_tridiag(n, diag=4.0):
    rng = np.random.RandomState(0)
    return scipy.sparse.diags([rng.rand(n-1), diag + rng.rand(n), rng.rand(n-1)],
                              [-1, 0, 1], format='csr')


def _dense(D):
    return D @ np.eye(D.shape[1])


def test_make_solver():
    A = _random_tridiag(10)
    b = np.arange(10.0)
    for B in (A, A.toarray()):
        x = make_solver(B).dot(b)
        assert np.allclose(A @ x, b)
    S = (A + A.T).toarray()
    x = make_solver(S, spd=True).dot(b)
    assert np.allclose(S @ x, b)


def test_cached_solver():
    A = _random_tridiag(10)
    S = CachedSolver(A)
    assert not S.is_factorized
    b = np.ones(10)
    x = S.solve(b)
    assert S.is_factorized
    solver = S.solver
    assert np.allclose(A @ x, b)
    X = S.solve(np.eye(10))
    assert np.allclose(A @ X, np.eye(10))
    assert S.solver is solver


def test_cached_solver_threads():
    S = CachedSolver(_random_tridiag(50))
    results = []
    def work():
        results.append(S.solver)
    threads = [threading.Thread(target=work) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert all(r is results[0] for r in results)


def test_implicit_derivative_apply():
    n = 12
    Delta = _random_tridiag(n, diag=0.0)
    M = _random_tridiag(n)
    D = ImplicitDerivative(Delta, M, c=-2.0)
    expected = -2.0 * np.linalg.solve(M.toarray(), Delta.toarray())
    x = np.linspace(0, 1, n)
    assert np.allclose(D @ x, expected @ x)
    assert np.allclose(D.dot(x), expected @ x)
    assert np.allclose(_dense(D), expected)


def test_implicit_derivative_scaling():
    n = 12
    D = ImplicitDerivative(_random_tridiag(n, diag=0.0), _random_tridiag(n))
    x = np.linspace(0, 1, n)
    y = D @ x
    for E in (3*D, D*3, -(-3*D)):
        assert isinstance(E, ImplicitDerivative)
        assert E.Minv is D.Minv
        assert np.allclose(E @ x, 3*y)
    assert np.allclose((D / 2) @ x, y / 2)
    # the factorization of M is shared between derived operators
    assert D.Minv.is_factorized


def test_implicit_derivative_shift():
    n = 12
    D = ImplicitDerivative(_random_tridiag(n, diag=0.0), _random_tridiag(n), c=0.5)
    x = np.linspace(-1, 1, n)
    y = D @ x
    V = scipy.sparse.diags(x**2)
    T = _random_tridiag(n)
    assert np.allclose((D + 2.0) @ x, y + 2*x)
    assert np.allclose((2.0 + D) @ x, y + 2*x)
    assert np.allclose((D - 2.0) @ x, y - 2*x)
    assert np.allclose((1.0 - D) @ x, x - y)
    assert np.allclose((D + V) @ x, y + V @ x)
    assert np.allclose((D - T) @ x, y - T @ x)
    E = D + V
    assert isinstance(E, ImplicitDerivative)
    assert E.Minv is D.Minv and E.c == D.c
    with pytest.raises(TypeError):
        D + np.ones((n, n))
    with pytest.raises(ValueError):
        D + scipy.sparse.csr_matrix(np.ones((n, n)))


def test_implicit_factorization():
    n = 12
    D = ImplicitDerivative(_random_tridiag(n), _random_tridiag(n), c=-2.0)
    F = D.factorize()
    x = np.linspace(0, 1, n)
    assert np.allclose(F @ (D @ x), x)
    assert np.allclose(D @ (F @ x), x)
    X = np.random.rand(n, 3)
    assert np.allclose(F @ (D @ X), X)


def test_complex_rhs():
    n = 10
    D = ImplicitDerivative(_random_tridiag(n, diag=0.0), _random_tridiag(n))
    x = np.linspace(0, 1, n)
    y = np.exp(1j*x)
    assert np.allclose(D @ y, D @ y.real + 1j*(D @ y.imag))
