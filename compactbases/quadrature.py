"""Gauss-Legendre and Gauss-Lobatto quadrature on knot sets and finite elements."""
import warnings

import numpy as np
import scipy.linalg


class QuadratureOrderWarning(RuntimeWarning):
    """Issued when a quadrature rule cannot integrate basis overlaps exactly."""


def lerp(a, b, t):
    """Linear interpolation `a + t*(b-a)`, exact at `t=0` and `t=1`.

    For `0 <= t <= 1`, the result is not fused into a single rounding, but
    lies within `3*eps*max(|a|,|b|)` of the exact value, `eps` being the
    machine epsilon.

    Complex end points are split into independent interpolations of their
    real and imaginary parts; a complex parameter `t` with real end points
    is split into its real and imaginary part as well.
    """
    if np.iscomplexobj(a) or np.iscomplexobj(b):
        return lerp(np.real(a), np.real(b), t) + 1j*lerp(np.imag(a), np.imag(b), t)
    if np.iscomplexobj(t):
        tr, ti = np.real(t), np.imag(t)
        return lerp(a, b, tr) + 1j*lerp(np.zeros_like(a), b - a, ti)
    # exact for t == 0 and t == 1
    return t*b + (a - t*a)


def change_interval(x, w, a=0.0, b=1.0, gamma=1.0):
    """Transform the quadrature nodes `x` and weights `w` on `[-1,1]` to the
    interval `[gamma*a, gamma*b]`.

    `gamma` is an optional root of unity used to complex-rotate the nodes
    (but not the weights). `a` and `b` may be arrays; standard numpy
    broadcasting rules apply.

    Returns:
        tuple: the transformed nodes and weights
    """
    x = np.asarray(x)
    w = np.asarray(w)
    xs = lerp(gamma*np.asarray(a), gamma*np.asarray(b), (x + 1)/2)
    ws = (np.asarray(b) - np.asarray(a)) * w / 2
    return xs, ws


def num_quadrature_points(k, kprime):
    """The number of quadrature points needed to exactly compute the matrix
    elements of an operator of polynomial order `kprime` with respect to a
    basis of order `k`.
    """
    N2 = 2*(k - 1) + kprime
    return (N2 >> 1) + (N2 & 1)


def gauss_legendre(n):
    """Return the `n` Gauss-Legendre nodes and weights on `[-1,1]`."""
    return np.polynomial.legendre.leggauss(n)


def gauss_lobatto(n):
    """Return the `n` Gauss-Lobatto nodes and weights on `[-1,1]`.

    The nodes include both end points. The interior nodes are the roots of
    `P'_{n-1}`, i.e. the Gauss-Jacobi nodes with `alpha=beta=1`, which are
    computed as the eigenvalues of the corresponding Jacobi matrix.
    """
    if n < 2:
        raise ValueError('Gauss-Lobatto rules need at least 2 points, got %d' % n)
    m = n - 2
    if m > 0:
        k = np.arange(1, m)
        offdiag = np.sqrt(k*(k + 2) / ((2*k + 1)*(2*k + 3)))
        inner = scipy.linalg.eigh_tridiagonal(np.zeros(m), offdiag, eigvals_only=True)
    else:
        inner = np.empty(0)
    x = np.concatenate(([-1.0], np.sort(inner), [1.0]))
    P = np.polynomial.legendre.legval(x, np.eye(n)[n-1])
    w = 2.0 / (n*(n - 1)*P**2)
    return x, w


def lgwt(t, N):
    """Generate the `N` Gauss-Legendre quadrature nodes per non-empty
    interval of the knot set `t`, together with the associated weights.

    Issues a :class:`QuadratureOrderWarning` if `N` points are not enough to
    integrate the overlap of two polynomials of order `t.order` exactly.

    Returns:
        tuple: nodes `x` and weights `w`, each of length `N` times the number
        of non-empty intervals
    """
    k = t.order
    if 2*N - 1 < 2*(k - 1):
        warnings.warn('N = %d quadrature point%s not enough to calculate overlaps '
                      'between polynomials of order k = %d' % (N, 's' if N > 1 else '', k),
                      QuadratureOrderWarning)
    x, w = gauss_legendre(N)
    nei = t.nonempty_intervals()
    a, b = t.t[nei], t.t[nei + 1]
    xo, wo = change_interval(x, w, a[:, None], b[:, None])
    return xo.ravel(), wo.ravel()


def element_grid(order, a, b, c=0.0, eiphi=1.0):
    """Gauss-Lobatto nodes and weights of the given `order` on the element
    `[a,b]`, complex-rotated by `eiphi` around the point `c`.
    """
    x, w = gauss_lobatto(order)
    xs, ws = change_interval(x, w, a - c, b - c, eiphi)
    return c + xs, ws
