# -*- coding: utf-8 -*-
"""Matrix elements `<A|d^o/dx^o|B>` of the first and second derivative.

Finite differences use the stencils of their respective scheme, B-splines
and FE-DVR integrate the basis functions against their derivatives with
their quadrature rule. For restricted bases, the sub-block of the matrix of
the unrestricted basis is returned, which corresponds to Dirichlet boundary
conditions at the removed functions.
"""
import numpy as np
import scipy.sparse

from .basis import assert_compatible_bases, allocate_matrix
from .finite_differences import (FiniteDifferences, StaggeredFiniteDifferences,
        ImplicitFiniteDifferences, ImplicitDerivative)
from .bsplines import BSpline, basis_functions, overlap_matrix
from .fedvr import FEDVR, differentiation_matrix


def _tridiag(sub, diag, sup, n):
    return scipy.sparse.diags([sub, diag, sup], [-1, 0, 1], shape=(n, n), format='csr')


def fd_derivative(R, order):
    """Three-point stencils on the uniform grid of `R`."""
    n, dx = len(R), R.dx
    if order == 1:
        D = _tridiag(-np.ones(n-1), np.zeros(n), np.ones(n-1), n) / (2*dx)
    else:
        D = _tridiag(np.ones(n-1), -2*np.ones(n), np.ones(n-1), n) / dx**2
    return R.step * D


def staggered_derivative(R, order):
    """Symmetrized stencils on the staggered grid of `R`."""
    n, step = len(R), R.step
    if order == 1:
        D = _tridiag(-R.delta, np.zeros(n), R.delta, n) / (2*step)
    else:
        D = _tridiag(R.alpha, -2*R.beta, R.alpha, n) / step**2
    return step * D


def implicit_stencils(R, order):
    """Return the triple `(Delta, M, c)` of the compact stencil, such that
    the derivative is `c M^{-1} Delta`."""
    n, dx = len(R), R.dx
    ones, ones1 = np.ones(n), np.ones(n-1)
    if order == 1:
        d = np.zeros(n)
        d[0] = R.lam
        m = 4*ones
        m[0] = 4 + R.lam
        Delta = _tridiag(-ones1, d, ones1, n) / (2*dx)
        M = _tridiag(ones1, m, ones1, n) / 6
        c = 1.0
    else:
        d = -2*ones
        d[0] = -2*(1 + R.delta_beta1)
        m = 10*ones
        m[0] = 10 - 2*R.delta_beta1
        Delta = _tridiag(ones1, d, ones1, n) / dx**2
        M = -_tridiag(ones1, m, ones1, n) / 6
        c = -2.0
    return Delta, M, c


def fedvr_derivative(R, order):
    """Assemble the element contributions of the Lagrange differentiation
    matrices; the second derivative is integrated by parts."""
    n = len(R)
    norm = 1 / np.sqrt(R.W)
    I, J, V = [], [], []
    for e in range(R.nel):
        x, w = R.element_nodes[e], R.element_weights[e]
        D = differentiation_matrix(x)
        if order == 1:
            E = w[:, None] * D
        else:
            E = -D.T @ (w[:, None] * D)
        idx = R.offsets[e] + np.arange(R.order[e])
        ii, jj = np.meshgrid(idx, idx, indexing='ij')
        I.append(ii.ravel())
        J.append(jj.ravel())
        V.append((norm[idx][:, None] * E * norm[idx][None, :]).ravel())
    I, J, V = (np.concatenate(v) for v in (I, J, V))
    return scipy.sparse.coo_matrix((V, (I, J)), shape=(n, n)).tocsr()


def derivative_matrix(A, B=None, order=1):
    """Compute the matrix elements `<A|d^o/dx^o|B>` for `order` 1 or 2.

    Args:
        A, B: compatible (possibly restricted) bases; `B` defaults to `A`
        order (int): order of the derivative

    Returns:
        a Scipy sparse matrix, or an :class:`.ImplicitDerivative` for
        :class:`.ImplicitFiniteDifferences`
    """
    if B is None:
        B = A
    if order not in (1, 2):
        raise ValueError('derivative order must be 1 or 2, got %s' % (order,))
    assert_compatible_bases(A, B)
    R = A.parent
    ia, ib = A.indices, B.indices

    if isinstance(R, ImplicitFiniteDifferences):
        Delta, M, c = implicit_stencils(R, order)
        return ImplicitDerivative(Delta[ia.start:ia.stop, ib.start:ib.stop],
                                  M[ia.start:ia.stop, ia.start:ia.stop], R.step * c)
    elif isinstance(R, StaggeredFiniteDifferences):
        D = staggered_derivative(R, order)
    elif isinstance(R, FiniteDifferences):
        D = fd_derivative(R, order)
    elif isinstance(R, BSpline):
        chi = R.B[:, ia.start:ia.stop]
        xi = basis_functions(R.t, R.x, order)[:, ib.start:ib.stop]
        return overlap_matrix(allocate_matrix(A, B), chi, xi, R.w)
    elif isinstance(R, FEDVR):
        D = fedvr_derivative(R, order)
    else:
        raise TypeError('no derivative available for %s' % (R,))
    return D[ia.start:ia.stop, :][:, ib.start:ib.stop]
