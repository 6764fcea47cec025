# -*- coding: utf-8 -*-
"""Finite-difference bases.

Each grid point `r_i` carries a piecewise linear tent function which is one at
`r_i` and vanishes at the neighbouring points. Derivatives are not computed
from the tents but from the stencils of the respective scheme, see
:mod:`.derivatives`.

Three variants are provided:

- :class:`FiniteDifferences`: the uniform grid `j*dx` with the usual
  three-point stencils
- :class:`StaggeredFiniteDifferences`: the grid is staggered around the
  origin, `r_0 = rho/2`, and may be non-uniform; the stencils are modified
  such that the radial Laplacian stays symmetric
- :class:`ImplicitFiniteDifferences`: uniform grid with fourth-order compact
  (Numerov-type) stencils of the form `M^{-1} Delta`

The latter two optionally correct the leading error of the Laplacian at the
origin for Coulomb potentials of charge `Z`.
"""
import numbers

import numpy as np
import scipy.sparse
import scipy.sparse.linalg

from .basis import Basis, IncompatibleBasesError, combined_restriction, overlap_rule
from .operators import CachedSolver


def tent(x, a, b, c):
    """Piecewise linear function which is one at `b` and zero outside `(a,c)`."""
    return 1 - np.clip((b - x)/(b - a), 0, 1) - np.clip((b - x)/(b - c), 0, 1)


class AbstractFiniteDifferences(Basis):
    """Base class of the finite-difference bases.

    Subclasses set the array `nodes` of grid points and define `step`.
    """
    family = 'finite-differences'
    bandwidth = 0

    def __len__(self):
        return self.nodes.size

    def local_step(self, i):
        return self.step

    def weight(self, i):
        return 1.0

    def loc(self, i):
        """Location of the `i`-th grid point, extrapolated by one step beyond
        the first and the last point."""
        n = len(self)
        if i < 0:
            return self.nodes[0] - self.local_step(0)
        if i >= n:
            return self.nodes[-1] + self.local_step(n - 1)
        return self.nodes[i]

    def _locs(self, indices):
        return self.nodes[indices.start:indices.stop]

    def _weights(self, indices):
        return np.ones(len(indices))

    def _inverse_weights(self, indices):
        return np.ones(len(indices))

    def _evaluate(self, x, indices):
        I = [np.empty(0, dtype=int)]
        J = [np.empty(0, dtype=int)]
        V = [np.empty(0)]
        for col, i in enumerate(indices):
            a, b, c = self.loc(i - 1), self.loc(i), self.loc(i + 1)
            sel = np.nonzero((x >= a) & (x <= c))[0]
            I.append(sel)
            J.append(np.full(sel.size, col))
            V.append(self.weight(i) * tent(x[sel], a, b, c))
        I, J, V = (np.concatenate(v) for v in (I, J, V))
        return scipy.sparse.coo_matrix((V, (I, J)), shape=(x.size, len(indices))).tocsr()

    def _interpolate(self, f, indices):
        return f(self._locs(indices)) / self._weights(indices)

    def _assert_compatible(self, other):
        if not np.array_equal(self.nodes, other.nodes):
            raise IncompatibleBasesError('Can only multiply finite-differences sharing the same nodes')

    def __eq__(self, other):
        if not isinstance(other, AbstractFiniteDifferences):
            return NotImplemented
        return np.array_equal(self.nodes, other.nodes)


@overlap_rule('finite-differences', 'finite-differences')
def _fd_overlap(A, B, op, dtype):
    values = None if op is None else op(A.parent.nodes)
    S = B.parent.step * combined_restriction(A, B, values)
    return S if dtype is None else S.astype(dtype)


################################################################################
# Uniform grid
################################################################################

class FiniteDifferences(AbstractFiniteDifferences):
    """Uniform finite differences on the grid points `j*dx`.

    Args:
        j: either a range of grid indices or the number `n` of grid points,
            meaning `range(1, n+1)`
        dx (float): grid spacing
    """
    def __init__(self, j, dx):
        if isinstance(j, numbers.Integral):
            j = range(1, j + 1)
        if not isinstance(j, range) or j.step != 1 or len(j) < 1:
            raise ValueError('grid indices must be a non-empty contiguous range')
        self.j = j
        self.dx = float(dx)
        self.nodes = self.dx * np.arange(j.start, j.stop)

    @property
    def step(self):
        return self.dx

    def _domain(self):
        return ((self.j.start - 1)*self.dx, self.j.stop*self.dx)

    def __str__(self):
        a, b = self._domain()
        return ('%s basis {%s} on [%g,%g] with %d points spaced by dx = %g'
                % (type(self).__name__, self.dtype, a, b, len(self), self.dx))

    __repr__ = __str__


class ImplicitFiniteDifferences(FiniteDifferences):
    """Uniform finite differences with fourth-order compact derivatives.

    If `singular_origin` is set, the grid has to start at `dx`; the stencils
    are then corrected at the origin for a Coulomb singularity of charge `Z`.
    """
    def __init__(self, j, dx, singular_origin=False, Z=0.0):
        super().__init__(j, dx)
        if singular_origin:
            if self.j.start != 1:
                raise ValueError('Singular origin correction only valid when grid starts at dx (i.e. j[0] == 1)')
            self.lam = np.sqrt(3) - 2
            self.delta_beta1 = -Z*self.dx/(12 - 10*Z*self.dx)
        else:
            self.lam = 0.0
            self.delta_beta1 = 0.0
        self.singular_origin = singular_origin
        self.Z = Z


################################################################################
# Staggered grid
################################################################################

def local_step(r, j):
    """Step size around the node `r[j]`; one-sided at the end points."""
    n = len(r)
    if j == 0:
        return r[1] - r[0]
    if j == n - 1:
        return r[-1] - r[-2]
    return (r[j + 1] - r[j - 1])/2


def schafer_corner_fix(rho, Z):
    """Correction of the Laplacian at the first grid point for a Coulomb
    potential of charge `Z` on a staggered grid with spacing `rho`."""
    return 1/rho**2 * Z*rho/8 * (1 + Z*rho)


def _log_lin_fill(r, rho_min, rho_max, alpha, js):
    drho = rho_max - rho_min
    for j in js:
        r[j] = r[j - 1] + rho_min + (1 - np.exp(-alpha*r[j - 1]))*drho


def log_lin_grid(rho_min, rho_max, alpha, n_or_rmax):
    """Grid which is logarithmic near the origin and linear far from it.

    The step grows from `rho_min` towards `rho_max` as
    `rho_min + (1 - exp(-alpha*r))*(rho_max - rho_min)`; the first node is
    `rho_min/2`.

    If `n_or_rmax` is an integer, exactly that many nodes are returned;
    otherwise it is the extent of the grid, and the nodes up to and including
    the first one at or beyond it are returned.
    """
    if not (0 < rho_min < np.inf and 0 < rho_max < np.inf):
        raise ValueError('Invalid step sizes rho_min = %s, rho_max = %s' % (rho_min, rho_max))
    if isinstance(n_or_rmax, numbers.Integral):
        n = int(n_or_rmax)
        r = np.zeros(n)
        r[0] = rho_min/2
        _log_lin_fill(r, rho_min, rho_max, alpha, range(1, n))
        return r

    rmax = float(n_or_rmax)
    n = max(int(np.ceil(rmax/rho_max)), 1)
    r = np.zeros(n)
    r[0] = rho_min/2
    _log_lin_fill(r, rho_min, rho_max, alpha, range(1, n))
    while r[-1] < rmax:
        nprev, n = n, 2*n
        r = np.concatenate((r, np.zeros(n - nprev)))
        _log_lin_fill(r, rho_min, rho_max, alpha, range(nprev, n))
    below = np.nonzero(r < rmax)[0]
    jlast = below[-1] if below.size else -1
    return r[:jlast + 2]


def _uniform_stencils(n, rho, delta_beta1):
    j = np.arange(1, n + 1, dtype=float)
    j2 = j**2
    alpha = (j2/(j2 - 0.25))[:n - 1]
    beta = (j2 - j + 0.5)/(j2 - j + 0.25)
    beta[0] += delta_beta1*rho**2
    return alpha, beta, alpha.copy()


def _nonuniform_stencils(r, delta_beta1):
    n = len(r)
    rt = np.append(r, 2*r[-1] - r[-2])
    alpha = np.zeros(n - 1)
    beta = np.zeros(n)
    delta = np.zeros(n - 1)
    a, b, c = 2*r[0] - r[1], r[0], r[1]
    for j in range(n):
        if j < n - 1:
            d = rt[j + 2]
            delta[j] = 2/np.sqrt((d - b)*(c - a)) * ((b + c)/2)**2/(b*c)
            alpha[j] = delta[j]/(c - b)
        fp = ((c + b)/(2*b))**2
        fm = ((b + a)/(2*b))**2
        beta[j] = 1/(c - a) * (fp/(c - b) + fm/(b - a))
        if j < n - 1:
            a, b, c = b, c, d
    beta[0] += delta_beta1
    return alpha, beta, delta


class StaggeredFiniteDifferences(AbstractFiniteDifferences):
    """Finite differences on a grid staggered around the origin.

    Args:
        r (ndarray): strictly increasing grid points
        Z (float): nuclear charge used for the default corner fix
        delta_beta1 (float): correction of the Laplacian at the first point;
            defaults to :func:`schafer_corner_fix`
        uniform (bool): whether `r` is uniformly spaced, in which case the
            closed-form stencils are used

    On a uniform grid the stencils are given in units of the step `rho`; on a
    non-uniform grid they already include the local step sizes and the basis
    functions are normalized by :meth:`weight`.
    """
    def __init__(self, r, Z=1.0, delta_beta1=None, uniform=False):
        r = np.asarray(r, dtype=float)
        if r.size < 2:
            raise ValueError('staggered grid needs at least two points')
        if np.any(np.diff(r) <= 0):
            raise ValueError('Node locations must be strictly increasing')
        rho = r[1] - r[0]
        if uniform and not np.allclose(np.diff(r), rho):
            raise ValueError('grid marked as uniform is not uniformly spaced')
        if delta_beta1 is None:
            delta_beta1 = schafer_corner_fix(local_step(r, 0), Z)
        self.r = self.nodes = r
        self.Z = Z
        self.delta_beta1 = delta_beta1
        self._uniform = uniform
        if uniform:
            self.rho = rho
            self.alpha, self.beta, self.delta = _uniform_stencils(r.size, rho, delta_beta1)
        else:
            self.alpha, self.beta, self.delta = _nonuniform_stencils(r, delta_beta1)

    @classmethod
    def uniform(cls, n, rho, Z=1.0, delta_beta1=None):
        """`n` points with spacing `rho`, the first one at `rho/2`."""
        return cls(rho*np.arange(1, n + 1) - rho/2, Z=Z, delta_beta1=delta_beta1, uniform=True)

    @classmethod
    def from_rmax(cls, rmax, n, Z=1.0, delta_beta1=None):
        """`n` uniformly spaced points, the last one at `rmax`."""
        return cls.uniform(n, rmax/(n - 0.5), Z=Z, delta_beta1=delta_beta1)

    @classmethod
    def log_linear(cls, rho_min, rho_max, alpha, n_or_rmax, Z=1.0, delta_beta1=None):
        """Points generated by :func:`log_lin_grid`."""
        return cls(log_lin_grid(rho_min, rho_max, alpha, n_or_rmax), Z=Z, delta_beta1=delta_beta1)

    @property
    def distribution(self):
        return 'uniform' if self._uniform else 'non-uniform'

    @property
    def step(self):
        return self.rho if self._uniform else 1.0

    def local_step(self, j):
        return local_step(self.r, j)

    def local_steps(self):
        """Array of :meth:`local_step` for all points."""
        r = self.r
        h = np.empty_like(r)
        h[0] = r[1] - r[0]
        h[-1] = r[-1] - r[-2]
        h[1:-1] = (r[2:] - r[:-2])/2
        return h

    def weight(self, j):
        return 1.0 if self._uniform else 1/np.sqrt(self.local_step(j))

    def _weights(self, indices):
        if self._uniform:
            return np.ones(len(indices))
        return 1/np.sqrt(self.local_steps()[indices.start:indices.stop])

    def _inverse_weights(self, indices):
        if self._uniform:
            return np.ones(len(indices))
        return np.sqrt(self.local_steps()[indices.start:indices.stop])

    def _domain(self):
        return (0.0, 2*self.r[-1] - self.r[-2])

    def __eq__(self, other):
        if not isinstance(other, StaggeredFiniteDifferences):
            return NotImplemented
        return (np.array_equal(self.r, other.r) and self.Z == other.Z
                and self.delta_beta1 == other.delta_beta1)

    def __str__(self):
        a, b = self._domain()
        if self._uniform:
            spacing = 'spaced by rho = %g' % self.rho
        else:
            spacing = 'with steps in [%g,%g]' % (np.min(np.diff(self.r)), np.max(np.diff(self.r)))
        return ('Staggered finite differences basis {%s} on [%g,%g] with %d points %s'
                % (self.dtype, a, b, len(self), spacing))

    __repr__ = __str__


################################################################################
# Compact derivatives
################################################################################

def _is_tridiagonal(A):
    A = A.tocoo()
    return not np.any(np.abs(A.row - A.col) > 1)


class ImplicitDerivative(scipy.sparse.linalg.LinearOperator):
    """The compact finite-difference derivative `c * M^{-1} Delta`.

    Args:
        Delta: sparse tridiagonal difference matrix
        M: sparse tridiagonal matrix applied implicitly
        c: scalar prefactor
        Minv (:class:`.CachedSolver`): solver for `M`; by default a new one

    Scaling by a scalar or shifting by a scalar or a (tri)diagonal sparse
    matrix `B` yields a new :class:`ImplicitDerivative` which shares the
    solver for `M`; a shift is absorbed into `Delta` as `Delta + M B / c`.
    """
    def __init__(self, Delta, M, c=1.0, Minv=None):
        self.Delta = scipy.sparse.csr_matrix(Delta)
        self.M = scipy.sparse.csr_matrix(M)
        if self.M.shape != (self.Delta.shape[0],)*2:
            raise ValueError('M must be square with as many rows as Delta')
        self.Minv = Minv if Minv is not None else CachedSolver(self.M)
        self.c = c
        dtype = np.result_type(self.Delta.dtype, self.M.dtype, np.asarray(c).dtype)
        super().__init__(dtype=dtype, shape=self.Delta.shape)

    def _matvec(self, x):
        return self.c * self.Minv.solve(self.Delta @ x)

    def _matmat(self, X):
        return self.c * self.Minv.solve(self.Delta @ X)

    def _scaled(self, a):
        return ImplicitDerivative(self.Delta, self.M, self.c*a, self.Minv)

    def __mul__(self, x):
        if np.isscalar(x):
            return self._scaled(x)
        return super().__mul__(x)

    def __rmul__(self, x):
        if np.isscalar(x):
            return self._scaled(x)
        return super().__rmul__(x)

    def __truediv__(self, x):
        if not np.isscalar(x):
            raise ValueError('Can only divide by scalars')
        return self._scaled(1/x)

    def __neg__(self):
        return self._scaled(-1)

    def _as_shift(self, B):
        if np.isscalar(B):
            return B * scipy.sparse.eye(*self.shape, format='csr')
        if scipy.sparse.issparse(B):
            if B.shape != self.shape:
                raise ValueError('shape mismatch: %s vs. %s' % (B.shape, self.shape))
            if not _is_tridiagonal(B):
                raise ValueError('Can only add diagonal or tridiagonal matrices to implicit derivatives')
            return scipy.sparse.csr_matrix(B)
        raise TypeError('Cannot add %s to implicit derivative' % type(B).__name__)

    def __add__(self, B):
        if isinstance(B, scipy.sparse.linalg.LinearOperator):
            return super().__add__(B)
        Bt = (self.M @ self._as_shift(B)) / self.c
        return ImplicitDerivative(self.Delta + Bt, self.M, self.c, self.Minv)

    __radd__ = __add__

    def __sub__(self, B):
        if isinstance(B, scipy.sparse.linalg.LinearOperator):
            return super().__sub__(B)
        return self + (-B)

    def __rsub__(self, B):
        return (-self) + B

    def factorize(self):
        """Return an :class:`ImplicitFactorization` which applies the inverse
        `(c Delta)^{-1} M` of this operator."""
        return ImplicitFactorization(CachedSolver(self.c*self.Delta), self.M)


class ImplicitFactorization(scipy.sparse.linalg.LinearOperator):
    """The inverse `Delta^{-1} M` of a compact derivative, given a solver for
    `Delta`; apply it with ``F @ b`` or ``F.dot(b)``."""
    def __init__(self, Delta_inv, M):
        self.Delta_inv = Delta_inv
        self.M = M
        dtype = np.result_type(Delta_inv.A.dtype, M.dtype)
        super().__init__(dtype=dtype, shape=M.shape)

    def _matvec(self, x):
        return self.Delta_inv.solve(self.M @ x)

    def _matmat(self, X):
        return self.Delta_inv.solve(self.M @ X)
