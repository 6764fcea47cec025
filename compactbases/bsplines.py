# -*- coding: utf-8 -*-
"""B-spline bases.

The B-splines of a :class:`.KnotSet` are resolved on a Gauss-Legendre
quadrature grid; all matrix elements are computed by quadrature on that grid,
which is exact for polynomial operators up to the order the grid was chosen
for (see :func:`.num_quadrature_points`).
"""
import numpy as np
import scipy.linalg
import scipy.sparse

from . import get_default_operator_order
from .basis import (Basis, IncompatibleBasesError, allocate_matrix,
        operator_matrix, mass_matrix, overlap_rule)
from .quadrature import lgwt, num_quadrature_points


def _deboor_interval(tc, cp, x, I, k, m):
    # tc: knots clamped to multiplicity k at both ends, cp: matching
    # coefficients, I: index of the non-empty interval of tc containing x
    p = k - 1
    dtype = np.result_type(cp.dtype, x.dtype, float)
    d = [np.full(x.shape, cp[j + I - p], dtype=dtype) for j in range(p + 1)]
    for r in range(1, p + 1):
        for j in range(p, r - 1, -1):
            left = tc[j + I - p]
            right = tc[j + 1 + I - r]
            if r <= m:
                d[j] = (k - r) * (d[j] - d[j-1]) / (right - left)
            else:
                alpha = (x - left) / (right - left)
                d[j] = (1 - alpha) * d[j-1] + alpha * d[j]
    return d[p]


def deboor(t, c, x, i=None, m=0):
    """Evaluate the spline with coefficients `c` over the knot set `t` at `x`
    using de Boor's algorithm.

    Args:
        t (:class:`.KnotSet`): the knot set
        c (ndarray): spline coefficients, one per B-spline of `t`
        x: point or array of points
        i (int): index of the knot interval which contains all of `x`; found
            by :meth:`.KnotSet.find_interval` if not given
        m (int): order of the derivative to evaluate

    Returns:
        the values of the spline (or its `m`-th derivative); zero outside the
        knot set
    """
    c = np.asarray(c)
    xa = np.asarray(x)
    scalar = (xa.ndim == 0)
    xa = np.atleast_1d(xa)
    k = t.order
    tc, off = t.clamped()
    cp = np.zeros(tc.size - k, dtype=c.dtype)
    cp[off:off + c.size] = c

    intervals = np.full(xa.shape, i) if i is not None else t.find_intervals(xa)
    y = np.zeros(xa.shape, dtype=np.result_type(c.dtype, xa.dtype, float))
    for ii in np.unique(intervals):
        if ii < 0:
            continue
        sel = (intervals == ii)
        I = ii + off
        if m >= k:
            continue
        if k == 1:
            y[sel] = cp[I]
        else:
            y[sel] = _deboor_interval(tc, cp, xa[sel], I, k, m)
    return y[0] if scalar else y


def basis_functions(t, x, m=0):
    """Evaluate all B-splines of the knot set `t` (or their `m`-th
    derivatives) at the points `x`.

    Returns:
        a Scipy CSR matrix with one row per point and one column per B-spline
    """
    x = np.atleast_1d(x)
    nf = t.numfunctions
    intervals = t.find_intervals(x)
    I = [np.empty(0, dtype=int)]
    J = [np.empty(0, dtype=int)]
    V = [np.empty(0)]
    for i in t.nonempty_intervals():
        sel = np.nonzero(intervals == i)[0]
        if not sel.size:
            continue
        # B-splines which are nonzero on the interval t[i]..t[i+1]
        for j in range(max(0, i - t.k + 1), min(i, nf - 1) + 1):
            e = np.zeros(nf)
            e[j] = 1.0
            I.append(sel)
            J.append(np.full(sel.size, j))
            V.append(deboor(t, e, x[sel], i, m))
    I, J, V = (np.concatenate(v) for v in (I, J, V))
    return scipy.sparse.coo_matrix((V, (I, J)), shape=(x.size, nf)).tocsr()


def overlap_matrix(S, chi, xi, w):
    """Fill the band of the DIA matrix `S` with the overlaps
    `chi[:,i]^T diag(w) xi[:,j]` and return it.

    The band of `S` must cover the nonzero overlaps.
    """
    P = (chi.T @ scipy.sparse.diags(w) @ xi).tocsr()
    for row, o in enumerate(S.offsets):
        d = P.diagonal(o)
        j0 = max(0, o)
        S.data[row, j0:j0 + d.size] = d
    return S


class BSpline(Basis):
    """The B-spline basis over the knot set `t`.

    Args:
        t (:class:`.KnotSet`): the knot set
        N (int): number of Gauss-Legendre points per knot interval
        quadrature: a pair `(x, w)` of quadrature nodes and weights to use
            instead of the Gauss-Legendre rule
        kprime (int): if `N` is not given, the highest polynomial order of
            operators which should be integrated exactly; defaults to
            :func:`get_default_operator_order`

    Attributes:
        t: the knot set
        x, w (ndarray): quadrature nodes and weights
        B: CSR matrix of the B-splines on the quadrature nodes
        S: the banded overlap matrix, as a DIA matrix
    """
    family = 'bspline'
    orthogonal = False

    def __init__(self, t, N=None, quadrature=None, kprime=None):
        if quadrature is not None:
            x, w = quadrature
        else:
            if N is None:
                if kprime is None:
                    kprime = get_default_operator_order()
                N = num_quadrature_points(t.order, kprime)
            x, w = lgwt(t, N)
        self.t = t
        self.x = np.asarray(x)
        self.w = np.asarray(w)
        self.B = basis_functions(t, self.x)
        self.dtype = self.B.dtype
        self.S = overlap_matrix(allocate_matrix(self), self.B, self.B, self.w)

    def __len__(self):
        return self.t.numfunctions

    @property
    def order(self):
        return self.t.order

    @property
    def bandwidth(self):
        return self.t.order - 1

    @property
    def distribution(self):
        return self.t.distribution

    def _domain(self):
        return self.t.support()

    def _locs(self, indices):
        return self.x

    def _weights(self, indices):
        return self.w

    def _inverse_weights(self, indices):
        return 1 / self.w

    def _evaluate(self, x, indices):
        return basis_functions(self.t, x)[:, indices.start:indices.stop]

    def _interpolate(self, f, indices):
        V = self.B[:, indices.start:indices.stop].toarray()
        return scipy.linalg.lstsq(V, f(self.x))[0]

    def _assert_compatible(self, other):
        if not (self.t == other.t and np.array_equal(self.x, other.x)
                and np.array_equal(self.w, other.w)):
            raise IncompatibleBasesError('Can only multiply B-spline bases with identical knot sets, '
                                         'resolved on the same quadrature points')

    def __eq__(self, other):
        if not isinstance(other, BSpline):
            return NotImplemented
        return (self.t == other.t and np.array_equal(self.x, other.x)
                and np.array_equal(self.w, other.w))

    def __str__(self):
        return 'BSpline{%s} basis with %s' % (self.dtype, self.t)

    __repr__ = __str__

    def centers(self):
        """Centers of mass `<B_i|x|B_i> / <B_i|B_i>` of the B-splines."""
        return centers(self)


def centers(B):
    """Centers of mass of the (possibly restricted) B-spline basis `B`."""
    x = operator_matrix(B, B, lambda x: x).diagonal()
    S = mass_matrix(B).diagonal()
    return x / S


@overlap_rule('bspline', 'bspline')
def _bspline_overlap(A, B, op, dtype):
    P = B.parent
    if op is None and A.parent is P and A.indices == B.indices == P.indices and dtype is None:
        return P.S.copy()
    chi = A.parent.B[:, A.indices.start:A.indices.stop]
    xi = P.B[:, B.indices.start:B.indices.stop]
    w = P.w if op is None else P.w * op(P.x)
    if dtype is None:
        dtype = np.result_type(A.dtype, B.dtype, w.dtype)
    return overlap_matrix(allocate_matrix(A, B, dtype), chi, xi, w)
