# -*- coding: utf-8 -*-
"""Finite-element discrete-variable representation (FE-DVR).

The interval is split into finite elements, each carrying a Gauss-Lobatto
quadrature rule. The basis functions are the Lagrange polynomials over the
nodes of one element, normalized by the square root of the quadrature weight;
the polynomials belonging to a node shared by two elements are joined into a
single "bridge" function. Under the Gauss-Lobatto rule the basis is
orthonormal and all multiplicative operators are diagonal.

Exterior complex scaling is supported: all elements beyond the point `t0`
are rotated into the complex plane by the factor `eiphi`.
"""
import numpy as np
import scipy.sparse

from .basis import Basis, IncompatibleBasesError, combined_restriction, overlap_rule
from .quadrature import element_grid


def lagrange_weights(x):
    """Barycentric weights `1/prod_{p!=q}(x_q - x_p)` of the nodes `x`."""
    dx = x[:, None] - x[None, :]
    np.fill_diagonal(dx, 1)
    return 1 / np.prod(dx, axis=1)


def lagrange_polynomials(x, z):
    """Values of the Lagrange polynomials over the nodes `x` at the points
    `z`, as an array of shape `(len(z), len(x))`."""
    L = np.ones((z.size, x.size), dtype=np.result_type(x, z))
    for q in range(x.size):
        for p in range(x.size):
            if p != q:
                L[:, q] *= (z - x[p]) / (x[q] - x[p])
    return L


def differentiation_matrix(x):
    """The matrix `D[m,q]` of the derivatives of the Lagrange polynomial `q`
    over the nodes `x` at the node `m`."""
    lam = lagrange_weights(x)
    dx = x[:, None] - x[None, :]
    np.fill_diagonal(dx, 1)
    D = (lam[None, :] / lam[:, None]) / dx
    np.fill_diagonal(D, 0)
    np.fill_diagonal(D, -D.sum(axis=1))
    return D


class FEDVR(Basis):
    """FE-DVR basis on the elements bounded by the points `t`.

    Args:
        t (ndarray): increasing element boundaries
        order: number of Gauss-Lobatto points per element, either one for
            all elements or one per element
        t0 (float): point beyond which the elements are complex-rotated;
            must be one of the element boundaries
        eiphi: complex rotation factor

    Attributes:
        x (ndarray): the (rotated) nodes, bridge nodes counted once
        W (ndarray): the quadrature weights, summed over the elements at
            bridge nodes
    """
    family = 'fedvr'
    bandwidth = 0

    def __init__(self, t, order, t0=None, eiphi=1.0):
        t = np.asarray(t, dtype=float)
        if t.ndim != 1 or t.size < 2:
            raise ValueError('need at least one element')
        if np.any(np.diff(t) <= 0):
            raise ValueError('element boundaries must be strictly increasing')
        nel = t.size - 1
        order = np.array(np.broadcast_to(order, (nel,)), dtype=int)
        if np.any(order < 2):
            raise ValueError('each element needs at least 2 Gauss-Lobatto points')
        if t0 is None:
            t0 = t[-1]
        elif t0 not in t:
            raise ValueError('complex scaling must start at an element boundary, got t0 = %g' % t0)
        self.t = t
        self.order = order
        self.t0 = float(t0)
        self.eiphi = eiphi

        self.element_nodes = []
        self.element_weights = []
        self.real_element_nodes = []
        for e in range(nel):
            xr, wr = element_grid(order[e], t[e], t[e+1])
            if t[e] >= self.t0 and eiphi != 1:
                x, w = element_grid(order[e], t[e], t[e+1], self.t0, eiphi)
                w = eiphi * w
            else:
                x, w = xr, wr
            self.real_element_nodes.append(xr)
            self.element_nodes.append(x)
            self.element_weights.append(w)
        self.dtype = np.result_type(float, np.asarray(eiphi).dtype)

        # global index of the first node of each element
        self.offsets = np.concatenate(([0], np.cumsum(order[:-1] - 1)))
        n = self.offsets[-1] + order[-1]
        self.x = np.zeros(n, dtype=self.dtype)
        self.real_locs = np.zeros(n)
        self.W = np.zeros(n, dtype=self.dtype)
        for e in range(nel):
            sl = slice(self.offsets[e], self.offsets[e] + order[e])
            self.x[sl] = self.element_nodes[e]
            self.real_locs[sl] = self.real_element_nodes[e]
            self.W[sl] += self.element_weights[e]

    @property
    def nel(self):
        """Number of finite elements."""
        return self.t.size - 1

    @property
    def quadrature_weights(self):
        return self.W

    @property
    def distribution(self):
        return 'non-uniform'

    def __len__(self):
        return self.x.size

    def complex_rotate(self, x):
        """Map real points onto the complex contour of the basis."""
        x = np.asarray(x)
        if self.eiphi == 1:
            return x
        return np.where(x < self.t0, x, self.t0 + self.eiphi*(x - self.t0))

    def complex_unrotate(self, z):
        """Map points on the complex contour back to real coordinates.

        Inverse of :meth:`complex_rotate`. Real input is taken to be given in
        real coordinates already and is returned unchanged.
        """
        z = np.asarray(z)
        if self.eiphi == 1 or not np.iscomplexobj(z):
            return np.real(z)
        return np.real(np.where(np.real(z) < self.t0, z, self.t0 + (z - self.t0)/self.eiphi))

    def _domain(self):
        return (self.t[0], self.t[-1])

    def _locs(self, indices):
        return self.x[indices.start:indices.stop]

    def _weights(self, indices):
        return 1 / np.sqrt(self.W[indices.start:indices.stop])

    def _inverse_weights(self, indices):
        return np.sqrt(self.W[indices.start:indices.stop])

    def _evaluate(self, x, indices):
        x = self.complex_unrotate(x)
        els = np.searchsorted(self.t, x, side='right') - 1
        els[(x < self.t[0]) | (x > self.t[-1])] = -1
        # end points mapped back from the contour may be off by rounding
        els[np.isclose(x, self.t[0])] = 0
        els[np.isclose(x, self.t[-1])] = self.nel - 1
        norm = 1 / np.sqrt(self.W)
        I = [np.empty(0, dtype=int)]
        J = [np.empty(0, dtype=int)]
        V = [np.empty(0, dtype=self.dtype)]
        for e in range(self.nel):
            sel = np.nonzero(els == e)[0]
            if not sel.size:
                continue
            # Lagrange polynomials are invariant under the affine rotation,
            # so they can be evaluated on the real nodes
            L = lagrange_polynomials(self.real_element_nodes[e], x[sel])
            for q in range(self.order[e]):
                i = self.offsets[e] + q
                if i not in indices:
                    continue
                I.append(sel)
                J.append(np.full(sel.size, i - indices.start))
                V.append(L[:, q] * norm[i])
        I, J, V = (np.concatenate(v) for v in (I, J, V))
        return scipy.sparse.coo_matrix((V, (I, J)), shape=(x.size, len(indices)),
                                       dtype=self.dtype).tocsr()

    def _interpolate(self, f, indices):
        sl = slice(indices.start, indices.stop)
        return f(self.x[sl]) * np.sqrt(self.W[sl])

    def _assert_compatible(self, other):
        if not self == other:
            raise IncompatibleBasesError('Can only multiply FE-DVR bases on the same elements '
                                         'with the same orders and complex scaling')

    def __eq__(self, other):
        if not isinstance(other, FEDVR):
            return NotImplemented
        return (np.array_equal(self.t, other.t) and np.array_equal(self.order, other.order)
                and self.t0 == other.t0 and self.eiphi == other.eiphi)

    def __str__(self):
        s = ('FEDVR{%s} basis with %d elements on [%g,%g]'
             % (self.dtype, self.nel, self.t[0], self.t[-1]))
        if self.eiphi != 1:
            s += ' with complex scaling at %g by %s' % (self.t0, self.eiphi)
        return s

    __repr__ = __str__


@overlap_rule('fedvr', 'fedvr')
def _fedvr_overlap(A, B, op, dtype):
    values = None if op is None else op(A.parent.x)
    S = combined_restriction(A, B, values)
    return S if dtype is None else S.astype(dtype)
