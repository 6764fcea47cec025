# -*- coding: utf-8 -*-
"""Common interface of the discretization bases.

A basis is a finite set of functions :math:`\\varphi_i` on an interval,
together with the grid or quadrature data needed to represent functions
:math:`f \\approx \\sum_i c_i \\varphi_i` by their coefficients.

Every concrete basis provides the following queries, each of which receives
the (contiguous) range of selected basis functions:

- ``_locs(indices)``: grid points or quadrature nodes
- ``_weights(indices)``, ``_inverse_weights(indices)``
- ``_evaluate(x, indices)``: sparse matrix of basis function values
- ``_interpolate(f, indices)``: expansion coefficients of the callable `f`
- ``_assert_compatible(other)``

The public methods of :class:`Basis` forward to these with the indices of
the basis, which allows a :class:`RestrictedBasis` to share all data with
its parent.

Matrix elements of quasi-diagonal operators between two bases are computed
by :func:`operator_matrix`, which dispatches on the pair of basis families
via the rules registered with :func:`overlap_rule`.
"""
import functools
import operator

import numpy as np
import scipy.sparse


class IncompatibleBasesError(ValueError):
    """Two bases do not share nodes, knot sets or quadrature."""


def _select(indices, sel):
    """Sub-select the range `indices` by an int, slice or range `sel`."""
    if sel is None:
        return indices
    if isinstance(sel, range):
        sel = slice(sel.start, sel.stop, sel.step)
    r = indices[sel]
    if isinstance(r, range):
        if r.step != 1:
            raise ValueError('only contiguous selections of basis functions are supported')
        return r
    return range(r, r + 1)


class Basis:
    """Abstract base class of all bases.

    Attributes:
        family (str): tag of the basis family; bases of different families
            cannot be multiplied
        orthogonal (bool): whether the basis functions are orthogonal under
            the discrete inner product of the basis
        dtype: element type of the basis data
    """
    family = None
    orthogonal = True
    dtype = np.dtype(float)

    @property
    def parent(self):
        """The unrestricted basis."""
        return self

    @property
    def indices(self):
        """The range of basis functions of the parent which this basis selects."""
        return range(len(self))

    @property
    def distribution(self):
        """Either ``'uniform'`` or ``'non-uniform'``."""
        return 'uniform'

    @property
    def domain(self):
        """The pair `(a,b)` of end points of the interval."""
        return self.parent._domain()

    @property
    def axes(self):
        return (self.domain, self.indices)

    @property
    def locs(self):
        return self.parent._locs(self.indices)

    def weights(self):
        return self.parent._weights(self.indices)

    def inverse_weights(self):
        return self.parent._inverse_weights(self.indices)

    def evaluate(self, x, indices=None):
        """Evaluate the basis functions at the points `x`.

        Args:
            x: array of evaluation points
            indices: optional int, slice or range selecting basis functions

        Returns:
            A Scipy CSR matrix with one row per point and one column per
            selected basis function.
        """
        x = np.atleast_1d(np.asarray(x))
        return self.parent._evaluate(x, _select(self.indices, indices))

    def interpolate(self, f, domain=None):
        """Compute the expansion coefficients of the vectorized callable `f`.

        If `domain` is given, it must coincide with the domain of the basis.
        """
        if domain is not None and tuple(domain) != tuple(self.domain):
            raise ValueError('Function on %s cannot be interpolated over basis on %s'
                             % (tuple(domain), tuple(self.domain)))
        return self.parent._interpolate(f, self.indices)

    def restrict(self, start, stop):
        """Return a view on the basis functions `start:stop` of this basis."""
        return RestrictedBasis(self.parent, _select(self.indices, slice(start, stop)))

    def expand(self, coeffs):
        return Expansion(self, coeffs)

    def __getitem__(self, key):
        x, j = key
        if isinstance(x, slice):
            if x != slice(None):
                raise IndexError('points have to be given explicitly, or as ":" to restrict')
            return RestrictedBasis(self.parent, _select(self.indices, j))
        if isinstance(j, (slice, range)):
            return self.evaluate(x, j)
        chi = self.evaluate(x, j)
        if np.isscalar(x):
            return chi[0, 0]
        return chi.toarray()[:, 0]


class RestrictedBasis(Basis):
    """A view on the contiguous range `indices` of the functions of `parent`.

    The parent is borrowed, not copied; all queries are forwarded to it.
    """
    def __init__(self, parent, indices):
        if not isinstance(indices, range) or indices.step != 1:
            raise ValueError('restriction must be a contiguous range')
        if len(indices) and (indices.start < 0 or indices.stop > len(parent)):
            raise ValueError('restriction %s out of bounds for basis with %d functions'
                             % (indices, len(parent)))
        self._parent = parent
        self._indices = indices

    @property
    def parent(self):
        return self._parent

    @property
    def indices(self):
        return self._indices

    def __len__(self):
        return len(self._indices)

    @property
    def family(self):
        return self._parent.family

    @property
    def orthogonal(self):
        return self._parent.orthogonal

    @property
    def dtype(self):
        return self._parent.dtype

    @property
    def distribution(self):
        return self._parent.distribution

    def __eq__(self, other):
        if not isinstance(other, RestrictedBasis):
            return NotImplemented
        return self._parent == other._parent and self._indices == other._indices

    def __str__(self):
        return '%s restricted to %d:%d' % (self._parent, self._indices.start, self._indices.stop)

    __repr__ = __str__


class Expansion:
    """A function given by its coefficients `coeffs` with respect to `basis`."""
    def __init__(self, basis, coeffs):
        coeffs = np.asanyarray(coeffs)
        if coeffs.shape[0] != len(basis):
            raise ValueError('Wrong length of coefficient vector: %d, expected %d'
                             % (coeffs.shape[0], len(basis)))
        self.basis = basis
        self.coeffs = coeffs

    def __call__(self, x):
        y = self.basis.evaluate(x) @ self.coeffs
        if np.isscalar(x):
            return y[0]
        return y

    def __mul__(self, other):
        if isinstance(other, Expansion):
            from .densities import Density
            return Density(self, other).expansion()
        if np.isscalar(other):
            return Expansion(self.basis, other * self.coeffs)
        return NotImplemented

    def __rmul__(self, other):
        if np.isscalar(other):
            return Expansion(self.basis, other * self.coeffs)
        return NotImplemented

    def __str__(self):
        return 'Expansion on %s' % (self.basis,)


################################################################################
# Matrix construction
################################################################################

def combined_restriction(A, B, values=None):
    """Return the `len(A) x len(B)` matrix which has `values[i]` (default 1)
    wherever the `i`-th function of the common parent basis is selected by
    both `A` and `B`.
    """
    ia, ib = A.indices, B.indices
    n = len(A.parent)
    if values is None:
        values = np.ones(n)
    D = scipy.sparse.diags(values, 0, shape=(n, n), format='csr')
    return D[ia.start:ia.stop, :][:, ib.start:ib.stop]


def allocate_matrix(A, B=None, dtype=None):
    """Allocate a zero banded matrix for the matrix elements between `A` and
    `B` (default: `A`).

    The bandwidth is taken from the parent bases; restrictions shift the
    band according to the offset between the selected index ranges.

    Returns:
        a Scipy DIA matrix of shape `len(A) x len(B)` whose band can be filled
        in place
    """
    if B is None:
        B = A
    if dtype is None:
        dtype = np.result_type(A.dtype, B.dtype)
    bw = max(A.parent.bandwidth, B.parent.bandwidth)
    m, n = len(A), len(B)
    ij = B.indices.start - A.indices.start
    offsets = np.arange(-bw - ij, bw - ij + 1)
    offsets = offsets[(offsets > -m) & (offsets < n)]
    data = np.zeros((len(offsets), n), dtype=dtype)
    return scipy.sparse.dia_matrix((data, offsets), shape=(m, n))


def assert_compatible_bases(A, B):
    """Raise :class:`IncompatibleBasesError` unless `A` and `B` (or their
    parents) are built on the same discretization."""
    if A.family != B.family:
        raise IncompatibleBasesError('Cannot combine %s basis with %s basis' % (A.family, B.family))
    A.parent._assert_compatible(B.parent)


_overlap_rules = {}

def overlap_rule(family_a, family_b):
    """Decorator registering the function which computes the matrix elements
    `<A|D|B>` for bases of the families `family_a` and `family_b`.

    The registered function is called as ``rule(A, B, op, dtype)``, where
    `op` is either `None` (mass matrix) or a vectorized callable evaluating
    the quasi-diagonal operator.
    """
    def register(func):
        _overlap_rules[(family_a, family_b)] = func
        return func
    return register


def _pointwise_product(operators):
    if not operators:
        return None
    def op(x):
        vals = functools.reduce(operator.mul, (f(x) for f in operators))
        return np.broadcast_to(vals, np.shape(x))
    return op


def operator_matrix(A, B, *operators, dtype=None):
    """Compute the matrix elements `<A|D E ...|B>` of the quasi-diagonal
    operators given as vectorized callables. If `B` is `None`, use `A`.
    Without operators, this is the mass matrix.
    """
    if B is None:
        B = A
    rule = _overlap_rules.get((A.family, B.family))
    if rule is None:
        raise IncompatibleBasesError('Cannot multiply %s basis with %s basis' % (A.family, B.family))
    assert_compatible_bases(A, B)
    return rule(A, B, _pointwise_product(operators), dtype)


def mass_matrix(A, B=None, dtype=None):
    """Compute the mass (overlap) matrix `<A|B>`."""
    return operator_matrix(A, B, dtype=dtype)
