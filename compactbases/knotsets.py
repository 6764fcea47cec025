# -*- coding: utf-8 -*-
"""Knot sets for B-spline bases.

A knot set is described by its breakpoints, the polynomial order `k` of the
splines (degree `k-1`) and the multiplicities `ml`, `mr` of the first and last
breakpoint. Interior breakpoints are simple knots.
"""

import numpy as np


class KnotSet:
    """Represents a set of knots together with a spline order.

    Args:
        breakpoints (ndarray): the non-decreasing breakpoints
        k (int): the order of the B-splines (degree plus one)
        ml (int): multiplicity of the first breakpoint (default `k`)
        mr (int): multiplicity of the last breakpoint (default `k`)

    With the default multiplicities the knot set is clamped and the resulting
    B-splines form a partition of unity on the whole interval.

    Attributes:
        breakpoints (ndarray): the breakpoints without repetitions
        t (ndarray): the full knot vector including multiplicities
        k (int): spline order
    """
    distribution = 'non-uniform'

    def __init__(self, breakpoints, k, ml=None, mr=None):
        breakpoints = np.asarray(breakpoints, dtype=float)
        if np.any(np.diff(breakpoints) < 0):
            raise ValueError('breakpoints should be non-decreasing')
        if k < 1:
            raise ValueError('spline order must be at least 1, got %d' % k)
        self.k = k
        self.ml = k if ml is None else ml
        self.mr = k if mr is None else mr
        if not (1 <= self.ml <= k and 1 <= self.mr <= k):
            raise ValueError('boundary multiplicities must lie between 1 and k')
        self.breakpoints = breakpoints
        self.t = np.concatenate((np.repeat(breakpoints[0], self.ml),
                                 breakpoints[1:-1],
                                 np.repeat(breakpoints[-1], self.mr)))
        if self.numfunctions < 1:
            raise ValueError('knot set supports no B-splines')

    def __str__(self):
        return '%s(k=%d, ml=%d, mr=%d) on [%g,%g] with %d intervals' % (
            type(self).__name__, self.k, self.ml, self.mr,
            self.t[0], self.t[-1], self.numintervals)

    def __repr__(self):
        return 'KnotSet(%s, %d, ml=%d, mr=%d)' % (repr(self.breakpoints), self.k, self.ml, self.mr)

    def __eq__(self, other):
        if not isinstance(other, KnotSet):
            return NotImplemented
        return (self.k == other.k and self.ml == other.ml and self.mr == other.mr
                and np.array_equal(self.t, other.t))

    def __len__(self):
        return self.t.size

    def __getitem__(self, i):
        return self.t[i]

    @property
    def order(self):
        return self.k

    @property
    def numfunctions(self):
        """Number of B-splines defined over this knot set"""
        return self.t.size - self.k

    @property
    def numintervals(self):
        """Number of non-empty intervals"""
        return self.nonempty_intervals().size

    def support(self, j=None):
        """Support of the knot set or, if `j` is passed, of the j-th B-spline"""
        if j is None:
            return (self.t[0], self.t[-1])
        lo = max(j, 0)
        hi = min(j + self.k, self.t.size - 1)
        return (self.t[lo], self.t[hi])

    def nonempty_intervals(self):
        """Return an array of indices i such that t[i] != t[i+1]."""
        return np.where(self.t[1:] != self.t[:-1])[0]

    def find_interval(self, x):
        """Return the index `i` of the non-empty interval with
        `t[i] <= x < t[i+1]`, where the last point of the knot set belongs to
        the last interval. Returns `None` if `x` lies outside the knot set.
        """
        if x < self.t[0] or x > self.t[-1]:
            return None
        if x == self.t[-1]:
            return int(self.nonempty_intervals()[-1])
        return int(np.searchsorted(self.t, x, side='right') - 1)

    def find_intervals(self, x):
        """Vectorized :meth:`find_interval`; points outside the knot set get `-1`."""
        x = np.atleast_1d(x)
        i = np.searchsorted(self.t, x, side='right') - 1
        i[x == self.t[-1]] = self.nonempty_intervals()[-1]
        i[(x < self.t[0]) | (x > self.t[-1])] = -1
        return i

    def within_support(self, x, j):
        """Return a list of pairs `(indices, i)`, where `indices` selects the
        points of `x` which lie in the non-empty interval `i` within the
        support of the j-th B-spline.
        """
        intervals = self.find_intervals(x)
        result = []
        for i in self.nonempty_intervals():
            if j <= i < j + self.k:
                sel = np.where(intervals == i)[0]
                if sel.size:
                    result.append((sel, int(i)))
        return result

    def clamped(self):
        """Return the knot vector padded to multiplicity `k` at both ends,
        together with the index offset of the first B-spline of this knot set
        within the padded one.
        """
        pl, pr = self.k - self.ml, self.k - self.mr
        t = np.concatenate((np.repeat(self.t[0], pl), self.t, np.repeat(self.t[-1], pr)))
        return t, pl


class LinearKnotSet(KnotSet):
    """Knot set with `N` uniform intervals on `[a,b]`."""
    distribution = 'uniform'

    def __init__(self, k, a, b, N, ml=None, mr=None):
        super().__init__(np.linspace(a, b, N + 1), k, ml=ml, mr=mr)


class ExpKnotSet(KnotSet):
    """Knot set with breakpoints `base**linspace(a, b, N)`, preceded by 0 if
    `include0` is set; suited for functions varying rapidly near the origin.
    """
    def __init__(self, k, a, b, N, base=10, include0=True, ml=None, mr=None):
        bp = float(base)**np.linspace(a, b, N)
        if include0:
            bp = np.concatenate(([0.0], bp))
        super().__init__(bp, k, ml=ml, mr=mr)
