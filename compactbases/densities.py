# -*- coding: utf-8 -*-
"""Densities, i.e. pointwise products of two expanded functions.

For two expansions `f = sum_i cf_i phi_i` and `g = sum_i cg_i phi_i` over the
same basis, the expansion coefficients of `f*g` are computed as

    rho = C @ ((LV @ cf) * (RV @ cg))

where `LV` and `RV` map coefficients to function values on the grid of the
basis and `C` maps values on that grid back to coefficients. For orthogonal
bases the coefficients already are (weighted) function values on the grid,
and the product is exact up to rounding.
"""
import numpy as np
import scipy.linalg
import scipy.sparse

from .basis import Expansion, IncompatibleBasesError, assert_compatible_bases


class Density:
    """The density `conj(f)*g` (if `conjugate`) or `f*g` of two expansions.

    Attributes:
        R: the common basis
        LV, RV: maps from coefficients to values on the grid
        C: map from values on the grid to coefficients
        lv, rv: the grid values of the two factors
        rho: the expansion coefficients of the density
    """
    def __init__(self, f, g, conjugate=False):
        R = f.basis
        assert_compatible_bases(R, g.basis)
        if R.indices != g.basis.indices:
            raise IncompatibleBasesError('Densities require both factors in the same restricted basis')
        self.R = R
        self.conjugate = conjugate
        if R.orthogonal:
            I = scipy.sparse.identity(len(R), format='csr')
            self.LV = self.RV = I
            if R.distribution == 'uniform':
                self.C = I
            else:
                self.C = scipy.sparse.diags(R.weights(), format='csr')
        else:
            V = R.evaluate(R.parent.locs)
            self.LV = self.RV = V
            self.C = scipy.linalg.pinv(V.toarray())
        self.update(f, g)

    def update(self, f, g):
        """Recompute the density for new coefficients of `f` and `g`."""
        self.lv = self.LV @ f.coeffs
        if self.conjugate:
            if self.R.orthogonal:
                # conjugate the function values, the weights may be complex
                w = self.R.weights()
                self.lv = np.conj(self.lv * w) / w
            else:
                self.lv = np.conj(self.lv)
        self.rv = self.RV @ g.coeffs
        self.rho = self.C @ (self.lv * self.rv)
        return self

    def expansion(self):
        """The density as an :class:`.Expansion` over the common basis."""
        return Expansion(self.R, self.rho)


def density(f, g, conjugate=False):
    """Expansion of the pointwise product of the expansions `f` and `g`."""
    return Density(f, g, conjugate=conjugate).expansion()
