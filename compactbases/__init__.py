"""compactbases

Compact discretization bases (finite differences, FE-DVR and B-splines) for
spectral and pseudo-spectral solvers on 1D intervals.
"""

__version__ = '0.1.0'

_default_operator_order = 3

def get_default_operator_order():
    """Operator order `k'` used by :class:`.BSpline` when no quadrature is given."""
    return _default_operator_order

def set_default_operator_order(kprime):
    global _default_operator_order
    if kprime < 0:
        raise ValueError('operator order must be non-negative, got %s' % (kprime,))
    _default_operator_order = int(kprime)

from .quadrature import (lerp, change_interval, num_quadrature_points,
        gauss_legendre, gauss_lobatto, lgwt, element_grid, QuadratureOrderWarning)
from .knotsets import KnotSet, LinearKnotSet, ExpKnotSet
from .basis import (Basis, RestrictedBasis, Expansion, IncompatibleBasesError,
        assert_compatible_bases, combined_restriction, allocate_matrix,
        mass_matrix, operator_matrix, overlap_rule)
from .operators import make_solver, CachedSolver
from .finite_differences import (FiniteDifferences, StaggeredFiniteDifferences,
        ImplicitFiniteDifferences, ImplicitDerivative, ImplicitFactorization,
        log_lin_grid, schafer_corner_fix)
from .bsplines import BSpline, deboor, basis_functions, overlap_matrix
from .fedvr import FEDVR
from .derivatives import derivative_matrix
from .densities import Density, density
