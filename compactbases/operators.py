"""Linear solvers wrapped as :class:`scipy.sparse.linalg.LinearOperator`."""
import threading

import numpy as np
import scipy.linalg
import scipy.sparse
import scipy.sparse.linalg


def make_solver(B, spd=False):
    """Return a :class:`LinearOperator` that acts as a linear solver for the
    (dense or sparse) square matrix `B`.

    If `B` is symmetric and positive definite, pass ``spd=True`` to use a
    Cholesky factorization for dense matrices.
    """
    if scipy.sparse.issparse(B):
        spLU = scipy.sparse.linalg.splu(B.tocsc(), permc_spec='NATURAL')
        return scipy.sparse.linalg.LinearOperator(B.shape, dtype=B.dtype,
                matvec=spLU.solve, matmat=spLU.solve)
    else:
        if spd:
            chol = scipy.linalg.cho_factor(B, check_finite=False)
            solve = lambda x: scipy.linalg.cho_solve(chol, x, check_finite=False)
        else:
            LU = scipy.linalg.lu_factor(B, check_finite=False)
            solve = lambda x: scipy.linalg.lu_solve(LU, x, check_finite=False)
        return scipy.sparse.linalg.LinearOperator(B.shape, dtype=B.dtype,
                matvec=solve, matmat=solve)


class CachedSolver:
    """Solver for the square matrix `A` which factorizes it on first use.

    The factorization is computed at most once per instance and then reused;
    concurrent first uses are serialized by a lock. Operators which share the
    matrix share the instance.
    """
    def __init__(self, A):
        self.A = A
        self._solver = None
        self._lock = threading.Lock()

    @property
    def is_factorized(self):
        return self._solver is not None

    @property
    def solver(self):
        if self._solver is None:
            with self._lock:
                if self._solver is None:
                    self._solver = make_solver(self.A)
        return self._solver

    def solve(self, b):
        """Return `A^{-1} b` for a vector or matrix `b`."""
        b = np.asarray(b)
        if np.iscomplexobj(b) and not np.issubdtype(self.A.dtype, np.complexfloating):
            # real factorization, complex right-hand side
            return self.solver.dot(b.real) + 1j*self.solver.dot(b.imag)
        return self.solver.dot(b)
