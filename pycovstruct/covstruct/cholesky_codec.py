#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Tue Oct 13 14:37:19 2026

@author: lukepinkel

Cholesky decomposition and packing of lower triangular factors.

Packing contract (version 1, "column-major-lower"): the p(p+1)/2 entries
of a p x p lower triangular factor are read column by column, and within
a column from the diagonal downwards, i.e.

    for c in 0..p-1:
        for r in c..p-1:
            emit L[r, c]

For p = 3 the order is L00, L10, L20, L11, L21, L22.  Consumers that
need another order apply their own permutation (see
``row_major_permutation``).
"""
import numpy as np
from ..exceptions import NotPositiveDefinite
from ..utilities.func_utils import as_float_vector
from ..utilities.linalg_operations import (hv_indices, hv_size_to_mat_size,
                                           invech_chol, mat_size_to_hv_size,
                                           vech)

PACKING_ORDER = "column-major-lower"
PACKING_VERSION = 1


def packing_indices(mat_size):
    """
    (row, col) pairs of a p x p lower triangle in packing order

    Returns
    -------
    rows, cols : ndarray
    """
    return hv_indices(mat_size)


def row_major_permutation(mat_size):
    """
    Index array perm such that packed[perm] lists the lower triangle
    row by row (L00, L10, L11, L20, ...).
    """
    r, c = hv_indices(mat_size)
    perm = np.lexsort((c, r))
    return perm


def decompose(matrix):
    """
    Lower cholesky factor with a positive diagonal.

    Parameters
    ----------
    matrix : ndarray
        Symmetric (p, p) matrix.

    Returns
    -------
    L : ndarray
        Lower triangular (p, p) array with L L^T = matrix.

    Raises
    ------
    NotPositiveDefinite
        If the matrix has non-finite entries or is not numerically
        positive definite.
    """
    A = np.asarray(matrix, dtype=float)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {A.shape}")
    if not np.all(np.isfinite(A)):
        raise NotPositiveDefinite("Matrix has non-finite entries")
    try:
        L = np.linalg.cholesky(A)
    except np.linalg.LinAlgError as e:
        raise NotPositiveDefinite(f"Matrix is not positive definite: {e}") from e
    if not np.all(np.diag(L) > 0) or not np.all(np.isfinite(L)):
        raise NotPositiveDefinite("Cholesky factor has a non-positive pivot")
    return L


def pack(factor):
    """
    Packed lower triangle of a (p, p) factor, see the module docstring
    for the order
    """
    L = np.asarray(factor)
    if L.ndim != 2 or L.shape[0] != L.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {L.shape}")
    return vech(L)


def unpack(flat, mat_size=None):
    """
    Rebuild the (p, p) lower triangular factor from its packed entries.

    Parameters
    ----------
    flat : array-like
        Vector of length p(p+1)/2.
    mat_size : int, optional
        Expected p.  Inferred from the length when omitted.
    """
    flat = as_float_vector(flat)
    if mat_size is None:
        mat_size = hv_size_to_mat_size(len(flat))
    elif len(flat) != mat_size_to_hv_size(mat_size):
        raise ValueError(f"A packed {mat_size} x {mat_size} factor has "
                         f"{mat_size_to_hv_size(mat_size)} entries, got {len(flat)}")
    return invech_chol(flat)


class CholeskyCodec(object):
    """
    Cholesky factorization of a covariance family at given parameters,
    using the family's closed form factor when it has one.

    Parameters
    ----------
    structure : CovarianceStructure
        Family whose covariance matrices are factored.
    use_closed_form : bool
        When False the closed form is ignored and every factor comes from
        a numerical decomposition.
    """
    def __init__(self, structure, use_closed_form=True):
        self.structure = structure
        self.mat_size = structure.mat_size
        self.hv_size = mat_size_to_hv_size(self.mat_size)
        self.use_closed_form = use_closed_form
        self.row_inds, self.col_inds = packing_indices(self.mat_size)

    def factor(self, params):
        """Cholesky factor of structure.cov(params)"""
        params = self.structure.validate(params)
        L = None
        if self.use_closed_form:
            L = self.structure.closed_form_chol(params)
        if L is None:
            L = decompose(self.structure._cov(params))
        return L

    def encode(self, params):
        """Packed cholesky factor of structure.cov(params)"""
        return pack(self.factor(params))

    def decompose(self, matrix):
        return decompose(matrix)

    def pack(self, factor):
        return pack(factor)

    def unpack(self, flat):
        return unpack(flat, self.mat_size)
