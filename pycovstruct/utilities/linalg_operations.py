#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Sat May 16 21:47:11 2020

@author: lukepinkel
"""

import numba
import numpy as np
import scipy as sp
import scipy.linalg


def mat_size_to_hv_size(mat_size):
    hv_size = int(mat_size * (mat_size + 1) // 2)
    return hv_size


def hv_size_to_mat_size(hv_size):
    mat_size = int((np.sqrt(8 * hv_size + 1) - 1) // 2)
    if mat_size_to_hv_size(mat_size) != hv_size:
        raise ValueError(f"{hv_size} is not a triangular number")
    return mat_size


def hv_indices(mat_size):
    """
    Row and column indices of the lower triangle in half-vectorization
    order, i.e. column by column, top to bottom.

    Parameters
    ----------
    mat_size : int
        Size of the square matrix.

    Returns
    -------
    rows, cols : ndarray
        Arrays of length mat_size * (mat_size + 1) // 2.
    """
    c, r = np.triu_indices(mat_size)
    return r, c


def vech(x):
    m = x.shape[-1]
    r, c = hv_indices(m)
    res = x[..., r, c]
    return res


def invech_chol(x):
    """
    Inverse half vectorization, producing a lower triangular matrix
    """
    old_shape = x.shape
    m = hv_size_to_mat_size(x.shape[-1])
    res = np.zeros(old_shape[:-1] + (m, m), dtype=x.dtype)
    r, c = hv_indices(m)
    res[..., r, c] = x
    return res


@numba.jit(nopython=True)
def ar1_chol(n, rho):
    """
    Closed form lower cholesky factor of the n x n AR1(rho) correlation
    matrix.  The first column holds rho^i, every other column j holds
    sqrt(1 - rho^2) * rho^(i-j) below the diagonal.
    """
    L = np.zeros((n, n))
    c = np.sqrt(1.0 - rho**2)
    r = 1.0
    for i in range(n):
        L[i, 0] = r
        r = r * rho
    for j in range(1, n):
        for i in range(j, n):
            L[i, j] = c * L[i - j, 0]
    return L


def lag_matrix(n):
    """|i - j| for an n x n matrix"""
    return sp.linalg.toeplitz(np.arange(n))
