#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Sun Oct 18 13:05:41 2026

@author: lukepinkel
"""

import numpy as np
import pytest
from pycovstruct.utilities.linalg_operations import (vech, invech_chol,
                                                     hv_size_to_mat_size,
                                                     mat_size_to_hv_size,
                                                     ar1_chol, lag_matrix)
from pycovstruct.utilities.dchol import dchol
from pycovstruct.covstruct.shapes import CompoundSymmetryHeterogeneous
from pycovstruct.utilities.numerical_derivs import jac_approx


def test_vech():
    rng = np.random.default_rng(123)
    A = rng.normal(size=(4, 4))
    S = A + A.T
    x = vech(S)
    assert(len(x) == mat_size_to_hv_size(4))
    assert(np.allclose(x[:4], S[:, 0]))
    L = np.tril(A)
    assert(np.allclose(invech_chol(vech(L)), L))
    assert(hv_size_to_mat_size(10) == 4)
    with pytest.raises(ValueError):
        hv_size_to_mat_size(7)


def test_ar1_chol():
    for n in [1, 3, 9]:
        for rho in [-0.8, 0.0, 0.45, 0.95]:
            R = rho**lag_matrix(n).astype(float)
            L = ar1_chol(n, rho)
            assert(np.allclose(L, np.linalg.cholesky(R)))


def test_dchol():
    s = CompoundSymmetryHeterogeneous(4)
    x = np.array([1.2, 0.8, 1.5, 2.0, 0.35])
    L, dL, d2L = dchol(s.cov(x), s.dcov(x), s.d2cov(x), order=2)
    assert(np.allclose(L, np.linalg.cholesky(s.cov(x))))
    dL_nm = jac_approx(lambda y: np.linalg.cholesky(s.cov(y)), x)
    assert(np.allclose(np.moveaxis(dL, -1, 0), dL_nm, atol=1e-7))

    def dchol_first(y):
        return dchol(s.cov(y), s.dcov(y), s.d2cov(y), order=1)[1]
    d2L_nm = np.transpose(jac_approx(dchol_first, x), (1, 2, 3, 0))
    assert(np.allclose(d2L, d2L_nm, atol=1e-6))
    assert(np.allclose(np.triu(np.moveaxis(dL, -1, 0)[0], 1), 0.0))
