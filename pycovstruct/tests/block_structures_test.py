#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Sun Oct 18 10:31:07 2026

@author: lukepinkel
"""

import numpy as np
import pytest
from pycovstruct.exceptions import InvalidParameter
from pycovstruct.utilities.numerical_derivs import jac_approx
from pycovstruct.covstruct.shapes import (AR1Homogeneous, Unstructured,
                                          CompoundSymmetryHeterogeneous)
from pycovstruct.covstruct.cholesky_codec import CholeskyCodec, decompose
from pycovstruct.covstruct.param_transform import ParameterTransform
from pycovstruct.covstruct.block_structures import KroneckerProduct, BlockDiagonal


def test_kronecker_cov_and_chol():
    a = Unstructured(2)
    b = AR1Homogeneous(3)
    s = KroneckerProduct(a, b)
    assert(s.mat_size == 6)
    assert(s.n_params == 5)
    assert(s.param_names == ["A.L_1_1", "A.L_2_1", "A.L_2_2", "B.sigma", "B.phi"])
    x = np.array([1.2, 0.4, 0.9, 1.0, 0.6])
    S = s.cov(x)
    assert(np.allclose(S, np.kron(a.cov(x[:3]), b.cov(x[3:]))))
    L_fast = CholeskyCodec(s).factor(x)
    L_slow = decompose(S)
    assert(np.allclose(L_fast, L_slow, rtol=0, atol=1e-10))


def test_kronecker_derivs():
    s = KroneckerProduct(CompoundSymmetryHeterogeneous(2), AR1Homogeneous(3))
    x = np.array([1.2, 0.8, 0.3, 1.1, -0.4])
    dS_nm = np.moveaxis(jac_approx(s.cov, x), 0, -1)
    assert(np.allclose(s.dcov(x), dS_nm, atol=1e-7))
    d2S_nm = np.transpose(jac_approx(s.dcov, x), (1, 2, 3, 0))
    assert(np.allclose(s.d2cov(x), d2S_nm, atol=1e-6))


def test_kronecker_transform():
    s = KroneckerProduct(Unstructured(2), AR1Homogeneous(2))
    t = ParameterTransform(s)
    x = np.array([1.0, 0.5, 0.8, 1.0, 0.3])
    J_an = t.analytic_jacobian(x)
    J_nm = t.jacobian(x)
    assert(J_an.shape == (5, 10))
    assert(np.allclose(J_an, J_nm, atol=1e-7))


def test_kronecker_invalid():
    s = KroneckerProduct(Unstructured(2), AR1Homogeneous(3))
    with pytest.raises(InvalidParameter):
        s.cov([1.0, 0.4, 0.9, 1.0, 1.0])
    with pytest.raises(InvalidParameter):
        s.cov([-1.0, 0.4, 0.9, 1.0, 0.5])
    lb, ub = s.box_constraints()
    assert(len(lb) == 5 and ub[-1] < 1.0)


def test_block_diagonal():
    s = AR1Homogeneous(3)
    b = BlockDiagonal(s, 4)
    x = np.array([1.5, 0.7])
    assert(b.mat_size == 12)
    V = b.cov(x)
    assert(V.shape == (12, 12))
    assert(np.allclose(V.toarray(), np.kron(np.eye(4), s.cov(x))))
    C = b.chol(x)
    assert(np.allclose(C.dot(C.T).toarray(), V.toarray()))
    assert(np.allclose(C.toarray(), np.tril(C.toarray())))
    data = b.tiled_factor(x)
    theta = ParameterTransform(s).evaluate(x)
    assert(len(data) == 4 * len(theta))
    assert(np.allclose(data[6:12], theta))
    sign, logdet = np.linalg.slogdet(V.toarray())
    assert(np.isclose(b.logdet(x), logdet))
    with pytest.raises(ValueError):
        BlockDiagonal(s, 0)
