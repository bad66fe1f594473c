#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Sat Oct 17 16:48:31 2026

@author: lukepinkel
"""

import numpy as np
import pytest
from pycovstruct.exceptions import InvalidParameter, NotPositiveDefinite
from pycovstruct.covstruct.shapes import (IdentityMultiple, Diagonal,
                                          AR1Homogeneous, AR1Heterogeneous,
                                          CompoundSymmetryHomogeneous,
                                          CompoundSymmetryHeterogeneous,
                                          Unstructured)
from pycovstruct.covstruct.param_transform import (ParameterTransform,
                                                   FreeParameters,
                                                   CombinedTransform,
                                                   box_constraints,
                                                   sd_corr_metric, cov_metric)


def test_identity_multiple():
    """
    The derivative of sigma with respect to itself is exactly one through
    analytic_jacobian; the finite difference jacobian only agrees to
    within round-off.
    """
    t = ParameterTransform(IdentityMultiple(1))
    assert(np.allclose(t.evaluate([2.5]), [2.5]))
    assert(np.array_equal(t.analytic_jacobian([2.5]), [[1.0]]))
    J = t.jacobian([2.5])
    assert(J.shape == (1, 1))
    assert(np.allclose(J, 1.0, rtol=0, atol=1e-9))


def test_evaluate_scenarios():
    t = ParameterTransform("ar1", 4)
    theta = t.evaluate([1.0, 0.8])
    assert(len(theta) == 10)
    assert(np.allclose(theta[:4], [1.0, 0.8, 0.64, 0.512]))
    assert(np.isclose(theta[4], 0.6))
    t = ParameterTransform(CompoundSymmetryHomogeneous(3))
    L = t.codec.unpack(t.evaluate([2.0, 0.5]))
    S = L.dot(L.T)
    assert(np.allclose(np.diag(S), 4.0))
    assert(np.allclose(S[np.tril_indices(3, -1)], 2.0))


def test_evaluate_rejects():
    t = ParameterTransform("ar1", 4)
    with pytest.raises(InvalidParameter):
        t.evaluate([1.0, 1.0])
    t = ParameterTransform("cs", 4)
    with pytest.raises(InvalidParameter):
        t([1.0, -1.0 / 3.0])
    with pytest.raises(ValueError):
        ParameterTransform("ar1")


def test_not_positive_definite_is_invalid_parameter():
    assert(issubclass(NotPositiveDefinite, InvalidParameter))


def test_unstructured_passthrough():
    rng = np.random.default_rng(123)
    s = Unstructured(4)
    t = ParameterTransform(s)
    x = rng.normal(size=10)
    x[s.diag_inds] = np.abs(x[s.diag_inds]) + 0.5
    assert(np.array_equal(t.evaluate(x), x))
    assert(np.array_equal(t.analytic_jacobian(x), np.eye(10)))
    assert(np.allclose(t.jacobian(x), np.eye(10), atol=1e-9))


def test_box_constraints():
    lb, ub = box_constraints("ar1", 5)
    assert(len(lb) == 2)
    assert(lb[0] > 0 and np.isinf(ub[0]))
    assert(-1 < lb[1] < ub[1] < 1)
    lb, ub = box_constraints("cs", 4)
    assert(lb[1] > -1.0 / 3.0)
    lb, ub = box_constraints(Unstructured(3), 3)
    assert(np.allclose(lb[[0, 3, 5]], 1e-6))
    assert(np.all(np.isinf(lb[[1, 2, 4]])))
    lb, ub = box_constraints(Diagonal(2), 6)
    assert(len(lb) == 6)
    t = ParameterTransform("ar1", 3)
    assert(t.bounds()[0][1] is None)


def test_box_edges_evaluate():
    families = [IdentityMultiple, Diagonal, AR1Homogeneous, AR1Heterogeneous,
                CompoundSymmetryHomogeneous, CompoundSymmetryHeterogeneous,
                Unstructured]
    for cls in families:
        for p in [1, 3, 6]:
            t = ParameterTransform(cls(p))
            lb, ub = t.box_constraints()
            for v in [np.where(np.isfinite(lb), lb, -10.0),
                      np.where(np.isfinite(ub), ub, 10.0)]:
                theta = t.evaluate(v)
                assert(np.all(np.isfinite(theta)))
                J = t.jacobian(v)
                assert(np.all(np.isfinite(J)))


def test_jacobian_outside_box():
    t = ParameterTransform("ar1", 3)
    with pytest.raises(InvalidParameter):
        t.jacobian([1.0, 0.99999])
    t = ParameterTransform(Unstructured(2))
    assert(np.allclose(t.evaluate([0.0, 0.3, 1.0]), [0.0, 0.3, 1.0]))
    assert(not t.in_box([0.0, 0.3, 1.0]))
    with pytest.raises(InvalidParameter):
        t.jacobian([0.0, 0.3, 1.0])
    J = t.jacobian([1e-6, 0.3, 1.0])
    assert(np.allclose(J, np.eye(3), atol=1e-8))


def test_analytic_jacobian():
    rng = np.random.default_rng(123)
    families = [IdentityMultiple, Diagonal, AR1Homogeneous, AR1Heterogeneous,
                CompoundSymmetryHomogeneous, CompoundSymmetryHeterogeneous]
    for cls in families:
        for p in [1, 4]:
            t = ParameterTransform(cls(p))
            x = rng.uniform(0.5, 2.0, size=t.n_params)
            if t.structure.n_corr > 0:
                x[-1] = rng.uniform(-0.2, 0.8)
            J_an = t.analytic_jacobian(x)
            J_nm = t.jacobian(x)
            assert(J_an.shape == (t.n_params, t.n_outputs))
            assert(np.allclose(J_an, J_nm, atol=1e-7))


def test_analytic_hessian():
    rng = np.random.default_rng(123)
    for cls in [AR1Homogeneous, AR1Heterogeneous, CompoundSymmetryHomogeneous,
                CompoundSymmetryHeterogeneous]:
        t = ParameterTransform(cls(3))
        x = np.r_[rng.uniform(0.5, 2.0, size=t.n_params-1), 0.4]
        H_an = t.analytic_hessian(x)
        H_nm = t.hessian(x)
        assert(H_an.shape == (t.n_outputs, t.n_params, t.n_params))
        assert(np.allclose(H_an, H_nm, atol=1e-5))


def test_metric_jacobian():
    t = ParameterTransform("ar1_het", 3)
    x = np.array([1.0, 2.0, 3.0, 0.5])
    metric = sd_corr_metric(t.structure)
    assert(np.allclose(metric(x), [1.0, 2.0, 3.0, 0.5, 0.25, 0.5]))
    J = t.jacobian(x, metric=metric)
    expected = np.zeros((4, 6))
    expected[[0, 1, 2], [0, 1, 2]] = 1.0
    expected[3, 3:] = [1.0, 2 * 0.5, 1.0]
    assert(np.allclose(J, expected, atol=1e-8))


def test_closed_form_matches_decomposition():
    rng = np.random.default_rng(123)
    for cls in [IdentityMultiple, Diagonal, AR1Homogeneous, AR1Heterogeneous]:
        s = cls(5)
        x = rng.uniform(0.5, 2.0, size=s.n_params)
        if s.n_corr > 0:
            x[-1] = -0.7
        t1 = ParameterTransform(s, use_closed_form=True)
        t2 = ParameterTransform(s, use_closed_form=False)
        assert(np.allclose(t1.evaluate(x), t2.evaluate(x), rtol=0, atol=1e-10))


def test_combined_transform():
    t1 = ParameterTransform("ar1", 3)
    t2 = ParameterTransform("unstructured", 2)
    t3 = FreeParameters(1, lower=1e-6, names=["resid_sd"])
    t = CombinedTransform([t1, t2, t3], labels=["time", "subj", "resid"])
    assert(t.n_params == 2 + 3 + 1)
    assert(t.n_outputs == 6 + 3 + 1)
    assert(t.param_names[:2] == ["time.sigma", "time.phi"])
    assert(t.param_names[-1] == "resid.resid_sd")
    x = np.array([1.5, 0.3, 1.0, 0.2, 0.8, 0.7])
    theta = t.evaluate(x)
    assert(np.allclose(theta[:6], t1.evaluate(x[:2])))
    assert(np.allclose(theta[6:9], x[2:5]))
    assert(np.isclose(theta[9], 0.7))
    J_an = t.analytic_jacobian(x)
    J_nm = t.jacobian(x)
    assert(J_an.shape == (6, 10))
    assert(np.allclose(J_an, J_nm, atol=1e-7))
    H_an = t.analytic_hessian(x)
    assert(np.allclose(H_an[:6, :2, :2], t1.analytic_hessian(x[:2])))
    assert(np.allclose(H_an[6:], 0.0))
    lb, ub = t.box_constraints()
    assert(len(lb) == 6 and np.isclose(lb[-1], 1e-6))
    with pytest.raises(InvalidParameter):
        t.evaluate(np.r_[x[:5], -1.0])
    with pytest.raises(InvalidParameter):
        t.evaluate(x[:5])
    x0 = t.default_params()
    assert(t.in_box(x0))
    assert(np.isclose(x0[-1], 1e-6))


def test_cov_metric_jacobian():
    s = CompoundSymmetryHeterogeneous(3)
    t = ParameterTransform(s)
    x = np.array([1.2, 0.7, 1.5, 0.3])
    J = t.jacobian(x, metric=cov_metric(s))
    dS = s.dcov(x)
    r, c = np.triu_indices(3)[::-1]
    assert(J.shape == (4, 6))
    assert(np.allclose(J, dS[r, c].T, atol=1e-8))
