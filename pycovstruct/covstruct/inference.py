#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Thu Oct 15 16:02:11 2026

@author: lukepinkel

Delta method helpers.  Hessians may be of a deviance (-2 log likelihood)
or of a negative log likelihood; the two differ by a factor of two, and
``hessian_to_cov`` takes the scale explicitly so that the convention is
never implicit.
"""
import numpy as np
import scipy as sp
import scipy.linalg
from .cholesky_codec import decompose


HESSIAN_SCALES = {"deviance": 2.0, "loglike": 1.0}


def hessian_to_cov(hess, scale="deviance"):
    """
    Asymptotic covariance of estimates from the Hessian of the objective.

    Parameters
    ----------
    hess : ndarray
        (k, k) Hessian at the optimum.
    scale : {'deviance', 'loglike'}
        'deviance' when the objective is -2 log L (the Hessian is halved
        before inversion), 'loglike' when it is -log L.

    Returns
    -------
    cov : ndarray
        (k, k) covariance matrix.

    Raises
    ------
    NotPositiveDefinite
        If the information matrix is not positive definite.
    """
    if scale not in HESSIAN_SCALES:
        raise ValueError(f"scale must be one of {sorted(HESSIAN_SCALES)}, got '{scale}'")
    H = np.atleast_2d(np.asarray(hess, dtype=float))
    H = (H + H.T) / 2.0 / HESSIAN_SCALES[scale]
    L = decompose(H)
    cov = sp.linalg.cho_solve((L, True), np.eye(H.shape[0]))
    return cov


def delta_method_cov(jac, cov):
    """
    Covariance of g(x) given the covariance of x.

    Parameters
    ----------
    jac : ndarray
        (k, m) Jacobian with jac[i, j] = d g_j / d x_i.
    cov : ndarray
        (k, k) covariance of x.

    Returns
    -------
    ndarray
        (m, m) covariance of g(x), jac^T cov jac.
    """
    J = np.asarray(jac, dtype=float)
    if J.ndim == 1:
        J = J.reshape(-1, 1)
    C = np.atleast_2d(np.asarray(cov, dtype=float))
    return J.T.dot(C).dot(J)


def delta_method_se(jac, cov):
    return np.sqrt(np.diag(delta_method_cov(jac, cov)))


def chain_rule_hessian(hess, jac, grad=None, d2theta=None):
    """
    Hessian of f(theta(x)) with respect to x from the derivatives of f
    with respect to theta.

    Parameters
    ----------
    hess : ndarray
        (m, m) Hessian of f with respect to theta.
    jac : ndarray
        (k, m) Jacobian of theta with respect to x.
    grad : ndarray, optional
        (m,) gradient of f with respect to theta.  Together with d2theta
        supplies the curvature term, which vanishes at a stationary point.
    d2theta : ndarray, optional
        (m, k, k) second derivatives of theta with respect to x.

    Returns
    -------
    H : ndarray
        (k, k) Hessian with respect to x.
    """
    J = np.asarray(jac, dtype=float)
    H = J.dot(np.asarray(hess, dtype=float)).dot(J.T)
    if grad is not None and d2theta is not None:
        H = H + np.einsum("i,ijk->jk", np.asarray(grad, dtype=float), d2theta)
    return H


def internal_hessian_to_cov(hess, jac, scale="deviance", grad=None, d2theta=None):
    """
    Covariance of shape parameter estimates from the Hessian of the
    objective with respect to the packed cholesky factor.

    Parameters
    ----------
    hess : ndarray
        (m, m) Hessian with respect to theta.
    jac : ndarray
        (k, m) Jacobian of theta with respect to the shape parameters.
    scale : {'deviance', 'loglike'}
        See ``hessian_to_cov``.
    grad, d2theta : ndarray, optional
        See ``chain_rule_hessian``.
    """
    H = chain_rule_hessian(hess, jac, grad=grad, d2theta=d2theta)
    return hessian_to_cov(H, scale=scale)
