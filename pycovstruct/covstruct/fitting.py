#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Sat Oct 17 10:12:58 2026

@author: lukepinkel
"""
import logging
import numpy as np
import scipy as sp
import scipy.optimize
from ..exceptions import DidNotConverge, InvalidParameter, NotPositiveDefinite
from ..utilities.func_utils import as_float_vector, handle_default_kws
from ..utilities.numerical_derivs import hess_approx
from ..utilities.optimizer_utils import process_optimizer_kwargs
from ..utilities.output import get_param_table
from .inference import delta_method_cov, hessian_to_cov

logger = logging.getLogger(__name__)

REJECTED_DEVIANCE = 1e15
default_hess_kws = dict(a_eps=1e-2, r_eps=1e-2, nr=4)


def make_objective(deviance, transform, penalty=REJECTED_DEVIANCE, args=()):
    """
    Objective of the shape parameters for an optimizer.

    Trial points the transform rejects, and points where the deviance
    fails or is not finite, map to ``penalty`` instead of raising so
    that line searches can back off.

    Parameters
    ----------
    deviance : callable
        deviance(theta, *args) of the packed cholesky factor(s).
    transform : ParameterTransform or CombinedTransform
        Map from shape parameters to theta.
    penalty : float
        Value returned for rejected trial points.
    args : tuple
        Extra arguments for deviance.
    """
    def objective(params):
        try:
            theta = transform.evaluate(params)
        except InvalidParameter as e:
            logger.debug("Rejected trial point %s: %s", params, e)
            return penalty
        try:
            value = float(deviance(theta, *args))
        except (np.linalg.LinAlgError, InvalidParameter, FloatingPointError) as e:
            logger.debug("Deviance failed at %s: %s", params, e)
            return penalty
        if not np.isfinite(value):
            logger.debug("Non-finite deviance at %s", params)
            return penalty
        return value
    return objective


class StructuredFit(object):
    """
    Result of fitting a deviance over the shape parameters of a transform.

    Attributes
    ----------
    params : ndarray
        Estimated shape parameters.
    theta : ndarray
        Packed cholesky factor(s) at the estimate.
    deviance : float
        Objective at the estimate.
    optimizer : scipy.optimize.OptimizeResult
    hessian : ndarray or None
        Finite difference Hessian of the objective.
    cov_params : ndarray or None
        Covariance of the estimates, NaN when the Hessian is not positive
        definite.
    se_params : ndarray
    param_table : pandas.DataFrame
    """
    def __init__(self, transform, optimizer, objective, hessian_scale="deviance",
                 compute_se=True, hess_kws=None):
        self.transform = transform
        self.optimizer = optimizer
        self.objective = objective
        self.hessian_scale = hessian_scale
        self.hess_kws = handle_default_kws(hess_kws, default_hess_kws)
        self.params = np.asarray(optimizer.x, dtype=float)
        self.deviance = float(optimizer.fun)
        self.theta = transform.evaluate(self.params)
        k = transform.n_params
        self.hessian = None
        self.cov_params = np.full((k, k), np.nan)
        if compute_se:
            self._compute_cov()
        self.se_params = np.sqrt(np.diag(self.cov_params))
        self.param_table = get_param_table(self.params, self.se_params,
                                           index=transform.param_names)

    def _compute_cov(self):
        lb, ub = self.transform.domain()
        if np.any(self.params <= lb) or np.any(self.params >= ub):
            logger.warning("Estimate lies on the boundary of the parameter "
                           "domain; standard errors are not available")
            return
        self.hessian = hess_approx(self.objective, self.params, bounds=(lb, ub),
                                   **self.hess_kws)[0]
        try:
            self.cov_params = hessian_to_cov(self.hessian, scale=self.hessian_scale)
        except NotPositiveDefinite:
            logger.warning("Hessian at the estimate is not positive definite; "
                           "standard errors are not available")

    def metric_cov(self, metric):
        """
        Delta method covariance of metric(params), e.g. standard
        deviations and correlations from ``sd_corr_metric``
        """
        J = self.transform.jacobian(self.params, metric=metric)
        return delta_method_cov(J, self.cov_params)

    def metric_se(self, metric):
        return np.sqrt(np.diag(self.metric_cov(metric)))


def fit_structure(deviance, transform, x0=None, method="L-BFGS-B", opt_kws=None,
                  hessian_scale="deviance", args=(), compute_se=True,
                  hess_kws=None, penalty=REJECTED_DEVIANCE):
    """
    Minimize a deviance over the shape parameters of a transform.

    Parameters
    ----------
    deviance : callable
        deviance(theta, *args), theta the packed cholesky factor(s).
    transform : ParameterTransform or CombinedTransform
        Map from shape parameters to theta.  Its box constraints are
        passed to the optimizer.
    x0 : array-like, optional
        Starting values, inside the box constraints.  Defaults to the
        transform's default parameters.
    method : str
        scipy.optimize.minimize method; must accept bounds.  A method
        given in opt_kws takes precedence.
    opt_kws : dict, optional
        Keyword arguments for scipy.optimize.minimize.
    hessian_scale : {'deviance', 'loglike'}
        Whether deviance is -2 log L or -log L.
    compute_se : bool
        Compute the Hessian and standard errors at the estimate.
    hess_kws : dict, optional
        Step settings for the finite difference Hessian, see
        ``hess_approx``.

    Returns
    -------
    StructuredFit

    Raises
    ------
    InvalidParameter
        If x0 is invalid or outside the box constraints.
    DidNotConverge
        If the optimizer reports failure or never leaves the rejected
        region.
    """
    x0 = transform.default_params() if x0 is None else as_float_vector(x0)
    x0 = transform.validate(x0)
    if not transform.in_box(x0):
        raise InvalidParameter("Starting values lie outside the box constraints", x0)
    opt_kws = process_optimizer_kwargs(opt_kws, default_method=method)
    objective = make_objective(deviance, transform, penalty=penalty, args=args)
    logger.debug("Minimizing with %s from %s", opt_kws["method"], x0)
    optimizer = sp.optimize.minimize(objective, x0, bounds=transform.bounds(),
                                     **opt_kws)
    if not optimizer.success:
        raise DidNotConverge(f"Optimizer failed: {optimizer.message}", optimizer)
    if optimizer.fun >= penalty:
        raise DidNotConverge("Optimizer did not find a valid point", optimizer)
    logger.debug("Converged after %s iterations, deviance %s",
                 optimizer.get("nit"), optimizer.fun)
    return StructuredFit(transform, optimizer, objective,
                         hessian_scale=hessian_scale, compute_se=compute_se,
                         hess_kws=hess_kws)
