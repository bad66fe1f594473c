#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Wed Oct 14 11:25:50 2026

@author: lukepinkel
"""
import numpy as np
import scipy as sp
import scipy.linalg
from ..exceptions import InvalidParameter
from ..utilities.dchol import dchol
from ..utilities.func_utils import as_float_vector, index_ranges
from ..utilities.linalg_operations import vech
from ..utilities.numerical_derivs import hess_approx, jac_approx
from .cholesky_codec import CholeskyCodec, packing_indices
from .shapes import Unstructured, get_structure


class TransformBase(object):
    """
    Shared machinery for maps from shape parameters to the flat vector a
    deviance function consumes.  Subclasses provide n_params, n_outputs,
    param_names, output_names, validate, evaluate, domain,
    box_constraints, default_params, analytic_jacobian and
    analytic_hessian.
    """

    def __call__(self, params):
        return self.evaluate(params)

    def bounds(self):
        """Box constraints as a list of (lower, upper) pairs, None for unbounded"""
        lb, ub = self.box_constraints()
        return [(None if np.isinf(a) else a, None if np.isinf(b) else b)
                for a, b in zip(lb, ub)]

    def in_box(self, params):
        params = as_float_vector(params)
        lb, ub = self.box_constraints()
        return bool(np.all((params >= lb) & (params <= ub)))

    def _check_in_box(self, params):
        if not self.in_box(params):
            raise InvalidParameter(f"{self!r}: parameters outside the box "
                                   f"constraints", params)

    def jacobian(self, params, metric=None, **kws):
        """
        Central finite difference Jacobian.

        Parameters
        ----------
        params : array-like
            Shape parameters, inside the box constraints.
        metric : callable, optional
            Function of the shape parameters returning the m downstream
            quantities to differentiate (e.g. standard deviations and
            correlations).  Defaults to ``evaluate``.
        **kws
            Passed to ``jac_approx``.

        Returns
        -------
        J : ndarray
            (k, m) array with J[i, j] the derivative of output j with
            respect to shape parameter i.
        """
        params = self.validate(params)
        self._check_in_box(params)
        f = self.evaluate if metric is None else metric
        J = jac_approx(f, params, bounds=self.domain(), **kws)
        return J.reshape(self.n_params, -1)

    def hessian(self, params, metric=None, **kws):
        """
        Finite difference second derivatives, an (m, k, k) array
        """
        params = self.validate(params)
        self._check_in_box(params)
        f = self.evaluate if metric is None else metric
        return hess_approx(f, params, bounds=self.domain(), **kws)


class ParameterTransform(TransformBase):
    """
    Shape parameters -> dense covariance -> cholesky factor -> packed
    factor, for one covariance family.

    Parameters
    ----------
    structure : CovarianceStructure or str
        The covariance family, or its name (then mat_size is required).
    mat_size : int, optional
        Dimension when structure is given by name.
    use_closed_form : bool
        Use the family's closed form cholesky factor when available.

    Examples
    --------
    >>> t = ParameterTransform("ar1", 4)
    >>> t.evaluate([1.0, 0.8])[:4]
    array([1.   , 0.8  , 0.64 , 0.512])
    """
    def __init__(self, structure, mat_size=None, use_closed_form=True):
        if isinstance(structure, str):
            if mat_size is None:
                raise ValueError("mat_size is required when structure is a name")
            structure = get_structure(structure, mat_size)
        self.structure = structure
        self.codec = CholeskyCodec(structure, use_closed_form=use_closed_form)
        self.mat_size = structure.mat_size
        self.n_params = structure.n_params
        self.n_outputs = self.hv_size = structure.hv_size
        self.row_inds, self.col_inds = packing_indices(self.mat_size)

    def __repr__(self):
        return f"ParameterTransform({self.structure!r})"

    @property
    def param_names(self):
        return self.structure.param_names

    @property
    def output_names(self):
        return [f"L_{r+1}_{c+1}" for r, c in zip(self.row_inds, self.col_inds)]

    def validate(self, params):
        return self.structure.validate(params)

    def domain(self):
        return self.structure.domain()

    def box_constraints(self):
        return self.structure.box_constraints()

    def default_params(self):
        return self.structure.default_params()

    def evaluate(self, params):
        """
        Packed cholesky factor of the covariance at params.

        Raises
        ------
        InvalidParameter
            If params are outside the family's domain, the covariance is
            not positive definite (NotPositiveDefinite), or the result is
            not finite.
        """
        theta = self.codec.encode(params)
        if not np.all(np.isfinite(theta)):
            raise InvalidParameter(f"{self!r}: non-finite cholesky factor", params)
        return theta

    def covariance(self, params):
        return self.structure.cov(params)

    def factor(self, params):
        return self.codec.factor(params)

    def _chol_derivs(self, params, order):
        params = self.validate(params)
        k = self.n_params
        S = self.structure._cov(params)
        dS = self.structure._dcov(params)
        if order > 1:
            d2S = self.structure._d2cov(params)
        else:
            d2S = np.zeros(S.shape + (k, k))
        return dchol(S, dS, d2S, order=order)

    def analytic_jacobian(self, params):
        """
        Exact Jacobian of ``evaluate``, a (k, m) array in the same layout
        as ``jacobian``
        """
        if isinstance(self.structure, Unstructured):
            self.validate(params)
            return np.eye(self.n_params)
        _, dL, _ = self._chol_derivs(params, order=1)
        dtheta = dL[self.row_inds, self.col_inds]
        return dtheta.T

    def analytic_hessian(self, params):
        """
        Exact second derivatives of ``evaluate``, an (m, k, k) array
        """
        if isinstance(self.structure, Unstructured):
            self.validate(params)
            return np.zeros((self.n_outputs, self.n_params, self.n_params))
        _, _, d2L = self._chol_derivs(params, order=2)
        return d2L[self.row_inds, self.col_inds]


class FreeParameters(TransformBase):
    """
    Identity transform for model parameters unrelated to a covariance
    structure, e.g. a residual log variance, so that they can be carried
    through a CombinedTransform.

    Parameters
    ----------
    n_params : int
        Number of parameters.
    lower, upper : array-like, optional
        Inclusive box constraints; unbounded by default.
    names : list of str, optional
        Parameter names.
    """
    def __init__(self, n_params, lower=None, upper=None, names=None):
        self.n_params = self.n_outputs = int(n_params)
        lower = -np.inf if lower is None else lower
        upper = np.inf if upper is None else upper
        self.lower = np.broadcast_to(as_float_vector(lower), (self.n_params,)).copy()
        self.upper = np.broadcast_to(as_float_vector(upper), (self.n_params,)).copy()
        if np.any(self.lower > self.upper):
            raise ValueError("lower bounds must not exceed upper bounds")
        if names is None:
            names = [f"x{i+1}" for i in range(self.n_params)]
        self.names = list(names)

    def __repr__(self):
        return f"FreeParameters(n_params={self.n_params})"

    @property
    def param_names(self):
        return self.names

    @property
    def output_names(self):
        return self.names

    def validate(self, params):
        params = as_float_vector(params).copy()
        if len(params) != self.n_params:
            raise InvalidParameter(f"{self!r} takes {self.n_params} parameters, "
                                   f"got {len(params)}", params)
        if not np.all(np.isfinite(params)):
            raise InvalidParameter(f"{self!r}: non-finite parameter", params)
        if np.any((params < self.lower) | (params > self.upper)):
            raise InvalidParameter(f"{self!r}: parameters outside bounds", params)
        return params

    def evaluate(self, params):
        return self.validate(params)

    def domain(self):
        # steps may touch but not cross the bounds
        return self.lower - 1e-12 * (1 + np.abs(self.lower)), \
            self.upper + 1e-12 * (1 + np.abs(self.upper))

    def box_constraints(self):
        return self.lower.copy(), self.upper.copy()

    def default_params(self):
        return np.clip(np.zeros(self.n_params), self.lower, self.upper)

    def analytic_jacobian(self, params):
        self.validate(params)
        return np.eye(self.n_params)

    def analytic_hessian(self, params):
        self.validate(params)
        return np.zeros((self.n_params, self.n_params, self.n_params))


class CombinedTransform(TransformBase):
    """
    Concatenation of several transforms, one per random effect term plus
    any FreeParameters blocks.  Shape parameters and outputs are stacked
    in the order the transforms are given.

    Parameters
    ----------
    transforms : list
        ParameterTransform or FreeParameters instances.
    labels : list of str, optional
        Prefixes for parameter names, defaults to 'term1', 'term2', ...
    """
    def __init__(self, transforms, labels=None):
        self.transforms = list(transforms)
        if labels is None:
            labels = [f"term{i+1}" for i in range(len(self.transforms))]
        if len(labels) != len(self.transforms):
            raise ValueError("One label per transform is required")
        self.labels = list(labels)
        self.index_ranges = index_ranges([t.n_params for t in self.transforms])
        self.output_ranges = index_ranges([t.n_outputs for t in self.transforms])
        self.n_params = int(sum(t.n_params for t in self.transforms))
        self.n_outputs = int(sum(t.n_outputs for t in self.transforms))

    def __repr__(self):
        return f"CombinedTransform({self.transforms!r})"

    @property
    def param_names(self):
        return [f"{lab}.{name}" for lab, t in zip(self.labels, self.transforms)
                for name in t.param_names]

    @property
    def output_names(self):
        return [f"{lab}.{name}" for lab, t in zip(self.labels, self.transforms)
                for name in t.output_names]

    def split(self, params):
        params = as_float_vector(params)
        return [params[a:b] for a, b in self.index_ranges]

    def validate(self, params):
        params = as_float_vector(params).copy()
        if len(params) != self.n_params:
            raise InvalidParameter(f"{self!r} takes {self.n_params} parameters, "
                                   f"got {len(params)}", params)
        for t, x in zip(self.transforms, self.split(params)):
            t.validate(x)
        return params

    def evaluate(self, params):
        params = self.validate(params)
        return np.concatenate([t.evaluate(x) for t, x in
                               zip(self.transforms, self.split(params))])

    def domain(self):
        lbs, ubs = zip(*[t.domain() for t in self.transforms])
        return np.concatenate(lbs), np.concatenate(ubs)

    def box_constraints(self):
        lbs, ubs = zip(*[t.box_constraints() for t in self.transforms])
        return np.concatenate(lbs), np.concatenate(ubs)

    def default_params(self):
        return np.concatenate([t.default_params() for t in self.transforms])

    def analytic_jacobian(self, params):
        params = self.validate(params)
        blocks = [t.analytic_jacobian(x) for t, x in
                  zip(self.transforms, self.split(params))]
        return sp.linalg.block_diag(*blocks)

    def analytic_hessian(self, params):
        params = self.validate(params)
        H = np.zeros((self.n_outputs, self.n_params, self.n_params))
        for t, x, (a, b), (c, d) in zip(self.transforms, self.split(params),
                                        self.index_ranges, self.output_ranges):
            H[c:d, a:b, a:b] = t.analytic_hessian(x)
        return H


def box_constraints(structure, mat_size):
    """
    (lower, upper) bounds for a covariance family.  An optimizer that
    stays within them never produces an invalid trial point.

    Parameters
    ----------
    structure : str or CovarianceStructure
        Family name or instance.
    mat_size : int
        Dimension of the covariance matrix.
    """
    if isinstance(structure, str):
        structure = get_structure(structure, mat_size)
    elif structure.mat_size != mat_size:
        structure = type(structure)(mat_size)
    return structure.box_constraints()


def sd_corr_metric(structure):
    """
    Function of the shape parameters returning the p standard deviations
    followed by the p(p-1)/2 correlations, the latter in packing order
    (column by column below the diagonal).
    """
    p = structure.mat_size
    c, r = np.triu_indices(p, k=1)

    def metric(params):
        S = structure.cov(params)
        sd = np.sqrt(np.diag(S))
        R = S / np.outer(sd, sd)
        return np.r_[sd, R[r, c]]
    return metric


def cov_metric(structure):
    """Function of the shape parameters returning vech of the covariance"""
    def metric(params):
        return vech(structure.cov(params))
    return metric
