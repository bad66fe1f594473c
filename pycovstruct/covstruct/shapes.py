#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Tue Oct 13 09:02:44 2026

@author: lukepinkel

Parametric covariance families.  Each family maps a short vector of
interpretable shape parameters (standard deviations and at most one
correlation) onto a dense p x p covariance matrix, and supplies the
first and second derivatives of that matrix with respect to the shape
parameters.

Parameter layouts
-----------------
IdentityMultiple               [sigma]
Diagonal                       [sigma_1, ..., sigma_p]
AR1Homogeneous                 [sigma, phi]
AR1Heterogeneous               [sigma_1, ..., sigma_p, phi]
CompoundSymmetryHomogeneous    [sigma, rho]
CompoundSymmetryHeterogeneous  [sigma_1, ..., sigma_p, rho]
Unstructured                   vech(L), column-major lower triangle
"""
import numpy as np
from abc import ABC, abstractmethod
from ..exceptions import InvalidParameter
from ..utilities.func_utils import as_float_vector
from ..utilities.linalg_operations import (ar1_chol, hv_indices, invech_chol,
                                           lag_matrix, mat_size_to_hv_size)

SCALE_EPS = 1e-6
CORR_EPS = 1e-6
BOX_EPS = 1e-4


class CovarianceStructure(ABC):
    """
    Base class for covariance families.

    Parameters
    ----------
    mat_size : int
        Dimension p of the covariance matrix, i.e. the number of
        correlated levels within a group.
    """
    name = None

    def __init__(self, mat_size):
        mat_size = int(mat_size)
        if mat_size < 1:
            raise ValueError("mat_size must be a positive integer")
        self.mat_size = mat_size
        self.hv_size = mat_size_to_hv_size(mat_size)

    def __repr__(self):
        return f"{self.__class__.__name__}(mat_size={self.mat_size})"

    @property
    @abstractmethod
    def n_params(self):
        """Number of free shape parameters k(p)"""
        pass

    @property
    @abstractmethod
    def param_names(self):
        pass

    @abstractmethod
    def domain(self):
        """(lower, upper) arrays of the open parameter domain"""
        pass

    @abstractmethod
    def box_constraints(self):
        """(lower, upper) arrays an optimizer may search within"""
        pass

    @abstractmethod
    def default_params(self):
        pass

    @abstractmethod
    def _cov(self, params):
        pass

    @abstractmethod
    def _dcov(self, params):
        pass

    @abstractmethod
    def _d2cov(self, params):
        pass

    def closed_form_chol(self, params):
        """
        Cholesky factor of cov(params) when the family has one in
        closed form, otherwise None.  Called with validated params.
        """
        return None

    def _check_domain(self, params):
        lb, ub = self.domain()
        bad = ~((params > lb) & (params < ub))
        if np.any(bad):
            names = [self.param_names[i] for i in np.flatnonzero(bad)]
            raise InvalidParameter(f"{self!r}: parameters {names} are outside "
                                   f"the domain", params)

    def validate(self, params):
        """
        Check a shape parameter vector against the family's domain.

        Returns
        -------
        params : ndarray
            A float copy of the parameters.

        Raises
        ------
        InvalidParameter
            On a length mismatch, a non-finite entry, or an entry outside
            the family's domain.
        """
        params = as_float_vector(params).copy()
        if len(params) != self.n_params:
            raise InvalidParameter(f"{self!r} takes {self.n_params} parameters, "
                                   f"got {len(params)}", params)
        if not np.all(np.isfinite(params)):
            raise InvalidParameter(f"{self!r}: non-finite parameter", params)
        self._check_domain(params)
        return params

    def bounds(self):
        """Box constraints as a list of (lower, upper) pairs, None for unbounded"""
        lb, ub = self.box_constraints()
        return [(None if np.isinf(a) else a, None if np.isinf(b) else b)
                for a, b in zip(lb, ub)]

    def cov(self, params):
        params = self.validate(params)
        return self._cov(params)

    def dcov(self, params):
        """(p, p, k) array of first derivatives of the covariance"""
        params = self.validate(params)
        return self._dcov(params)

    def d2cov(self, params):
        """(p, p, k, k) array of second derivatives of the covariance"""
        params = self.validate(params)
        return self._d2cov(params)


class ScaledCorrelation(CovarianceStructure):
    """
    Covariance of the form S R S with S = diag(s) a diagonal matrix of
    standard deviations and R a correlation matrix governed by at most
    one parameter.  Homogeneous families share one standard deviation
    across all levels.
    """
    homogeneous = True
    corr_name = None

    @property
    def n_scale(self):
        return 1 if self.homogeneous else self.mat_size

    @property
    def n_corr(self):
        return 0 if self.corr_name is None else 1

    @property
    def n_params(self):
        return self.n_scale + self.n_corr

    @property
    def param_names(self):
        if self.homogeneous:
            names = ["sigma"]
        else:
            names = [f"sigma_{i+1}" for i in range(self.mat_size)]
        if self.corr_name is not None:
            names.append(self.corr_name)
        return names

    def _corr_limits(self):
        return -1.0, 1.0

    def _corr_box(self):
        lo, hi = self._corr_limits()
        return lo + BOX_EPS, hi - BOX_EPS

    def domain(self):
        lb = np.r_[np.zeros(self.n_scale), np.full(self.n_corr, self._corr_limits()[0])]
        ub = np.r_[np.full(self.n_scale, np.inf), np.full(self.n_corr, self._corr_limits()[1])]
        return lb, ub

    def box_constraints(self):
        lb = np.r_[np.full(self.n_scale, SCALE_EPS), np.full(self.n_corr, self._corr_box()[0])]
        ub = np.r_[np.full(self.n_scale, np.inf), np.full(self.n_corr, self._corr_box()[1])]
        return lb, ub

    def default_params(self):
        return np.r_[np.ones(self.n_scale), np.zeros(self.n_corr)]

    def _check_domain(self, params):
        scales = params[:self.n_scale]
        if np.any(scales <= 0):
            raise InvalidParameter(f"{self!r}: standard deviations must be "
                                   f"positive", params)
        if self.n_corr > 0:
            self._check_corr(params[-1], params)

    def _check_corr(self, c, params):
        lo, hi = self._corr_limits()
        if not (lo < c < hi):
            raise InvalidParameter(f"{self!r}: {self.corr_name}={c} outside "
                                   f"({lo}, {hi})", params)

    def _scales(self, params):
        if self.homogeneous:
            return np.full(self.mat_size, params[0])
        return params[:self.mat_size]

    def _scale_jac(self):
        """(p, n_scale) matrix of ds_i / d(scale parameter)"""
        if self.homogeneous:
            return np.ones((self.mat_size, 1))
        return np.eye(self.mat_size)

    def _corr(self, c):
        return np.eye(self.mat_size)

    def _dcorr(self, c):
        return np.zeros((self.mat_size, self.mat_size))

    def _d2corr(self, c):
        return np.zeros((self.mat_size, self.mat_size))

    def _corr_param(self, params):
        return params[-1] if self.n_corr > 0 else None

    def _cov(self, params):
        s = self._scales(params)
        R = self._corr(self._corr_param(params))
        S = s[:, None] * R * s[None, :]
        return S

    def _dcov(self, params):
        p, k = self.mat_size, self.n_params
        s = self._scales(params)
        c = self._corr_param(params)
        R = self._corr(c)
        E = self._scale_jac()
        dS = np.zeros((p, p, k))
        for a in range(self.n_scale):
            e = E[:, a]
            dS[:, :, a] = (e[:, None] * s[None, :] + s[:, None] * e[None, :]) * R
        if self.n_corr > 0:
            dS[:, :, -1] = s[:, None] * self._dcorr(c) * s[None, :]
        return dS

    def _d2cov(self, params):
        p, k = self.mat_size, self.n_params
        s = self._scales(params)
        c = self._corr_param(params)
        R = self._corr(c)
        E = self._scale_jac()
        d2S = np.zeros((p, p, k, k))
        for a in range(self.n_scale):
            ea = E[:, a]
            for b in range(a+1):
                eb = E[:, b]
                d2S[:, :, a, b] = (ea[:, None] * eb[None, :] + eb[:, None] * ea[None, :]) * R
                d2S[:, :, b, a] = d2S[:, :, a, b]
        if self.n_corr > 0:
            dR = self._dcorr(c)
            for a in range(self.n_scale):
                ea = E[:, a]
                d2S[:, :, a, -1] = (ea[:, None] * s[None, :] + s[:, None] * ea[None, :]) * dR
                d2S[:, :, -1, a] = d2S[:, :, a, -1]
            d2S[:, :, -1, -1] = s[:, None] * self._d2corr(c) * s[None, :]
        return d2S


class IdentityMultiple(ScaledCorrelation):
    """sigma^2 * I"""
    name = "identity"
    homogeneous = True

    def closed_form_chol(self, params):
        return np.diag(self._scales(params))


class Diagonal(ScaledCorrelation):
    """diag(sigma_1^2, ..., sigma_p^2)"""
    name = "diagonal"
    homogeneous = False

    def closed_form_chol(self, params):
        return np.diag(self._scales(params))


class _AR1Mixin(object):
    """
    First order autoregressive correlation, R_ij = phi^|i-j|.  The
    correlation must satisfy |phi| <= 1 - CORR_EPS; the limiting matrix at
    |phi| = 1 is singular.
    """
    corr_name = "phi"

    def _check_corr(self, c, params):
        if not (abs(c) <= 1.0 - CORR_EPS):
            raise InvalidParameter(f"{self!r}: |phi| must be at most "
                                   f"{1.0 - CORR_EPS}, got phi={c}", params)

    def _lags(self):
        return lag_matrix(self.mat_size).astype(float)

    def _corr(self, c):
        return c**self._lags()

    def _dcorr(self, c):
        d = self._lags()
        return d * c**np.maximum(d - 1.0, 0.0)

    def _d2corr(self, c):
        d = self._lags()
        return d * (d - 1.0) * c**np.maximum(d - 2.0, 0.0)

    def closed_form_chol(self, params):
        s = self._scales(params)
        L = ar1_chol(self.mat_size, float(params[-1]))
        return s[:, None] * L


class AR1Homogeneous(_AR1Mixin, ScaledCorrelation):
    """sigma^2 * phi^|i-j|"""
    name = "ar1"
    homogeneous = True


class AR1Heterogeneous(_AR1Mixin, ScaledCorrelation):
    """sigma_i * sigma_j * phi^|i-j|"""
    name = "ar1_het"
    homogeneous = False


class _CompoundSymmetryMixin(object):
    """
    Exchangeable correlation, one common off diagonal value rho.  The
    matrix is positive definite iff -1/(p-1) < rho < 1; both limits are
    excluded (the lower one gives a zero eigenvalue).  With p = 1 there is
    no off diagonal and rho is confined to (-1, 1).
    """
    corr_name = "rho"

    def _corr_limits(self):
        p = self.mat_size
        lo = -1.0 / (p - 1) if p > 1 else -1.0
        return lo, 1.0

    def _corr(self, c):
        p = self.mat_size
        return (1.0 - c) * np.eye(p) + c * np.ones((p, p))

    def _dcorr(self, c):
        p = self.mat_size
        return np.ones((p, p)) - np.eye(p)

    def _d2corr(self, c):
        return np.zeros((self.mat_size, self.mat_size))


class CompoundSymmetryHomogeneous(_CompoundSymmetryMixin, ScaledCorrelation):
    """sigma^2 on the diagonal, sigma^2 * rho off it"""
    name = "cs"
    homogeneous = True


class CompoundSymmetryHeterogeneous(_CompoundSymmetryMixin, ScaledCorrelation):
    """sigma_i^2 on the diagonal, sigma_i * sigma_j * rho off it"""
    name = "cs_het"
    homogeneous = False


class Unstructured(CovarianceStructure):
    """
    General covariance parameterized directly by the lower triangle of its
    cholesky factor, packed column by column.  Diagonal entries must be
    non-negative; off diagonal entries are unrestricted.
    """
    name = "unstructured"

    def __init__(self, mat_size):
        super().__init__(mat_size)
        self.row_inds, self.col_inds = hv_indices(self.mat_size)
        self.diag_inds, = np.where(self.row_inds==self.col_inds)
        self.tril_inds, = np.where(self.row_inds!=self.col_inds)

    @property
    def n_params(self):
        return self.hv_size

    @property
    def param_names(self):
        return [f"L_{r+1}_{c+1}" for r, c in zip(self.row_inds, self.col_inds)]

    def domain(self):
        lb = np.full(self.hv_size, -np.inf)
        lb[self.diag_inds] = 0.0
        ub = np.full(self.hv_size, np.inf)
        return lb, ub

    def box_constraints(self):
        lb, ub = self.domain()
        lb[self.diag_inds] = SCALE_EPS
        return lb, ub

    def default_params(self):
        x = np.zeros(self.hv_size)
        x[self.diag_inds] = 1.0
        return x

    def _check_domain(self, params):
        if np.any(params[self.diag_inds] < 0):
            raise InvalidParameter(f"{self!r}: diagonal of the cholesky factor "
                                   f"must be non-negative", params)

    def closed_form_chol(self, params):
        return invech_chol(params)

    def _cov(self, params):
        L = invech_chol(params)
        return L.dot(L.T)

    def _unit_factors(self):
        p, m = self.mat_size, self.hv_size
        E = np.zeros((m, p, p))
        E[np.arange(m), self.row_inds, self.col_inds] = 1.0
        return E

    def _dcov(self, params):
        L = invech_chol(params)
        E = self._unit_factors()
        dS = np.einsum("aij,kj->ika", E, L) + np.einsum("ij,akj->ika", L, E)
        return dS

    def _d2cov(self, params):
        E = self._unit_factors()
        EEt = np.einsum("aij,bkj->ikab", E, E)
        d2S = EEt + np.swapaxes(EEt, 2, 3)
        return d2S


_STRUCTURES = {cls.name: cls for cls in [IdentityMultiple, Diagonal,
                                         AR1Homogeneous, AR1Heterogeneous,
                                         CompoundSymmetryHomogeneous,
                                         CompoundSymmetryHeterogeneous,
                                         Unstructured]}


def get_structure(name, mat_size):
    """
    Construct a covariance family by name.

    Parameters
    ----------
    name : str
        One of 'identity', 'diagonal', 'ar1', 'ar1_het', 'cs', 'cs_het',
        'unstructured' (case insensitive).
    mat_size : int
        Dimension of the covariance matrix.
    """
    key = name.strip().lower()
    if key not in _STRUCTURES:
        raise ValueError(f"Unknown covariance structure '{name}'. Choose from: "
                         f"{sorted(_STRUCTURES)}")
    return _STRUCTURES[key](mat_size)


def build_covariance(structure, params, mat_size=None):
    """
    Dense covariance of a family at the given shape parameters.

    Parameters
    ----------
    structure : str or CovarianceStructure
        Family name (then mat_size is required) or instance.
    params : array-like
        Shape parameters.
    mat_size : int, optional
        Dimension when structure is given by name.
    """
    if isinstance(structure, str):
        if mat_size is None:
            raise ValueError("mat_size is required when structure is a name")
        structure = get_structure(structure, mat_size)
    return structure.cov(params)
