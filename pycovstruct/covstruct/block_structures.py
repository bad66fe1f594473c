#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Fri Oct 16 09:47:30 2026

@author: lukepinkel
"""
import numpy as np
import scipy as sp
import scipy.sparse
from .cholesky_codec import CholeskyCodec, decompose
from .shapes import CovarianceStructure


class KroneckerProduct(CovarianceStructure):
    """
    Separable covariance A (x) B, e.g. an unstructured covariance over
    outcomes crossed with an AR1 over time.  The shape parameters are
    those of A followed by those of B.

    Both factors carry a scale, so A (x) B is unchanged when A is
    multiplied and B divided by the same constant; a deviance in these
    parameters has a flat direction unless one scale is held fixed by
    the caller.

    Parameters
    ----------
    a, b : CovarianceStructure
        Left and right factors.
    """
    name = "kronecker"

    def __init__(self, a, b):
        self.a, self.b = a, b
        super().__init__(a.mat_size * b.mat_size)
        self._ka = a.n_params

    def __repr__(self):
        return f"KroneckerProduct({self.a!r}, {self.b!r})"

    @property
    def n_params(self):
        return self.a.n_params + self.b.n_params

    @property
    def param_names(self):
        return [f"A.{name}" for name in self.a.param_names] + \
            [f"B.{name}" for name in self.b.param_names]

    def split(self, params):
        return params[:self._ka], params[self._ka:]

    def domain(self):
        (la, ua), (lb, ub) = self.a.domain(), self.b.domain()
        return np.r_[la, lb], np.r_[ua, ub]

    def box_constraints(self):
        (la, ua), (lb, ub) = self.a.box_constraints(), self.b.box_constraints()
        return np.r_[la, lb], np.r_[ua, ub]

    def default_params(self):
        return np.r_[self.a.default_params(), self.b.default_params()]

    def _check_domain(self, params):
        pa, pb = self.split(params)
        self.a._check_domain(pa)
        self.b._check_domain(pb)

    def _factor(self, structure, params):
        L = structure.closed_form_chol(params)
        if L is None:
            L = decompose(structure._cov(params))
        return L

    def closed_form_chol(self, params):
        pa, pb = self.split(params)
        return np.kron(self._factor(self.a, pa), self._factor(self.b, pb))

    def _cov(self, params):
        pa, pb = self.split(params)
        return np.kron(self.a._cov(pa), self.b._cov(pb))

    def _dcov(self, params):
        pa, pb = self.split(params)
        A, B = self.a._cov(pa), self.b._cov(pb)
        dA, dB = self.a._dcov(pa), self.b._dcov(pb)
        n, ka = self.mat_size, self._ka
        dS = np.zeros((n, n, self.n_params))
        for i in range(ka):
            dS[:, :, i] = np.kron(dA[:, :, i], B)
        for j in range(self.b.n_params):
            dS[:, :, ka+j] = np.kron(A, dB[:, :, j])
        return dS

    def _d2cov(self, params):
        pa, pb = self.split(params)
        A, B = self.a._cov(pa), self.b._cov(pb)
        dA, dB = self.a._dcov(pa), self.b._dcov(pb)
        d2A, d2B = self.a._d2cov(pa), self.b._d2cov(pb)
        n, ka, kb = self.mat_size, self._ka, self.b.n_params
        d2S = np.zeros((n, n, self.n_params, self.n_params))
        for i in range(ka):
            for j in range(ka):
                d2S[:, :, i, j] = np.kron(d2A[:, :, i, j], B)
            for j in range(kb):
                d2S[:, :, i, ka+j] = np.kron(dA[:, :, i], dB[:, :, j])
                d2S[:, :, ka+j, i] = d2S[:, :, i, ka+j]
        for i in range(kb):
            for j in range(kb):
                d2S[:, :, ka+i, ka+j] = np.kron(A, d2B[:, :, i, j])
        return d2S


class BlockDiagonal(object):
    """
    Covariance of n_blocks independent groups sharing one structured
    covariance, I_n (x) Sigma, held as a sparse matrix.

    Parameters
    ----------
    structure : CovarianceStructure
        Covariance of a single group.
    n_blocks : int
        Number of groups.
    use_closed_form : bool
        Passed to the CholeskyCodec that factors Sigma.
    """
    def __init__(self, structure, n_blocks, use_closed_form=True):
        n_blocks = int(n_blocks)
        if n_blocks < 1:
            raise ValueError("n_blocks must be a positive integer")
        self.structure = structure
        self.n_blocks = n_blocks
        self.codec = CholeskyCodec(structure, use_closed_form=use_closed_form)
        self.block_size = structure.mat_size
        self.mat_size = n_blocks * structure.mat_size
        self.n_params = structure.n_params
        self._eye = sp.sparse.eye(n_blocks, format="csc")

    def __repr__(self):
        return f"BlockDiagonal({self.structure!r}, n_blocks={self.n_blocks})"

    def cov(self, params):
        """Sparse (n p, n p) covariance I_n (x) Sigma"""
        S = self.structure.cov(params)
        return sp.sparse.kron(self._eye, sp.sparse.csc_matrix(S), format="csc")

    def chol(self, params):
        """Sparse lower cholesky factor I_n (x) L"""
        L = self.codec.factor(params)
        return sp.sparse.kron(self._eye, sp.sparse.csc_matrix(L), format="csc")

    def tiled_factor(self, params):
        """
        Packed factor of Sigma repeated once per group, the data array of
        a block diagonal factor whose blocks are stored in packing order
        """
        return np.tile(self.codec.encode(params), self.n_blocks)

    def logdet(self, params):
        L = self.codec.factor(params)
        return 2.0 * self.n_blocks * np.sum(np.log(np.diag(L)))
