#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Mon Oct 12 20:14:05 2026

@author: lukepinkel
"""


class CovarianceStructureError(ValueError):
    """Base class for errors raised by covariance structures"""
    pass


class InvalidParameter(CovarianceStructureError):
    """
    A shape parameter lies outside the domain of its covariance family,
    or a transform evaluated to a non-finite value.

    Parameters
    ----------
    message : str
        Description of the violation.
    params : array-like, optional
        The offending parameter vector.
    """
    def __init__(self, message, params=None):
        super().__init__(message)
        self.params = params


class NotPositiveDefinite(InvalidParameter):
    """
    Cholesky decomposition failed.  Always traceable to an invalid shape
    parameter or to floating point trouble close to the domain boundary.
    """
    pass


class DidNotConverge(RuntimeError):
    """
    The optimizer reported failure.

    Parameters
    ----------
    message : str
        Description, usually the optimizer's own message.
    optimizer : scipy.optimize.OptimizeResult, optional
        The result object returned by the optimizer.
    """
    def __init__(self, message, optimizer=None):
        super().__init__(message)
        self.optimizer = optimizer
