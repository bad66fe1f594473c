#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Tue May 19 21:42:34 2020

@author: lukepinkel
"""
import copy

LBFGSB_options = dict(maxfun=5000, maxiter=5000, gtol=1e-8)
SLSQP_options = dict(disp=False, maxiter=1000)
TrustConstr_options = dict(verbose=0, gtol=1e-8, xtol=1e-10)
default_opts = {'l-bfgs-b':LBFGSB_options,
                'slsqp':SLSQP_options,
                'trust-constr':TrustConstr_options}

bounded_methods = ('l-bfgs-b', 'slsqp', 'trust-constr', 'tnc', 'powell',
                   'nelder-mead')
gradient_methods = ('l-bfgs-b', 'slsqp', 'trust-constr', 'tnc')


def process_optimizer_kwargs(optimizer_kwargs, default_method='L-BFGS-B'):
    """
    Fill in the optimizer method, its default options and a central
    difference gradient without overriding anything the caller supplied.

    Parameters
    ----------
    optimizer_kwargs : dict or None
        Keyword arguments destined for scipy.optimize.minimize.
    default_method : str
        Method used when none is given.

    Returns
    -------
    optimizer_kwargs : dict
        A new dictionary; the argument is not modified.
    """
    optimizer_kwargs = {} if optimizer_kwargs is None else copy.deepcopy(optimizer_kwargs)
    keys = optimizer_kwargs.keys()

    if 'method' not in keys:
        optimizer_kwargs['method'] = default_method

    method = optimizer_kwargs['method'].lower()
    if method not in bounded_methods:
        raise ValueError(f"Method '{optimizer_kwargs['method']}' does not "
                         f"support box constraints")
    if method in gradient_methods and 'jac' not in keys:
        optimizer_kwargs['jac'] = '3-point'
    defaults = default_opts.get(method, {})
    if 'options' not in keys:
        optimizer_kwargs['options'] = dict(defaults)
    else:
        options_keys = optimizer_kwargs['options'].keys()
        for dfkey, dfval in defaults.items():
            if dfkey not in options_keys:
                optimizer_kwargs['options'][dfkey] = dfval
    return optimizer_kwargs
