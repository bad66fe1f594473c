#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Fri Aug 14 10:21:37 2020

@author: lukepinkel
"""
import numpy as np


def handle_default_kws(kws, default_kws):
    """
    Return a dictionary that includes default keyword arguments as well as custom keyword arguments.

    Parameters
    ----------
    kws : dict or None
        The dictionary of custom keyword arguments
    default_kws : dict
        The dictionary of default keyword arguments

    Returns
    -------
    dict
        A dictionary that includes both the default and custom keyword arguments
    """
    kws = {} if kws is None else kws
    kws = {**default_kws, **kws}
    return kws


def as_float_vector(x):
    x = np.asarray(x, dtype=float)
    if x.ndim == 0:
        x = x.reshape(1)
    return x.reshape(-1)


def index_ranges(sizes):
    """
    Consecutive (start, stop) pairs for blocks of the given sizes
    """
    stops = np.cumsum(sizes).astype(int)
    starts = np.r_[0, stops[:-1]].astype(int)
    return list(zip(starts, stops))
