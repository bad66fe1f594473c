#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Sat May 23 03:54:38 2020

@author: lukepinkel
"""
import numpy as np
import scipy as sp
import scipy.stats
import pandas as pd


def get_param_table(params,
                    se_params,
                    index=None,
                    parameter_label=None,
                    pdist=None,
                    alpha=0.05):
    """
    Creates a parameter summary table with Wald confidence intervals.

    Parameters
    ----------
    params : array-like
        A 1D array of parameter estimates.
    se_params : array-like
        A 1D array of standard errors corresponding to the parameter estimates.
    index : array-like, optional
        The index for the resulting DataFrame, usually parameter names.
    parameter_label : str, optional
        The label for the parameter column in the resulting DataFrame. Default is 'estimate'.
    pdist : scipy.stats.rv_continuous, optional
        The distribution used for the confidence intervals.  Default is
        the standard normal.
    alpha : float, optional
        The significance level for the confidence intervals. Default is 0.05.

    Returns
    -------
    df : pandas.DataFrame
        A DataFrame containing the parameter summary table with confidence intervals.
    """
    parameter_label = 'estimate' if parameter_label is None else parameter_label
    pdist = sp.stats.norm() if pdist is None else pdist
    arr = np.column_stack((np.asarray(params, dtype=float).reshape(-1),
                           np.asarray(se_params, dtype=float).reshape(-1)))
    df = pd.DataFrame(arr, index=index, columns=[parameter_label, 'SE'])
    ci_lower = df[parameter_label] + pdist.ppf(alpha/2) * df["SE"]
    ci_upper = df[parameter_label] + pdist.ppf(1 - alpha/2) * df["SE"]
    ci_label = f"CI{100*(1-alpha):g}"
    df[[f"Lower{ci_label}", f"Upper{ci_label}"]] = np.column_stack((ci_lower, ci_upper))
    return df
