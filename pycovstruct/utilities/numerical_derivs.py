#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Sat Jun  6 14:40:17 2020

@author: lukepinkel
"""
import numpy as np


def step_sizes(x, d=1e-4, eps=1e-4, tol=None, bounds=None):
    """
    Finite difference step sizes.

    Parameters
    ----------
    x : ndarray
        Point at which derivatives are taken.
    d : float
        Relative step.
    eps : float
        Absolute step used for entries of x smaller in magnitude than tol.
    tol : float, optional
        Threshold below which the absolute step is added.  Defaults to
        machine epsilon to the power 1/3.
    bounds : tuple of ndarray, optional
        (lower, upper) limits of the domain of the function.  Steps are
        shrunk to at most half the distance from x to the nearest limit
        so that x - h and x + h stay inside.

    Returns
    -------
    h : ndarray
        Step sizes, same shape as x.
    """
    tol = np.finfo(float).eps**(1/3) if tol is None else tol
    h = np.abs(d * x) + eps * (np.abs(x) < tol)
    if bounds is not None:
        lb, ub = bounds
        room = np.minimum(x - np.asarray(lb, dtype=float),
                          np.asarray(ub, dtype=float) - x)
        if np.any(room <= 0):
            raise ValueError("x lies on or outside the boundary of the domain")
        h = np.minimum(h, room / 2.0)
    return h


def jac_approx(f, x, eps=1e-4, tol=None, d=1e-4, nr=6, v=2, bounds=None):
    """
    Central difference Jacobian with Richardson extrapolation.

    Parameters
    ----------
    f : callable
        Function of a vector returning a scalar or an array.
    x : ndarray
        Vector of length n.

    Returns
    -------
    J : ndarray
        Array of shape (n,) + shape(f(x)), with J[i] the derivative of
        f with respect to x[i].
    """
    x = np.asarray(x, dtype=float)
    h = step_sizes(x, d=d, eps=eps, tol=tol, bounds=bounds)
    n = len(x)
    y = np.asarray(f(x))
    u = np.zeros_like(h)
    A = np.zeros((nr, n) + y.shape)
    for i in range(nr):
        for j in range(n):
            u[j] = h[j]
            A[i, j] = (np.asarray(f(x + u)) - np.asarray(f(x - u))) / (2.0 * h[j])
            u[j] = 0.0
        h /= v
    for i in range(nr-1):
        t = 4**(i+1)
        A = (A[1:(nr-i)]*t - A[:(nr-i-1)]) / (t-1.0)
    return A[0]


def _hess_approx(f, x, a_eps=1e-2, r_eps=1e-2, xtol=None, nr=4, s=2, bounds=None):
    d = step_sizes(x, d=r_eps, eps=a_eps, tol=xtol, bounds=bounds)
    y = f(x)
    u = np.zeros_like(d)
    v = np.zeros_like(d)
    nx, ny = len(x), len(y)
    D = np.zeros((ny, int(nx * (nx + 3) // 2)))
    Da = np.zeros((ny, nr))
    Hd = np.zeros((ny, nx))
    Ha = np.zeros((ny, nr))

    for i in range(nx):
        h = d.copy()
        u[i] = 1.0
        for j in range(nr):
            fp, fn = f(x+h*u), f(x-h*u)
            Da[:, j] = (fp - fn) / (2 * h[i])
            Ha[:, j] = (fp + fn - 2.0 * y) / (h[i]**2)
            h /= s
        for j in range(nr-1):
            for k in range(nr-j-1):
                t = 4**(j+1)
                Da[:, k] = (Da[:, k+1] * t - Da[:, k]) / (t - 1.0)
                Ha[:, k] = (Ha[:, k+1] * t - Ha[:, k]) / (t - 1.0)
        D[:, i] = Da[:, 0]
        Hd[:, i] = Ha[:,0]
        u[i] = 0.0

    c = nx-1
    for i in range(nx):
        for j in range(i+1):
            c += 1
            if (i==j):
                D[:, c] = Hd[:, i]
            else:
                h = d.copy()
                u[i] = 1.0
                v[j] = 1.0
                for m in range(nr):
                    fp = f(x + u*h + v*h)
                    fn = f(x - u*h - v*h)
                    fii = Hd[:, i] * h[i]**2
                    fjj = Hd[:, j] * h[j]**2
                    Da[:, m] = (fp - 2.0 * y + fn - fii - fjj) / (2.0 * h[i] * h[j])
                    h /= s
                for m in range(nr-1):
                    for k in range(nr-m-1):
                        t = 4**(m+1)
                        Da[:, k] = (Da[:, k+1]*t - Da[:, k]) / (t - 1.0)
                D[:, c] = Da[:, 0]
                u[i] = v[j] = 0.0
    return D


def hess_approx(f, x, a_eps=1e-2, r_eps=1e-2, xtol=None, nr=4, s=2, bounds=None):
    """
    Second derivatives of a vector valued function.

    Returns
    -------
    H : ndarray
        Array of shape (len(f(x)), len(x), len(x)); scalar functions
        are treated as functions returning a length one vector.
    """
    x = np.asarray(x, dtype=float)
    fv = lambda z: np.atleast_1d(np.asarray(f(z), dtype=float)).reshape(-1)
    D = _hess_approx(fv, x, a_eps, r_eps, xtol, nr, s, bounds)
    nx, ny = len(x), D.shape[0]
    H = np.zeros((ny, nx, nx))
    k = nx - 1
    for i in range(nx):
        for j in range(i+1):
            k+=1
            H[:, i, j] = H[:, j, i] = D[:, k]
    return H
