#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Created on Tue Oct 13 08:41:02 2026

@author: lukepinkel
"""

import setuptools

setuptools.setup(
    name="pycovstruct",
    version="0.1.0",
    packages=setuptools.find_packages(),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.8',
    install_requires=[
        'numpy>=1.21',
        'numba>=0.55',
        'scipy>=1.8',
        'pandas>=1.3'
        ],
    extras_require={
        'test': ['pytest>=7.0'],
        },
)
