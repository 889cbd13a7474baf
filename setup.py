#!/usr/bin/env python
# -*- coding: utf-8 -*-

import io
import os

from setuptools import find_packages, setup

# Package meta-data.
NAME = 'scoregrid'
DESCRIPTION = 'Normalize partwise MusicXML into timewise measures of voices and note events'
KEYWORDS = 'music notation musicxml'
REQUIRES_PYTHON = '>=3.8'
VERSION = '0.1.0'

# What packages are required for this module to be executed?
REQUIRED = [
    'numpy',
    'lxml',
]

# What packages are optional?
EXTRAS = {
    'test': ['pytest'],
}

here = os.path.abspath(os.path.dirname(__file__))

# Import the README and use it as the long-description.
try:
    with io.open(os.path.join(here, 'README.rst'), encoding='utf-8') as f:
        long_description = '\n' + f.read()
except FileNotFoundError:
    long_description = DESCRIPTION


# Where the magic happens:
setup(
    name=NAME,
    version=VERSION,
    description=DESCRIPTION,
    long_description=long_description,
    long_description_content_type='text/x-rst',
    keywords=KEYWORDS,
    python_requires=REQUIRES_PYTHON,
    packages=find_packages(exclude=('tests', 'tests.*')),
    install_requires=REQUIRED,
    extras_require=EXTRAS,
    include_package_data=True,
    license='Apache 2.0',
    classifiers=[
        # Trove classifiers
        # Full list: https://pypi.python.org/pypi?%3Aaction=list_classifiers
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: Implementation :: CPython',
    ],
)
