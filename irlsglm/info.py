""" This file contains defines parameters for irlsglm that we use to fill
settings in setup.py.
"""

CLASSIFIERS = ["Development Status :: 3 - Alpha",
               "Environment :: Console",
               "Intended Audience :: Science/Research",
               "License :: OSI Approved :: BSD License",
               "Operating System :: OS Independent",
               "Programming Language :: Python",
               "Programming Language :: Python :: 3",
               "Topic :: Scientific/Engineering"]

description  = 'Generalized linear models fit by IRLS with step-halving'

# versions
VERSION = '0.1.0'
NUMPY_MIN_VERSION = '1.22'
SCIPY_MIN_VERSION = '1.8'
PANDAS_MIN_VERSION = '1.4'
SKLEARN_MIN_VERSION = '1.1'
STATSMODELS_MIN_VERSION = '0.13'

NAME                = 'irlsglm'
MAINTAINER          = "irlsglm developers"
MAINTAINER_EMAIL    = ""
DESCRIPTION         = description
LICENSE             = "BSD license"
AUTHOR              = "irlsglm developers"
AUTHOR_EMAIL        = ""
PLATFORMS           = "OS Independent"
STATUS              = 'alpha'
PYTHON_REQUIRES     = '>=3.8'
REQUIRES            = ["numpy>=%s" % NUMPY_MIN_VERSION,
                       "scipy>=%s" % SCIPY_MIN_VERSION,
                       "pandas>=%s" % PANDAS_MIN_VERSION,
                       "scikit-learn>=%s" % SKLEARN_MIN_VERSION,
                       "statsmodels>=%s" % STATSMODELS_MIN_VERSION,
                       ]
TEST_REQUIRES       = ["pytest"]
