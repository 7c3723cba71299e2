import pytest

import numpy as np
import pandas as pd
import scipy.sparse
import statsmodels.api as sm

from sklearn.base import clone
from sklearn.exceptions import NotFittedError

from irlsglm import (GLM,
                     GLMControl,
                     glm)
from irlsglm.errors import ConvergenceError

rng = np.random.default_rng(0)

def _poisson_data(n=150, p=4):
    X = rng.standard_normal((n, p))
    offset = rng.uniform(-0.3, 0.3, size=n)
    W = rng.uniform(0.5, 2, size=n)
    mu = np.exp(0.5 + X @ (np.arange(p) / (2 * p)) + offset)
    y = rng.poisson(mu).astype(float)
    return X, y, offset, W

@pytest.mark.parametrize('fit_intercept', [True, False])
@pytest.mark.parametrize('sample_weight', [True, False])
def test_poisson(fit_intercept, sample_weight):

    X, y, _, W = _poisson_data()
    W = W if sample_weight else None

    G = GLM(family='poisson',
            fit_intercept=fit_intercept,
            control=GLMControl(conv_tol=1e-10))
    G.fit(X, y, sample_weight=W)

    D = np.column_stack([np.ones(X.shape[0]), X]) if fit_intercept else X
    res = sm.GLM(y, D, family=sm.families.Poisson(), var_weights=W).fit(tol=1e-12)

    if fit_intercept:
        assert np.allclose(G.intercept_, res.params[0])
        assert np.allclose(G.coef_, res.params[1:])
    else:
        assert G.intercept_ == 0
        assert np.allclose(G.coef_, res.params)
    assert np.allclose(G.deviance_, res.deviance)
    assert G.df_resid_ == res.df_resid
    assert np.allclose(G.summary_['std err'], res.bse, rtol=1e-4)
    assert G.dispersion_ == 1

    eta = G.predict(X, prediction_type='link')
    assert np.allclose(eta, G.intercept_ + X @ G.coef_)
    assert np.allclose(G.predict(X), np.exp(eta))

def test_dataframe_columns():

    X, y, offset, W = _poisson_data()
    Df = pd.DataFrame({'response': y, 'offset': offset, 'weight': W})

    G = GLM(family=sm.families.Poisson(),
            offset_id='offset',
            weight_id='weight',
            response_id='response',
            control=GLMControl(conv_tol=1e-10))
    G.fit(X, Df)

    D = np.column_stack([np.ones(X.shape[0]), X])
    res = sm.GLM(y, D,
                 family=sm.families.Poisson(),
                 offset=offset,
                 var_weights=W).fit(tol=1e-12)
    assert np.allclose(np.hstack([G.intercept_, G.coef_]), res.params)

    with pytest.raises(ValueError):
        G.predict(X)
    assert np.allclose(G.predict(X, offset=offset), res.fittedvalues)

    # training data scores minus half the deviance
    assert np.allclose(G.score(X, y, sample_weight=W, offset=offset), -G.deviance_ / 2)

    with pytest.raises(ValueError):
        G.fit(X, Df, sample_weight=W)

def test_response_columns_array():

    X, y, offset, _ = _poisson_data()
    Y = np.column_stack([y, offset])
    G = GLM(family='poisson', offset_id=1, response_id=0).fit(X, Y)
    H = GLM(family='poisson').fit(X, pd.Series(y))
    assert G.model_.response.offset is not None
    assert H.model_.response.offset is None

    with pytest.raises(ValueError):
        GLM(family='poisson', offset_id=1).fit(X, y)

def test_feature_names():

    X, y, _, _ = _poisson_data(p=3)
    Xdf = pd.DataFrame(X, columns=['a', 'b', 'c'])
    G = GLM(family='poisson').fit(Xdf, y)
    assert G.feature_names_in_ == ['a', 'b', 'c']
    assert list(G.summary_.index) == ['intercept', 'a', 'b', 'c']

    G = GLM(family='poisson', fit_intercept=False).fit(X, y)
    assert list(G.summary_.index) == ['X0', 'X1', 'X2']

@pytest.mark.parametrize('link', ['logit', 'probit', 'cloglog'])
def test_binomial_link(link):

    n, p = 200, 3
    X = rng.standard_normal((n, p))
    y = rng.binomial(1, 0.4, size=n).astype(float)

    G = GLM(family='binomial', link=link, control=GLMControl(conv_tol=1e-10)).fit(X, y)
    M = glm(np.column_stack([np.ones(n), X]), y, family='binomial', link=link, conv_tol=1e-10)
    assert np.allclose(G.coef_, M.coef[1:])
    assert G.model_.family.link.tag == link

    prob = G.predict(X)
    assert np.all((prob > 0) & (prob < 1))

def test_sparse_design():

    X, y, _, _ = _poisson_data()
    G = GLM(family='poisson', control=GLMControl(conv_tol=1e-10)).fit(X, y)
    S = GLM(family='poisson', control=GLMControl(conv_tol=1e-10)).fit(scipy.sparse.csc_matrix(X), y)
    assert np.allclose(G.coef_, S.coef_)
    assert np.allclose(G.intercept_, S.intercept_)
    assert np.allclose(G.predict(X), S.predict(scipy.sparse.csc_matrix(X)))

def test_clone():

    G = GLM(family='gamma', link='log', control=GLMControl(max_iter=50))
    C = clone(G)
    assert C.family == 'gamma' and C.link == 'log'
    assert C.control == G.control and C.control is not G.control
    assert C.get_params()['control'].max_iter == 50

def test_control_and_warm_state():

    X, y, _, _ = _poisson_data()
    with pytest.raises(ConvergenceError):
        GLM(family='poisson', control=GLMControl(max_iter=1, conv_tol=1e-12)).fit(X, y)

    G = GLM(family='poisson', control={'conv_tol': 1e-10}).fit(X, y)
    W = GLM(family='poisson', control={'conv_tol': 1e-10}).fit(X, y,
                                                              warm_state=np.hstack([G.intercept_, G.coef_]))
    assert np.allclose(G.coef_, W.coef_)
    assert W.n_iter_ <= 2

def test_not_fit():

    X, _, _, _ = _poisson_data()
    with pytest.raises(NotFittedError):
        GLM().predict(X)
