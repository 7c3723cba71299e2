import pytest

import numpy as np
from scipy.stats import binom
import statsmodels.api as sm

from irlsglm.family import (FAMILIES,
                            CANCELLING_PAIRS,
                            GLMFamilySpec,
                            Bernoulli,
                            Binomial,
                            Normal,
                            Poisson,
                            Gamma,
                            InverseGaussian,
                            cancels,
                            get_family)
from irlsglm.link import (LINKS,
                          Identity,
                          Log,
                          Logit,
                          Probit,
                          Inverse,
                          InverseSquare)

rng = np.random.default_rng(0)
n = 50

def _data(family):
    mu = rng.uniform(0.5, 3, size=n)
    if isinstance(family, Bernoulli):
        mu = mu / 4
        y = rng.binomial(1, mu).astype(float)
    elif isinstance(family, Poisson):
        y = rng.poisson(mu).astype(float)
    elif isinstance(family, Normal):
        y = mu + rng.standard_normal(n)
    elif isinstance(family, Gamma):
        y = rng.gamma(2, mu / 2)
    else:
        y = rng.wald(mu, 2.)
    return y, mu

_sm_families = [(Normal(), sm.families.Gaussian()),
                (Bernoulli(), sm.families.Binomial()),
                (Poisson(), sm.families.Poisson()),
                (Gamma(), sm.families.Gamma()),
                (InverseGaussian(), sm.families.InverseGaussian())]

@pytest.mark.parametrize('family, sm_family', _sm_families)
def test_deviance_variance(family, sm_family):

    y, mu = _data(family)
    W = rng.uniform(1, 2, size=n)

    devresid = family.deviance_residual(y, mu)
    assert np.all(devresid >= 0)
    assert np.allclose(devresid.sum(), sm_family.deviance(y, mu))
    assert np.allclose((W * devresid).sum(), sm_family.deviance(y, mu, var_weights=W))
    assert np.allclose(family.variance(mu), sm_family.variance(mu))

@pytest.mark.parametrize('family, sm_family', _sm_families)
@pytest.mark.parametrize('dispersion', [0.5, 1, 2])
def test_loglik(family, sm_family, dispersion):

    y, mu = _data(family)
    scale = dispersion if family.has_dispersion else 1.
    ll = family.loglik_term(y, mu, np.ones(n), dispersion)
    assert np.allclose(ll, sm_family.loglike_obs(y, mu, scale=scale))

def test_binomial_loglik():

    trials = rng.integers(1, 10, size=n).astype(float)
    mu = rng.uniform(0.1, 0.9, size=n)
    successes = rng.binomial(trials.astype(int), mu)
    y = successes / trials

    ll = Binomial().loglik_term(y, mu, trials, 1.)
    assert np.allclose(ll, binom.logpmf(successes, trials, mu))

    # no trials, no contribution
    assert Binomial().loglik_term(np.array([0.5]), np.array([0.3]), np.array([0.]), 1.)[0] == 0

def test_support():

    y = np.array([0, 0.25, 1, 1.5, -0.1])
    assert np.all(Binomial().in_support(y) == [True, True, True, False, False])
    assert np.all(Bernoulli().in_support(y) == [True, True, True, False, False])
    assert np.all(Poisson().in_support(np.array([0, 3, 2.5, -1])) == [True, True, False, False])
    assert np.all(Gamma().in_support(np.array([0, 1e-3, 2])) == [False, True, True])
    assert np.all(InverseGaussian().in_support(np.array([-1, 2])) == [False, True])
    assert np.all(Normal().in_support(np.array([-1e10, 0, np.inf])) == [True, True, False])

def test_initial_mean():

    y = np.array([0, 0.5, 1.])
    w = np.array([1, 2, 3.])
    assert np.allclose(Bernoulli().initial_mean(y, w), [0.25, 0.5, 0.75])
    assert np.allclose(Binomial().initial_mean(y, w), [0.25, 1.5 / 3, 3.5 / 4])
    assert np.allclose(Poisson().initial_mean(np.array([0, 2.]), None), [0.1, 2.1])
    assert np.allclose(Gamma().initial_mean(np.array([1, 2.]), None), [1, 2])

def test_canonical_and_dispersion():

    canonical = {'normal': Identity(),
                 'bernoulli': Logit(),
                 'binomial': Logit(),
                 'poisson': Log(),
                 'gamma': Inverse(),
                 'inverse_gaussian': InverseSquare()}
    for tag, link in canonical.items():
        assert FAMILIES[tag]().canonical_link() == link
    assert [tag for tag in sorted(FAMILIES) if FAMILIES[tag].has_dispersion] == ['gamma',
                                                                                 'inverse_gaussian',
                                                                                 'normal']

def test_cancels():

    pairs = [(f, l) for f in FAMILIES for l in LINKS if cancels(FAMILIES[f](), LINKS[l]())]
    assert set(pairs) == set(CANCELLING_PAIRS)
    assert len(pairs) == 4
    # canonical, but dmu/deta is not the variance function
    assert not cancels(Gamma(), Inverse())

def test_family_spec():

    spec = GLMFamilySpec.from_family('binomial')
    assert spec.link == Logit()
    assert spec.cancels and spec.is_binomial and not spec.is_gaussian

    spec = GLMFamilySpec.from_family(Bernoulli(), link='probit')
    assert spec.link == Probit()
    assert not spec.cancels and spec.is_binomial

    spec = GLMFamilySpec.from_family(sm.families.Poisson(link=sm.families.links.Identity()))
    assert spec.family == Poisson()
    assert spec.link == Identity()
    assert not spec.cancels

    spec = GLMFamilySpec.from_family(sm.families.Gaussian())
    assert spec.is_gaussian and spec.cancels

    assert GLMFamilySpec.from_family(spec) is spec
    assert GLMFamilySpec.from_family(spec, link='log').link == Log()

    with pytest.raises(ValueError):
        get_family('tweedie')

def test_family_spec_deviance_predict():

    spec = GLMFamilySpec(Poisson())
    y, mu = _data(Poisson())
    W = rng.uniform(1, 2, size=n)
    assert np.allclose(spec.deviance(y, mu, W), (W * Poisson().deviance_residual(y, mu)).sum())

    eta = np.log(mu)
    assert np.allclose(spec.predict(eta), mu)
    assert np.allclose(spec.predict(eta, prediction_type='link'), eta)
    with pytest.raises(ValueError):
        spec.predict(eta, prediction_type='class')

    offset = rng.standard_normal(n)
    assert np.allclose(spec.initial_eta(y, offset=offset), np.log(y + 0.1) - offset)
