from dataclasses import (dataclass,
                         field)

import numpy as np
from scipy.special import xlogy
from scipy.stats import (binom,
                         gamma as gamma_dbn,
                         invgauss,
                         norm as normal_dbn,
                         poisson as poisson_dbn)

from .link import (Link,
                   Identity,
                   Log,
                   Logit,
                   Inverse,
                   InverseSquare,
                   get_link)


class Family(object):
    """
    Base class of the one-parameter exponential families.

    A family supplies the variance function, squared deviance residuals,
    per-observation log-likelihood, a support check and the starting
    values for the mean used to initialize IRLS.
    """

    tag = None
    has_dispersion = False

    def __eq__(self, other):
        return isinstance(other, Family) and self.tag == other.tag

    def __hash__(self):
        return hash(self.tag)

    def __repr__(self):
        return f'{self.__class__.__name__}()'

    def canonical_link(self):
        raise NotImplementedError

    def variance(self, mu):
        raise NotImplementedError

    def deviance_residual(self, y, mu):
        raise NotImplementedError

    def loglik_term(self, y, mu, weight, dispersion):
        raise NotImplementedError

    def in_support(self, y):
        raise NotImplementedError

    def initial_mean(self, y, weight):
        return np.asarray(y, float).copy()

    def valid_mean(self, mu):
        return np.all(np.isfinite(mu))


class Normal(Family):

    tag = 'normal'
    has_dispersion = True

    def canonical_link(self):
        return Identity()

    def variance(self, mu):
        return np.ones_like(mu)

    def deviance_residual(self, y, mu):
        return (y - mu)**2

    def loglik_term(self, y, mu, weight, dispersion):
        return weight * normal_dbn.logpdf(y, loc=mu, scale=np.sqrt(dispersion))

    def in_support(self, y):
        return np.isfinite(y)


class Bernoulli(Family):
    """
    Bernoulli family. Responses are probabilities in `[0, 1]`,
    not only 0/1 outcomes.
    """

    tag = 'bernoulli'

    def canonical_link(self):
        return Logit()

    def variance(self, mu):
        return mu * (1 - mu)

    def deviance_residual(self, y, mu):
        # saturated means give 0 rather than 0/0 for the matching outcome
        return 2 * (xlogy(y, y) - xlogy(y, mu) +
                    xlogy(1 - y, 1 - y) - xlogy(1 - y, 1 - mu))

    def loglik_term(self, y, mu, weight, dispersion):
        return weight * (xlogy(y, mu) + xlogy(1 - y, 1 - mu))

    def in_support(self, y):
        return (y >= 0) & (y <= 1)

    def initial_mean(self, y, weight):
        return (np.asarray(y, float) + 0.5) / 2

    def valid_mean(self, mu):
        return np.all((mu >= 0) & (mu <= 1))


class Binomial(Bernoulli):
    """
    Binomial family for proportions `y` observed out of `weight` trials.

    The prior weights are the number of trials: they enter the
    log-likelihood as the binomial size.
    """

    tag = 'binomial'

    def loglik_term(self, y, mu, weight, dispersion):
        y, weight = np.broadcast_arrays(np.asarray(y, float),
                                        np.asarray(weight, float))
        size = np.round(weight)
        successes = np.round(y * weight)
        value = binom.logpmf(successes, size, mu)
        return np.where(size > 0, value, 0)

    def initial_mean(self, y, weight):
        return (weight * np.asarray(y, float) + 0.5) / (weight + 1)


class Poisson(Family):

    tag = 'poisson'

    def canonical_link(self):
        return Log()

    def variance(self, mu):
        return mu

    def deviance_residual(self, y, mu):
        return 2 * (xlogy(y, y / mu) - (y - mu))

    def loglik_term(self, y, mu, weight, dispersion):
        return weight * poisson_dbn.logpmf(y, mu)

    def in_support(self, y):
        return (y >= 0) & (np.floor(y) == y)

    def initial_mean(self, y, weight):
        return np.asarray(y, float) + 0.1

    def valid_mean(self, mu):
        return np.all(mu > 0)


class Gamma(Family):

    tag = 'gamma'
    has_dispersion = True

    def canonical_link(self):
        return Inverse()

    def variance(self, mu):
        return mu**2

    def deviance_residual(self, y, mu):
        return -2 * (np.log(y / mu) - (y - mu) / mu)

    def loglik_term(self, y, mu, weight, dispersion):
        shape = 1. / dispersion
        return weight * gamma_dbn.logpdf(y, shape, scale=mu * dispersion)

    def in_support(self, y):
        return (y > 0) & np.isfinite(y)

    def valid_mean(self, mu):
        return np.all(mu > 0)


class InverseGaussian(Family):

    tag = 'inverse_gaussian'
    has_dispersion = True

    def canonical_link(self):
        return InverseSquare()

    def variance(self, mu):
        return mu**3

    def deviance_residual(self, y, mu):
        return (y - mu)**2 / (y * mu**2)

    def loglik_term(self, y, mu, weight, dispersion):
        # scipy parametrizes by mu / lambda with scale lambda
        shape = 1. / dispersion
        return weight * invgauss.logpdf(y, mu / shape, scale=shape)

    def in_support(self, y):
        return (y > 0) & np.isfinite(y)

    def valid_mean(self, mu):
        return np.all(mu > 0)


FAMILIES = {klass.tag: klass for klass in [Normal,
                                           Bernoulli,
                                           Binomial,
                                           Poisson,
                                           Gamma,
                                           InverseGaussian]}

# statsmodels family class names (lower case) to tags
_SM_FAMILIES = {'gaussian': 'normal',
                'binomial': 'binomial',
                'poisson': 'poisson',
                'gamma': 'gamma',
                'inversegaussian': 'inverse_gaussian'}

# pairs for which dmu/deta equals the variance function
CANCELLING_PAIRS = frozenset([('bernoulli', 'logit'),
                              ('binomial', 'logit'),
                              ('normal', 'identity'),
                              ('poisson', 'log')])


def cancels(family, link):
    """
    Does the working weight `dmu_deta**2 / variance(mu)` reduce to `dmu_deta`?

    Parameters
    ----------
    family : Family
        Distribution family.
    link : Link
        Link function.

    Returns
    -------
    bool
    """
    return (family.tag, link.tag) in CANCELLING_PAIRS


def get_family(family):
    """
    Resolve a family specification to an `irlsglm` family.

    Parameters
    ----------
    family : Union[str, Family, statsmodels.genmod.families.family.Family]
        A tag such as `'poisson'`, an `irlsglm` family or a statsmodels family.

    Returns
    -------
    Family
    """
    if isinstance(family, Family):
        return family
    if isinstance(family, str):
        try:
            return FAMILIES[family.lower()]()
        except KeyError:
            raise ValueError(f'unknown family "{family}", expecting one of {sorted(FAMILIES)}')
    name = family.__class__.__name__.lower()
    if name in _SM_FAMILIES:
        return FAMILIES[_SM_FAMILIES[name]]()
    raise ValueError(f'cannot translate family {family!r}')


@dataclass
class GLMFamilySpec(object):
    """Specification for GLM family and link function.

    Parameters
    ----------
    family : Family, default=Normal
        Distribution family.
    link : Link, optional
        Link function. Defaults to the canonical link of `family`.
    """

    family: Family = field(default_factory=Normal)
    link: Link = None

    def __post_init__(self):

        self.family = get_family(self.family)
        if self.link is None:
            self.link = self.family.canonical_link()
        else:
            self.link = get_link(self.link)

        self.cancels = cancels(self.family, self.link)
        self.is_binomial = isinstance(self.family, Bernoulli)
        self.is_gaussian = (isinstance(self.family, Normal) and
                            isinstance(self.link, Identity))

    @staticmethod
    def from_family(family,
                    link=None):
        """Create GLMFamilySpec from family object.

        Parameters
        ----------
        family : Union[str, Family, GLMFamilySpec, statsmodels family]
            Family object or specification. A statsmodels family carries
            its own link, used unless `link` is given.
        link : Union[str, Link], optional
            Link function.

        Returns
        -------
        GLMFamilySpec
            Family specification object.
        """
        if isinstance(family, GLMFamilySpec):
            if link is None:
                return family
            return GLMFamilySpec(family=family.family, link=link)
        if (link is None and
            not isinstance(family, (str, Family)) and
            hasattr(family, 'link')):
            link = family.link
        return GLMFamilySpec(family=family, link=link)

    def in_support(self, y):
        return self.family.in_support(np.asarray(y, float))

    def deviance(self,
                 response,
                 mean_parameter,
                 sample_weight=None):
        """Compute deviance.

        Parameters
        ----------
        response : array-like
            Response variable.
        mean_parameter : array-like
            Mean parameter values.
        sample_weight : array-like, optional
            Prior weights.

        Returns
        -------
        float
            Deviance value.
        """
        y = np.asarray(response, float)
        devresid = self.family.deviance_residual(y, np.asarray(mean_parameter, float))
        if sample_weight is not None:
            devresid = devresid * sample_weight
        return devresid.sum()

    def initial_eta(self,
                    response,
                    sample_weight=None,
                    offset=None):
        """Starting linear predictor: the link of `initial_mean`, less the offset.

        Parameters
        ----------
        response : np.ndarray
            Response variable.
        sample_weight : np.ndarray, optional
            Prior weights, taken to be 1 if absent.
        offset : np.ndarray, optional
            Offset values.

        Returns
        -------
        np.ndarray
        """
        y = np.asarray(response, float)
        if sample_weight is None:
            sample_weight = np.ones_like(y)
        eta = self.link.link(self.family.initial_mean(y, sample_weight))
        if offset is not None:
            eta = eta - offset
        return eta

    def predict(self,
                linpred,
                prediction_type='response'):
        """Make predictions.

        Parameters
        ----------
        linpred : array-like
            Linear predictor values.
        prediction_type : str, default='response'
            Type of prediction ('response' or 'link').

        Returns
        -------
        array-like
            Predictions.
        """

        if prediction_type == 'link':
            return linpred
        elif prediction_type == 'response':
            return self.link.inverse(linpred)
        else:
            raise ValueError("prediction should be one of 'response' or 'link'")
