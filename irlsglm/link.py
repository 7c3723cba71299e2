"""
Link functions mapping the mean `mu` to the linear predictor `eta`.

Every link supplies the link `g`, its inverse and the derivative of the
inverse. `inverse_link` returns all three quantities needed by the IRLS
update in one pass; the unit-interval links additionally return
`mu * (1 - mu)` computed without forming `1 - mu` from a rounded `mu`.
"""

import numpy as np
from scipy.special import expit, logit, ndtr, ndtri

# floor for derivatives of the unit-interval links (as in R's family.c)
_EPS = np.finfo(float).eps
# exp(700) is close to the largest representable double
_EXP_MAX = 700.


class Link(object):
    """
    Base class of the link functions.

    Subclasses define `link`, `inverse` and `inverse_deriv`; the default
    `inverse_link` combines the last two and returns `None` as the third
    element.
    """

    tag = None
    is_unit_interval = False

    def __call__(self, mu):
        return self.link(mu)

    def __eq__(self, other):
        return isinstance(other, Link) and self.tag == other.tag

    def __hash__(self):
        return hash(self.tag)

    def __repr__(self):
        return f'{self.__class__.__name__}()'

    def link(self, mu):
        raise NotImplementedError

    def inverse(self, eta):
        raise NotImplementedError

    def inverse_deriv(self, eta):
        raise NotImplementedError

    def inverse_link(self, eta):
        """
        Inverse link and its derivative.

        Parameters
        ----------
        eta : np.ndarray
            Linear predictor (offset included).

        Returns
        -------
        mu : np.ndarray
            Mean response.
        dmu_deta : np.ndarray
            Derivative of the inverse link at `eta`.
        mu_omu : np.ndarray or None
            `mu * (1 - mu)` for unit-interval links, otherwise `None`.
        """
        eta = np.asarray(eta, float)
        return self.inverse(eta), self.inverse_deriv(eta), None


class Identity(Link):

    tag = 'identity'

    def link(self, mu):
        return np.asarray(mu, float)

    def inverse(self, eta):
        return np.asarray(eta, float)

    def inverse_deriv(self, eta):
        return np.ones_like(np.asarray(eta, float))


class Log(Link):

    tag = 'log'

    def link(self, mu):
        return np.log(mu)

    def inverse(self, eta):
        return np.exp(eta)

    def inverse_deriv(self, eta):
        return np.exp(eta)

    def inverse_link(self, eta):
        mu = np.exp(np.asarray(eta, float))
        return mu, mu, None


class Inverse(Link):

    tag = 'inverse'

    def link(self, mu):
        return 1. / np.asarray(mu, float)

    def inverse(self, eta):
        return 1. / np.asarray(eta, float)

    def inverse_deriv(self, eta):
        return -1. / np.asarray(eta, float)**2


class InverseSquare(Link):

    tag = 'inverse_square'

    def link(self, mu):
        return 1. / np.asarray(mu, float)**2

    def inverse(self, eta):
        return 1. / np.sqrt(eta)

    def inverse_deriv(self, eta):
        eta = np.asarray(eta, float)
        return -1. / (2 * eta * np.sqrt(eta))


class Sqrt(Link):

    tag = 'sqrt'

    def link(self, mu):
        return np.sqrt(mu)

    def inverse(self, eta):
        return np.asarray(eta, float)**2

    def inverse_deriv(self, eta):
        return 2 * np.asarray(eta, float)


class Link01(Link):
    """
    Links mapping the real line onto the unit interval.

    The derivative and `mu * (1 - mu)` are floored at machine epsilon
    so that saturated predictors never yield a zero working weight
    denominator.
    """

    is_unit_interval = True

    def _inverse_link(self, eta):
        raise NotImplementedError

    def inverse(self, eta):
        return self._inverse_link(np.asarray(eta, float))[0]

    def inverse_deriv(self, eta):
        return self._inverse_link(np.asarray(eta, float))[1]

    def inverse_link(self, eta):
        mu, dmu_deta, mu_omu = self._inverse_link(np.asarray(eta, float))
        return mu, np.maximum(dmu_deta, _EPS), np.maximum(mu_omu, _EPS)


class Logit(Link01):

    tag = 'logit'

    def link(self, mu):
        return logit(mu)

    def _inverse_link(self, eta):
        # exp(-|eta|) cannot overflow
        expneg = np.exp(-np.fabs(eta))
        mu = expit(eta)
        dmu_deta = expneg / (1 + expneg)**2
        return mu, dmu_deta, dmu_deta


class Probit(Link01):

    tag = 'probit'

    def link(self, mu):
        return ndtri(mu)

    def _inverse_link(self, eta):
        mu = ndtr(eta)
        dmu_deta = np.exp(-0.5 * eta**2) / np.sqrt(2 * np.pi)
        return mu, dmu_deta, mu * ndtr(-eta)


class CLogLog(Link01):

    tag = 'cloglog'

    def link(self, mu):
        return np.log(-np.log1p(-np.asarray(mu, float)))

    def _inverse_link(self, eta):
        expeta = np.exp(np.minimum(eta, _EXP_MAX))
        omu = np.exp(-expeta)
        mu = np.clip(-np.expm1(-expeta), _EPS, 1 - _EPS)
        return mu, expeta * omu, mu * omu


class Cauchit(Link01):

    tag = 'cauchit'

    def link(self, mu):
        return np.tan(np.pi * (np.asarray(mu, float) - 0.5))

    def _inverse_link(self, eta):
        q = np.arctan(eta) / np.pi
        mu = np.clip(0.5 + q, _EPS, 1 - _EPS)
        dmu_deta = 1. / (np.pi * (1 + eta**2))
        return mu, dmu_deta, mu * (0.5 - q)


LINKS = {klass.tag: klass for klass in [Identity,
                                        Log,
                                        Inverse,
                                        InverseSquare,
                                        Sqrt,
                                        Logit,
                                        Probit,
                                        CLogLog,
                                        Cauchit]}

# statsmodels link class names (lower case) to tags
_SM_LINKS = {'identity': 'identity',
             'log': 'log',
             'logit': 'logit',
             'probit': 'probit',
             'cloglog': 'cloglog',
             'cauchy': 'cauchit',
             'inversepower': 'inverse',
             'inverse_power': 'inverse',
             'inversesquared': 'inverse_square',
             'inverse_squared': 'inverse_square',
             'sqrt': 'sqrt'}

_SM_POWERS = {1.: 'identity',
              -1.: 'inverse',
              -2.: 'inverse_square',
              0.5: 'sqrt'}


def get_link(link):
    """
    Resolve a link specification.

    Parameters
    ----------
    link : Union[str, Link, statsmodels.genmod.families.links.Link]
        A tag such as `'logit'`, an `irlsglm` link, or a statsmodels link.

    Returns
    -------
    Link
    """
    if isinstance(link, Link):
        return link
    if isinstance(link, str):
        try:
            return LINKS[link.lower()]()
        except KeyError:
            raise ValueError(f'unknown link "{link}", expecting one of {sorted(LINKS)}')

    name = link.__class__.__name__.lower()
    if name in _SM_LINKS:
        return LINKS[_SM_LINKS[name]]()
    if name == 'power' and float(link.power) in _SM_POWERS:
        return LINKS[_SM_POWERS[float(link.power)]]()
    raise ValueError(f'cannot translate link {link!r}')
