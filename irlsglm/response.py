from dataclasses import (dataclass,
                         InitVar)

import numpy as np

from .errors import (DomainError,
                     ShapeError,
                     SupportError)
from .family import GLMFamilySpec


def _optional_vector(value, n, name):
    """
    Offsets and prior weights are either absent or of length `n`;
    a zero-length vector counts as absent.
    """
    if value is None:
        return None
    value = np.asarray(value, float).reshape(-1)
    if value.shape[0] == 0:
        return None
    if value.shape[0] != n:
        raise ShapeError(f'{name} must have length {n} or length 0, got {value.shape[0]}')
    return value.copy()


def _check_support(family, y):
    if family.is_binomial:
        bad = ~((y >= 0) & (y <= 1))
        if np.any(bad):
            raise SupportError(f'{y[bad][0]} in y is not in [0,1]')
    elif not np.all(family.in_support(y)):
        bad = ~family.in_support(y)
        raise SupportError(f'y must be in the support of {family.family!r}, found {y[bad][0]}')


def _state_vectors(response):
    return [response.eta,
            response.mu,
            response.devresid,
            response.wrkwt,
            response.wrkresid]


@dataclass(eq=False)
class GLMResponse(object):
    """
    Response vector of a GLM and the quantities derived from it
    at the current linear predictor.

    Parameters
    ----------
    y : np.ndarray
        Response vector.
    family : GLMFamilySpec
        Family and link.
    linear_predictor : np.ndarray
        Initial linear predictor, excluding the offset.
    offset : np.ndarray, optional
        Offset added to the linear predictor to form `eta`.
    sample_weight : np.ndarray, optional
        Prior case weights.

    Attributes
    ----------
    eta : np.ndarray
        Linear predictor including the offset.
    mu : np.ndarray
        Mean response.
    devresid : np.ndarray
        Squared deviance residuals (times prior weights).
    wrkwt : np.ndarray
        IRLS working weights (times prior weights).
    wrkresid : np.ndarray
        IRLS working residuals. These are never weighted.
    """

    y: np.ndarray
    family: GLMFamilySpec
    linear_predictor: InitVar[np.ndarray]
    offset: np.ndarray = None
    sample_weight: np.ndarray = None

    def __post_init__(self, linear_predictor):

        self.family = GLMFamilySpec.from_family(self.family)
        self.y = np.asarray(self.y, float).reshape(-1).copy()
        n = self.y.shape[0]

        _check_support(self.family, self.y)

        self.offset = _optional_vector(self.offset, n, 'offset')
        self.sample_weight = _optional_vector(self.sample_weight, n, 'sample_weight')

        self.eta = np.zeros(n)
        self.mu = np.zeros(n)
        self.devresid = np.zeros(n)
        self.wrkwt = np.zeros(n)
        self.wrkresid = np.zeros(n)

        if not self.update(linear_predictor):
            raise DomainError('initial linear predictor gives invalid mean or weights')

    def __len__(self):
        return self.y.shape[0]

    def update(self, linear_predictor):
        """
        Recompute mean, working residuals, working weights and deviance
        residuals from a new linear predictor.

        Parameters
        ----------
        linear_predictor : np.ndarray
            Linear predictor, excluding the offset.

        Returns
        -------
        valid : bool
            False if the means leave the valid range of the family or any
            derived quantity is not finite. The stored vectors then hold the
            offending values, which should not be used.
        """
        linear_predictor = np.asarray(linear_predictor, float).reshape(-1)
        if linear_predictor.shape != self.eta.shape:
            raise ShapeError(f'linear predictor has length {linear_predictor.shape[0]}, expecting {self.eta.shape[0]}')

        if self.offset is None:
            self.eta[:] = linear_predictor
        else:
            np.add(linear_predictor, self.offset, out=self.eta)

        family, link = self.family.family, self.family.link
        y = self.y

        with np.errstate(all='ignore'):
            mu, dmu_deta, mu_omu = link.inverse_link(self.eta)
            self.mu[:] = mu
            self.wrkresid[:] = (y - mu) / dmu_deta
            if self.family.cancels:
                self.wrkwt[:] = dmu_deta
            elif self.family.is_binomial and mu_omu is not None:
                self.wrkwt[:] = dmu_deta**2 / mu_omu
            else:
                self.wrkwt[:] = dmu_deta**2 / family.variance(mu)
            self.devresid[:] = family.deviance_residual(y, mu)

            if self.sample_weight is not None:
                self.devresid *= self.sample_weight
                self.wrkwt *= self.sample_weight

            valid = family.valid_mean(self.mu)

        return bool(valid and
                    np.all(np.isfinite(self.wrkresid)) and
                    np.all(np.isfinite(self.wrkwt)) and
                    np.all(np.isfinite(self.devresid)))

    def deviance(self):
        return self.devresid.sum()

    def working_response(self):
        """The working response, `eta + wrkresid - offset`."""
        z = self.eta + self.wrkresid
        if self.offset is not None:
            z -= self.offset
        return z

    @property
    def weights(self):
        """Prior weights, all 1 if none were given."""
        if self.sample_weight is None:
            return np.ones_like(self.y)
        return self.sample_weight

    @property
    def nobs(self):
        """Number of observations with positive prior weight."""
        if self.sample_weight is None:
            return self.y.shape[0]
        return int(np.sum(self.sample_weight > 0))

    def loglikelihood(self):
        """
        Log-likelihood at the current mean, with the dispersion
        estimated as `deviance / sum(weights)`.
        """
        weights = self.weights
        dispersion = self.deviance() / weights.sum()
        return np.sum(self.family.family.loglik_term(self.y,
                                                     self.mu,
                                                     weights,
                                                     dispersion))

    def reset(self,
              y,
              sample_weight=None,
              offset=None):
        """
        Replace the response data and return to the starting linear
        predictor built from the family's initial means. Vectors keep
        their length.

        Parameters
        ----------
        y : np.ndarray
            New response vector.
        sample_weight : np.ndarray, optional
            New prior weights; the current ones are kept if None.
        offset : np.ndarray, optional
            New offset; the current one is kept if None.

        Raises
        ------
        ShapeError, SupportError, DomainError
            The new data are rejected and the current state is kept.
        """
        n = self.y.shape[0]
        y = np.asarray(y, float).reshape(-1)
        if y.shape[0] != n:
            raise ShapeError(f'new response has length {y.shape[0]}, expecting {n}')
        _check_support(self.family, y)

        # nothing is stored until the new data give a valid starting point
        if sample_weight is None:
            sample_weight = self.sample_weight
        else:
            sample_weight = _optional_vector(sample_weight, n, 'sample_weight')
        if offset is None:
            offset = self.offset
        else:
            offset = _optional_vector(offset, n, 'offset')

        with np.errstate(all='ignore'):
            eta = self.family.initial_eta(y,
                                          sample_weight=sample_weight,
                                          offset=offset)
        if not np.all(np.isfinite(eta)):
            raise DomainError('initial linear predictor for the new response is not finite')

        old = (self.y, self.sample_weight, self.offset)
        state = [v.copy() for v in _state_vectors(self)]
        self.y, self.sample_weight, self.offset = y.copy(), sample_weight, offset
        if not self.update(eta):
            self.y, self.sample_weight, self.offset = old
            for v, saved in zip(_state_vectors(self), state):
                v[:] = saved
            raise DomainError('initial linear predictor gives invalid mean or weights')
        return self
