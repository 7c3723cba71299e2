from typing import Union
from dataclasses import (dataclass,
                         field,
                         replace)
import logging

import numpy as np
import pandas as pd

import scipy.sparse
from scipy.stats import norm as normal_dbn

from sklearn.base import BaseEstimator
from sklearn.exceptions import NotFittedError

from ._utils import (_parent_dataclass_from_child,
                     _get_data)
from .errors import (InvalidConfigurationError,
                     ShapeError)
from .family import (Family,
                     GLMFamilySpec)
from .irls import (IRLS,
                   FitStatus)
from .link import Link
from .linpred import CholeskyPredictor
from .response import (GLMResponse,
                       _optional_vector)


@dataclass
class GLMControl(object):
    """
    Control parameters for GLM fitting.

    Parameters
    ----------
    max_iter: int
        Maximum number of IRLS iterations.
    min_step_fac: float
        Step-halving fails once the step fraction falls to this value.
        Must lie in (0, 1).
    conv_tol: float
        Tolerance on the relative decrease in deviance.
    verbose: bool
        Write progress of the iterations to the log?
    """
    max_iter: int = 30
    min_step_fac: float = 0.001
    conv_tol: float = 1e-6
    verbose: bool = False

    def validate(self):
        """
        Raises
        ------
        InvalidConfigurationError
            If `max_iter < 1` or `min_step_fac` is not in (0, 1).
        """
        if self.max_iter < 1:
            raise InvalidConfigurationError('max_iter must be positive')
        if not 0 < self.min_step_fac < 1:
            raise InvalidConfigurationError('min_step_fac must be in (0, 1)')


def _get_control(control=None,
                 **control_args):
    if control is None:
        return GLMControl(**control_args)
    if isinstance(control, dict):
        return _parent_dataclass_from_child(GLMControl,
                                            control,
                                            **control_args)
    if control_args:
        return replace(control, **control_args)
    return control


class GeneralizedLinearModel(object):
    """
    A GLM: response state plus linear predictor, fit by IRLS.

    Usually constructed through `glm`.

    Parameters
    ----------
    response: GLMResponse
        Response vector, family and link.
    predictor: CholeskyPredictor
        Linear predictor over the design matrix.
    feature_names: list, optional
        Names of the columns of the design matrix.
    """

    def __init__(self,
                 response,
                 predictor,
                 feature_names=None):

        if len(response) != predictor.nobs:
            raise ShapeError(f'number of rows in X ({predictor.nobs}) and y ({len(response)}) must match')
        if feature_names is None:
            feature_names = ['x{}'.format(i+1) for i in range(predictor.ncoef)]
        elif len(feature_names) != predictor.ncoef:
            raise ShapeError('need one feature name per column of X')

        self.response = response
        self.predictor = predictor
        self.feature_names = list(feature_names)
        self.is_fit = False
        self.status = FitStatus.UNFIT
        self.n_iter = None
        self.deviance_path = []

    def __repr__(self):
        return (f'{self.__class__.__name__}(family={self.family.family!r}, '
                f'link={self.family.link!r}, is_fit={self.is_fit})')

    @property
    def family(self):
        return self.response.family

    def fit(self,
            control=None,
            start=None,
            **control_args):
        """
        Fit the model by IRLS. A model that is already fit is returned
        unchanged.

        Parameters
        ----------
        control: Union[GLMControl, dict], optional
            Solver parameters.
        start: np.ndarray, optional
            Starting coefficients.
        control_args:
            Override fields of `control`, e.g. `max_iter=50`.

        Returns
        -------
        self: GeneralizedLinearModel
        """
        if self.is_fit:
            return self

        control = _get_control(control, **control_args)
        (self.n_iter,
         self.deviance_path) = IRLS(self,
                                    control,
                                    start=start)
        self.is_fit = True
        return self

    def refit(self,
              y,
              sample_weight=None,
              offset=None,
              dofit=True,
              control=None,
              start=None,
              **control_args):
        """
        Replace the response (and optionally weights and offset) keeping
        the design, then fit again.

        Parameters
        ----------
        y: np.ndarray
            New response, same length as the old one.
        sample_weight: np.ndarray, optional
            New prior weights.
        offset: np.ndarray, optional
            New offset.
        dofit: bool
            Fit after resetting? Otherwise the model is left unfit.
        control: Union[GLMControl, dict], optional
            Solver parameters.
        start: np.ndarray, optional
            Starting coefficients.

        Returns
        -------
        self: GeneralizedLinearModel
        """
        self.is_fit = False
        self.status = FitStatus.UNFIT
        self.n_iter = None
        self.deviance_path = []
        self.response.reset(y,
                            sample_weight=sample_weight,
                            offset=offset)
        self.predictor.reset()
        if dofit:
            return self.fit(control=control,
                            start=start,
                            **control_args)
        return self

    def _check_fit(self):
        if not self.is_fit:
            raise NotFittedError(f'{self.__class__.__name__} is not fit: call `fit` first')

    # derived quantities

    @property
    def coef(self):
        return self.predictor.coef

    @property
    def fitted(self):
        return self.response.mu.copy()

    @property
    def linear_predictor(self):
        return self.response.eta.copy()

    @property
    def nobs(self):
        return self.response.nobs

    @property
    def dof(self):
        """Number of estimated parameters, counting the dispersion if free."""
        return self.predictor.ncoef + int(self.family.family.has_dispersion)

    @property
    def dof_residual(self):
        return self.nobs - self.predictor.ncoef

    def deviance(self):
        return self.response.deviance()

    def loglikelihood(self):
        return self.response.loglikelihood()

    def aic(self):
        return -2 * self.loglikelihood() + 2 * self.dof

    def bic(self):
        return -2 * self.loglikelihood() + self.dof * np.log(self.nobs)

    def dispersion(self, sqr=False):
        """
        Estimated dispersion (scale) parameter: sigma for a Normal model,
        phi for other families with a free dispersion, and exactly 1
        for the Bernoulli, Binomial and Poisson families.

        Parameters
        ----------
        sqr: bool
            Return the square, i.e. the variance-scale estimate
            `sum(wrkwt * wrkresid**2) / dof_residual`.

        Returns
        -------
        float

        Raises
        ------
        ValueError
            If a free dispersion is to be estimated with no residual
            degrees of freedom.
        """
        if not self.family.family.has_dispersion:
            return 1.
        if self.dof_residual <= 0:
            raise ValueError(f'no residual degrees of freedom to estimate the dispersion: {self.nobs} observations, {self.predictor.ncoef} coefficients')
        r = self.response
        s = np.sum(r.wrkwt * r.wrkresid**2) / self.dof_residual
        return s if sqr else np.sqrt(s)

    def vcov(self):
        """Estimated covariance matrix of the coefficients."""
        self._check_fit()
        inv = self.predictor.inverse_information(self.response.wrkwt)
        return self.dispersion(sqr=True) * inv

    def stderr(self):
        return np.sqrt(np.diag(self.vcov()))

    def confint(self, level=0.95):
        """
        Wald confidence intervals for the coefficients.

        Parameters
        ----------
        level: float
            Coverage of the intervals.

        Returns
        -------
        np.ndarray
            Array of shape `(ncoef, 2)` of lower and upper limits.
        """
        if not 0 < level < 1:
            raise ValueError('level must be in (0, 1)')
        q = normal_dbn.ppf((1 - level) / 2)
        coef, se = self.coef, self.stderr()
        return np.column_stack([coef + q * se,
                                coef - q * se])

    def coef_table(self):
        """
        Coefficients with standard errors and Wald z-tests.

        Returns
        -------
        pd.DataFrame
        """
        coef, SE = self.coef, self.stderr()
        Z = coef / SE
        return pd.DataFrame({'coef': coef,
                             'std err': SE,
                             'z': Z,
                             'P>|z|': 2 * normal_dbn.sf(np.fabs(Z))},
                            index=self.feature_names)

    def summary(self):
        self._check_fit()
        family = self.family
        lines = [f'Generalized linear model: {family.family.tag} family, {family.link.tag} link',
                 '',
                 self.coef_table().to_string(),
                 '',
                 f'Deviance: {self.deviance():.6g} on {self.dof_residual} degrees of freedom',
                 f'Log-likelihood: {self.loglikelihood():.6g}, AIC: {self.aic():.6g}',
                 f'IRLS iterations: {self.n_iter}']
        return '\n'.join(lines)

    def predict(self,
                X,
                offset=None,
                prediction_type='response'):
        """
        Predict for a new design matrix.

        Parameters
        ----------
        X: Union[np.ndarray, scipy.sparse]
            New design matrix with the columns of the fitted one.
        offset: np.ndarray, optional
            Offset for the new rows. Required if and only if the model
            was fit with an offset.
        prediction_type: str
            "response" for the mean scale, "link" for the linear predictor.

        Returns
        -------
        prediction: np.ndarray
        """
        if not scipy.sparse.issparse(X):
            X = np.asarray(X, float)
        if X.shape[1] != self.predictor.ncoef:
            raise ShapeError(f'X has {X.shape[1]} columns, expecting {self.predictor.ncoef}')
        eta = X @ self.coef

        offset = _optional_vector(offset, X.shape[0], 'offset')
        if self.response.offset is not None:
            if offset is None:
                raise ValueError('model was fit with an offset, so `offset` must have length X.shape[0]')
            eta = eta + offset
        elif offset is not None:
            raise ValueError('model was fit without an offset, so `offset` does not make sense')

        return self.family.predict(eta, prediction_type=prediction_type)


def glm(X,
        y,
        family='normal',
        link=None,
        sample_weight=None,
        offset=None,
        dofit=True,
        feature_names=None,
        **fit_args):
    """
    Construct (and by default fit) a generalized linear model.

    Parameters
    ----------
    X: Union[np.ndarray, scipy.sparse]
        Design matrix of shape `(nobs, ncoef)`. Include a column of ones
        for an intercept.
    y: np.ndarray
        Response vector. For Bernoulli and Binomial families, proportions
        in [0, 1].
    family: Union[str, Family, GLMFamilySpec, statsmodels family]
        Distribution family.
    link: Union[str, Link], optional
        Link function, the canonical link of `family` by default.
    sample_weight: np.ndarray, optional
        Prior weights (numbers of trials for Binomial).
    offset: np.ndarray, optional
        Offset added to the linear predictor.
    dofit: bool
        Fit the model before returning it?
    feature_names: list, optional
        Names of the columns of `X`.
    fit_args:
        Passed to `GeneralizedLinearModel.fit`: `control`, `start`,
        or fields of `GLMControl`.

    Returns
    -------
    model: GeneralizedLinearModel
    """
    family = GLMFamilySpec.from_family(family, link=link)

    if not scipy.sparse.issparse(X):
        X = np.asarray(X, float)
    y = np.asarray(y, float)
    if y.ndim != 1:
        raise ShapeError('y must be 1-dimensional')
    n = y.shape[0]
    if X.ndim != 2 or X.shape[0] != n:
        raise ShapeError(f'number of rows in X ({X.shape[0]}) and y ({n}) must match')

    sample_weight = _optional_vector(sample_weight, n, 'sample_weight')
    offset = _optional_vector(offset, n, 'offset')

    with np.errstate(all='ignore'):
        eta = family.initial_eta(y,
                                 sample_weight=sample_weight,
                                 offset=offset)

    response = GLMResponse(y,
                           family,
                           eta,
                           offset=offset,
                           sample_weight=sample_weight)
    model = GeneralizedLinearModel(response,
                                   CholeskyPredictor(X),
                                   feature_names=feature_names)
    if dofit:
        model.fit(**fit_args)
    return model


@dataclass
class GLM(BaseEstimator):
    """
    Generalized Linear Model estimator.

    Parameters
    ----------
    family: Union[str, Family, statsmodels family]
        Distribution family.
    link: Union[str, Link]
        Link function. Defaults to the canonical link (or to the link of a
        statsmodels family).
    fit_intercept: bool
        Should intercept be fitted (default=True) or set to zero (False)?
    control: GLMControl
        Parameters to control the solver.
    offset_id: Union[str,int]
        Column identifier in `y`. (Optional)
    weight_id: Union[str,int]
        Weight identifier in `y`. (Optional)
    response_id: Union[str,int]
        Response identifier in `y`. (Optional)
    """
    family: Union[str, Family] = 'normal'
    link: Union[str, Link] = None
    fit_intercept: bool = True
    control: GLMControl = field(default_factory=GLMControl)
    offset_id: Union[str,int] = None
    weight_id: Union[str,int] = None
    response_id: Union[str,int] = None

    def _get_design(self, X):
        if not self.fit_intercept:
            return X
        ones = np.ones((X.shape[0], 1))
        if scipy.sparse.issparse(X):
            return scipy.sparse.hstack([ones, X], format='csc')
        return np.concatenate([ones, X], axis=1)

    def fit(self,
            X,
            y,
            sample_weight=None,
            warm_state=None,
            check=True):
        """
        Fit a GLM.

        Parameters
        ----------
        X: Union[np.ndarray, scipy.sparse, pd.DataFrame]
            Input matrix, of shape `(nobs, nvars)`; each row is an observation
            vector.
        y: Union[np.ndarray, pd.DataFrame]
            Response variable, possibly with offset and weight columns.
        sample_weight: Optional[np.ndarray]
            Prior weights, used when `weight_id` is None.
        warm_state: np.ndarray, optional
            Starting coefficients, intercept first if `fit_intercept`.
        check: bool
            Run `check_X_y` to validate `(X,y)`.

        Returns
        -------
        self: object
            GLM class instance.
        """
        if isinstance(X, pd.DataFrame):
            self.feature_names_in_ = list(X.columns)
        else:
            self.feature_names_in_ = ['X{}'.format(i) for i in range(X.shape[1])]

        X, response, offset, weight = _get_data(self,
                                                X,
                                                y,
                                                offset_id=self.offset_id,
                                                weight_id=self.weight_id,
                                                response_id=self.response_id,
                                                check=check)
        if weight is None:
            weight = sample_weight
        elif sample_weight is not None:
            raise ValueError('weights given both as `sample_weight` and through `weight_id`')

        names = list(self.feature_names_in_)
        if self.fit_intercept:
            names = ['intercept'] + names

        control = self.control
        if isinstance(control, dict):
            control = _get_control(control)
        if control.verbose: logging.debug(f'Fitting {self.__class__.__name__} with {control}')

        self.model_ = glm(self._get_design(X),
                          response,
                          family=self.family,
                          link=self.link,
                          sample_weight=weight,
                          offset=offset,
                          feature_names=names,
                          control=control,
                          start=warm_state)
        self._family = self.model_.family

        coef = self.model_.coef
        if self.fit_intercept:
            self.intercept_, self.coef_ = coef[0], coef[1:]
        else:
            self.intercept_, self.coef_ = 0., coef

        self.deviance_ = self.model_.deviance()
        self.dispersion_ = self.model_.dispersion(sqr=True)
        self.df_resid_ = self.model_.dof_residual
        self.n_iter_ = self.model_.n_iter
        self.summary_ = self.model_.coef_table()
        return self

    def predict(self, X, prediction_type='response', offset=None):
        """
        Predict outcome of corresponding family.

        Parameters
        ----------
        X: Union[np.ndarray, scipy.sparse, pd.DataFrame]
            Input matrix, of shape `(nobs, nvars)`.
        prediction_type: str
            One of "response" or "link". If "response" return a prediction on the mean scale,
            "link" on the link scale. Defaults to "response".
        offset: np.ndarray, optional
            Offset, required if the model was fit with one.

        Returns
        -------
        prediction: np.ndarray
            Predictions on the mean scale for family of a GLM.
        """
        if not hasattr(self, 'model_'):
            raise NotFittedError(f'{self.__class__.__name__} is not fit: call `fit` first')
        if not scipy.sparse.issparse(X):
            X = np.asarray(X, float)
        return self.model_.predict(self._get_design(X),
                                   offset=offset,
                                   prediction_type=prediction_type)

    def score(self, X, y, sample_weight=None, offset=None):
        """
        Compute weighted log-likelihood (i.e. negative deviance / 2) for test X and y using fitted model.

        Parameters
        ----------
        X: Union[np.ndarray, scipy.sparse, pd.DataFrame]
            Input matrix, of shape `(nobs, nvars)`.
        y: np.ndarray
            Response variable.
        sample_weight: Optional[np.ndarray]
            Sample weights.
        offset: np.ndarray, optional
            Offset, required if the model was fit with one.

        Returns
        -------
        score: float
            Minus half the deviance of family for `(X, y, sample_weight)`.
        """
        mu = self.predict(X, prediction_type='response', offset=offset)
        return -self._family.deviance(y, mu, sample_weight) / 2
