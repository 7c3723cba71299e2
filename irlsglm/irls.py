import logging
from enum import Enum

import numpy as np

from .errors import (DomainError,
                     StepHalvingError,
                     ConvergenceError)


class FitStatus(Enum):

    UNFIT = 'unfit'
    INITIALIZING = 'initializing'
    ITERATING = 'iterating'
    CONVERGED = 'converged'
    FAILED = 'failed'


def trial_deviance(response,
                   linear_predictor):
    """
    Update `response` at `linear_predictor` and return its deviance,
    or `np.inf` if the update left the domain of the family.
    """
    if response.update(linear_predictor):
        return response.deviance()
    return np.inf


def initial_step(response,
                 predictor,
                 start=None):
    """
    First working fit.

    Without `start` the coefficients solve the weighted least squares
    problem for the working response at the starting means; with `start`
    they are set directly.

    Returns
    -------
    deviance : float
        Deviance of the first working fit.
    """
    if start is None or len(start) == 0:
        # the working response gives the full coefficients, not an update
        predictor.reset()
        predictor.delta_from(response.working_response(),
                             response.wrkwt)
        valid = response.update(predictor.linear_predictor())
        predictor.commit()
    else:
        predictor.warm_start(start)
        valid = response.update(predictor.linear_predictor(0))

    if not valid:
        raise DomainError(f'invalid mean or weights at coef = {predictor.coef}')
    return response.deviance()


def step_halving(response,
                 predictor,
                 devold,
                 control):
    """
    Compute the IRLS update and halve it until the deviance does not
    exceed `devold`, then commit it.

    Parameters
    ----------
    response : GLMResponse
        Response state, left at the accepted step.
    predictor : CholeskyPredictor
        Linear predictor, committed at the accepted step.
    devold : float
        Deviance of the committed coefficients.
    control : GLMControl
        Solver parameters.

    Returns
    -------
    deviance : float
        Deviance at the accepted step.
    step : float
        Accepted step fraction.
    """
    predictor.delta_from(response.wrkresid,
                         response.wrkwt)

    step = 1.
    dev = trial_deviance(response,
                         predictor.linear_predictor(step))

    while dev > devold:
        step /= 2
        if step <= control.min_step_fac:
            raise StepHalvingError(predictor.coef)
        if control.verbose: logging.debug(f'Deviance {dev} exceeds {devold}, halving step to {step}')
        dev = trial_deviance(response,
                             predictor.linear_predictor(step))

    predictor.commit(step)
    return dev, step


def IRLS(model,
         control,
         start=None):
    """
    Fit `model` by iteratively reweighted least squares with step-halving.

    Parameters
    ----------
    model : GeneralizedLinearModel
        Model holding `response`, `predictor` and `status`.
    control : GLMControl
        Solver parameters.
    start : np.ndarray, optional
        Starting coefficients.

    Returns
    -------
    n_iter : int
        Number of committed iterations after the initial fit.
    deviance_path : list
        Deviance of the initial fit followed by that of every committed
        iteration; non-increasing.

    Raises
    ------
    StepHalvingError
        If no step fraction above `control.min_step_fac` decreases the deviance.
    ConvergenceError
        If the relative decrease in deviance stays above `control.conv_tol`
        for `control.max_iter` iterations.
    AssertionError
        If the convergence criterion is not finite.
    """
    control.validate()
    response, predictor = model.response, model.predictor

    if control.verbose:
        logging.info('Starting IRLS')

    try:
        model.status = FitStatus.INITIALIZING
        devold = initial_step(response,
                              predictor,
                              start=start)
        deviance_path = [devold]

        model.status = FitStatus.ITERATING
        for i in range(control.max_iter):

            dev, step = step_halving(response,
                                     predictor,
                                     devold,
                                     control)
            deviance_path.append(dev)

            if dev == 0:
                crit = 0.
            else:
                crit = (devold - dev) / dev
            if control.verbose: logging.info(f'{i+1}: {dev}, {crit}')

            if crit < control.conv_tol or dev == 0:
                model.status = FitStatus.CONVERGED
                break

            assert np.isfinite(crit)
            devold = dev

        if model.status != FitStatus.CONVERGED:
            raise ConvergenceError(control.max_iter)

    except Exception:
        # includes the finiteness assertion on the criterion
        model.status = FitStatus.FAILED
        raise

    if control.verbose:
        logging.info(f'Terminating IRLS after {i+1} iterations.')
    return i + 1, deviance_path
