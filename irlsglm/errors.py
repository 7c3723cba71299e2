"""
Exceptions raised while constructing or fitting a GLM.
"""


class GLMError(Exception):
    """Base class for errors raised by `irlsglm`."""


class ShapeError(GLMError, ValueError):
    """Row counts of design, response, weights or offset disagree."""


class SupportError(GLMError, ValueError):
    """A response value lies outside the support of the family."""


class InvalidConfigurationError(GLMError, ValueError):
    """Solver control parameters out of range."""


class DomainError(GLMError, ArithmeticError):
    """
    A linear predictor produced means or weights that are not
    representable. Only raised outside of the step-halving loop,
    where such failures are recovered as an infinite deviance.
    """


class StepHalvingError(GLMError, RuntimeError):
    """Step-halving reached the minimum step fraction without decreasing the deviance."""

    def __init__(self, coef):
        self.coef = coef
        super().__init__(f'step-halving failed at coef = {coef}')


class ConvergenceError(GLMError, RuntimeError):
    """IRLS did not converge within the iteration budget."""

    def __init__(self, max_iter):
        self.max_iter = max_iter
        super().__init__(f'failure to converge after {max_iter} iterations')
