from .glm import (GLM,
                  GLMControl,
                  GeneralizedLinearModel,
                  glm)
from .family import (GLMFamilySpec,
                     Bernoulli,
                     Binomial,
                     Normal,
                     Poisson,
                     Gamma,
                     InverseGaussian,
                     cancels)
from .link import (Identity,
                   Log,
                   Logit,
                   Probit,
                   CLogLog,
                   Cauchit,
                   Inverse,
                   InverseSquare,
                   Sqrt)
from .response import GLMResponse
from .linpred import CholeskyPredictor
from .irls import (IRLS,
                   FitStatus)
from .errors import (GLMError,
                     ShapeError,
                     SupportError,
                     InvalidConfigurationError,
                     DomainError,
                     StepHalvingError,
                     ConvergenceError)

from .info import VERSION as __version__
