import logging

import numpy as np
from numpy.linalg import LinAlgError
import scipy.sparse
from scipy.linalg import (cho_factor,
                          cho_solve)

from .errors import ShapeError


class CholeskyPredictor(object):
    """
    Linear predictor `X @ beta` with a pending IRLS update.

    The committed coefficients `beta0` change only through `commit`;
    `linear_predictor` evaluates trial steps `beta0 + step * delbeta`
    without altering them.

    Parameters
    ----------
    X : Union[np.ndarray, scipy.sparse matrix]
        Design matrix of shape `(nobs, ncoef)`. No intercept column is added.
    """

    def __init__(self, X):

        if scipy.sparse.issparse(X):
            self.X = scipy.sparse.csc_matrix(X, dtype=float)
        else:
            self.X = np.asarray(X, float)
        if self.X.ndim != 2:
            raise ShapeError('design matrix must be 2-dimensional')

        p = self.X.shape[1]
        self.beta0 = np.zeros(p)
        self.delbeta = np.zeros(p)

    @property
    def nobs(self):
        return self.X.shape[0]

    @property
    def ncoef(self):
        return self.X.shape[1]

    @property
    def coef(self):
        return self.beta0.copy()

    def warm_start(self, coef):
        """
        Set the committed coefficients and clear the pending update.

        Parameters
        ----------
        coef : np.ndarray
            Coefficients of length `ncoef`.
        """
        coef = np.asarray(coef, float).reshape(-1)
        if coef.shape[0] != self.ncoef:
            raise ShapeError(f'start has length {coef.shape[0]}, expecting {self.ncoef}')
        self.beta0[:] = coef
        self.delbeta[:] = 0

    def reset(self):
        self.beta0[:] = 0
        self.delbeta[:] = 0

    def information(self, working_weights):
        """
        Weighted cross-product `X'WX`.

        Parameters
        ----------
        working_weights : np.ndarray
            Diagonal of `W`.

        Returns
        -------
        np.ndarray
        """
        w = np.asarray(working_weights, float)
        if scipy.sparse.issparse(self.X):
            XW = scipy.sparse.diags(w) @ self.X
            return np.asarray((self.X.T @ XW).toarray())
        return self.X.T @ (w[:, None] * self.X)

    def delta_from(self,
                   working_response,
                   working_weights):
        """
        Weighted least squares solve for the pending update
        `delbeta = (X'WX)^{-1} X'Wz`.

        Parameters
        ----------
        working_response : np.ndarray
            Response `z` of the weighted least squares problem.
        working_weights : np.ndarray
            Weights `W`.

        Returns
        -------
        np.ndarray
            The pending update `delbeta`.
        """
        z = np.asarray(working_response, float)
        w = np.asarray(working_weights, float)

        Q = self.information(w)
        V = self.X.T @ (w * z)
        try:
            self.delbeta[:] = cho_solve(cho_factor(Q), V)
        except LinAlgError:
            logging.debug("Error in Cholesky factorization: possible singular matrix, trying pseudo-inverse")
            sqrt_w = np.sqrt(w)
            X = self.X.toarray() if scipy.sparse.issparse(self.X) else self.X
            self.delbeta[:] = np.linalg.pinv(X * sqrt_w[:, None]) @ (sqrt_w * z)
        return self.delbeta

    def linear_predictor(self, step=1.):
        """
        Linear predictor at `beta0 + step * delbeta`; nothing is stored.

        Parameters
        ----------
        step : float
            Fraction of the pending update to apply.

        Returns
        -------
        np.ndarray
        """
        return self.X @ (self.beta0 + step * self.delbeta)

    def commit(self, step=1.):
        """Install `beta0 + step * delbeta` as the coefficients and clear the update."""
        self.beta0 += step * self.delbeta
        self.delbeta[:] = 0

    def inverse_information(self, working_weights):
        """
        `(X'WX)^{-1}`, or its pseudo-inverse when `X'WX` is singular.

        Parameters
        ----------
        working_weights : np.ndarray
            Diagonal of `W`.

        Returns
        -------
        np.ndarray
        """
        Q = self.information(working_weights)
        try:
            return cho_solve(cho_factor(Q), np.identity(Q.shape[0]))
        except LinAlgError:
            logging.debug("Error in Cholesky factorization: possible singular matrix, using pseudo-inverse")
            return np.linalg.pinv(Q)
