"""
Non-parametric covariate balancing weights (npCBPS) via empirical likelihood.

With the exposure standardised (a*) and the confounders whitened (x*), the
weights solve

    max Σ log w_i   subject to   Σ w_i = 1,   Σ w_i g_i = 0,
    g_i = (a*_i x*_i, a*_i, x*_i),

so the weighted exposure is uncorrelated with every confounder while the
weighted means and variances stay those of the sample. The Lagrange dual
gives w_i = 1 / (n (1 + λ'g_i)) with λ minimising

    F(λ) = -(1/n) Σ log*(1 + λ'g_i),

where log* is Owen's pseudo-logarithm (log above 1/n, a quadratic
extension below), which keeps F finite and convex everywhere. F is
minimised by damped Newton iterations.

References:
    Owen, A. B. (2001). Empirical Likelihood. Chapman & Hall, ch. 3.14.
    Fong, C., Hazlett, C. & Imai, K. (2018). Covariate balancing propensity
        score for a continuous treatment. Ann. Appl. Stat., 12(1), 156-177.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import linalg

from pycausalsurv.core.exceptions import BalanceNotAchieved, ConfigError
from pycausalsurv.weighting._balance import STOP_METHODS, balance_statistic, weighted_correlation
from pycausalsurv.weighting._common import StrategyFit

_MAX_BACKTRACK = 50


def _pseudo_log(z: NDArray, eps: float) -> tuple[NDArray, NDArray, NDArray]:
    """Owen's log* with its first and second derivatives."""
    hi = z >= eps
    value = np.empty_like(z)
    d1 = np.empty_like(z)
    d2 = np.empty_like(z)

    zh = z[hi]
    value[hi] = np.log(zh)
    d1[hi] = 1.0 / zh
    d2[hi] = -1.0 / (zh * zh)

    zl = z[~hi]
    value[~hi] = np.log(eps) - 1.5 + 2.0 * zl / eps - zl * zl / (2.0 * eps * eps)
    d1[~hi] = 2.0 / eps - zl / (eps * eps)
    d2[~hi] = -1.0 / (eps * eps)
    return value, d1, d2


def moment_matrix(exposure: NDArray, X: NDArray) -> NDArray:
    """(n, 2q+1) balance conditions from standardised a and whitened X."""
    a = (exposure - np.mean(exposure)) / np.std(exposure)
    Xc = X - np.mean(X, axis=0)
    cov = (Xc.T @ Xc) / len(Xc)
    vals, vecs = linalg.eigh(cov)
    keep = vals > 1e-10 * max(np.max(vals), 1e-300)
    Xw = (Xc @ vecs[:, keep]) / np.sqrt(vals[keep])
    return np.column_stack([a[:, None] * Xw, a, Xw])


class CovariateBalancing:
    """Empirical-likelihood covariate balancing for a continuous exposure.

    Parameters
    ----------
    threshold : float
        Largest acceptable balance statistic.
    stop_method : str
        "mean" or "max" absolute weighted correlation.
    max_iter : int
        Newton iteration budget for the dual problem.
    tol : float
        Convergence tolerance on the max-norm of the dual gradient.
    """

    name = "balancing"

    def __init__(
        self,
        threshold: float = 0.1,
        stop_method: str = "mean",
        max_iter: int = 100,
        tol: float = 1e-8,
    ):
        if stop_method not in STOP_METHODS:
            raise ConfigError(
                f"stop_method must be one of {STOP_METHODS}, got {stop_method!r}",
                option="stop_method", value=stop_method,
            )
        if not threshold > 0:
            raise ConfigError(f"threshold must be positive, got {threshold}",
                              option="threshold", value=threshold)
        if max_iter < 1:
            raise ConfigError(f"max_iter must be >= 1, got {max_iter}",
                              option="max_iter", value=max_iter)
        self.threshold = threshold
        self.stop_method = stop_method
        self.max_iter = max_iter
        self.tol = tol

    def _solve_dual(self, G: NDArray) -> tuple[NDArray, int, bool]:
        n, k = G.shape
        eps = 1.0 / n
        lam = np.zeros(k)

        def objective(lam_):
            value, _, _ = _pseudo_log(1.0 + G @ lam_, eps)
            return -np.mean(value)

        f = objective(lam)
        for iteration in range(1, self.max_iter + 1):
            z = 1.0 + G @ lam
            _, d1, d2 = _pseudo_log(z, eps)
            grad = -(G.T @ d1) / n
            if np.max(np.abs(grad)) <= self.tol:
                return lam, iteration - 1, bool(np.all(z >= eps))
            hess = (G * (-d2)[:, None]).T @ G / n
            try:
                step = linalg.solve(hess, -grad, assume_a="pos")
            except (linalg.LinAlgError, ValueError):
                step = linalg.lstsq(hess, -grad)[0]

            t = 1.0
            slope = grad @ step
            for _ in range(_MAX_BACKTRACK):
                f_new = objective(lam + t * step)
                if f_new <= f + 1e-4 * t * slope:
                    break
                t /= 2.0
            else:
                return lam, iteration, False
            lam = lam + t * step
            f = f_new

        z = 1.0 + G @ lam
        _, d1, _ = _pseudo_log(z, eps)
        grad = -(G.T @ d1) / n
        return lam, self.max_iter, bool(np.max(np.abs(grad)) <= self.tol and np.all(z >= eps))

    def estimate(self, exposure: NDArray, X: NDArray) -> StrategyFit:
        """Solve the balancing dual and return weights with mean 1.

        Raises
        ------
        BalanceNotAchieved
            If the dual does not converge to a feasible point (the balance
            conditions cannot be met exactly) or the resulting weighted
            correlations exceed the threshold.
        """
        G = moment_matrix(exposure, X)
        lam, n_iter, converged = self._solve_dual(G)
        z = 1.0 + G @ lam

        if converged:
            w = 1.0 / z
            w = w / np.mean(w)
            stat = balance_statistic(weighted_correlation(exposure, X, w), self.stop_method)
        else:
            stat = np.inf

        if not converged or stat > self.threshold:
            reason = ("empirical-likelihood dual did not converge to a feasible point"
                      if not converged else
                      f"{self.stop_method} |weighted correlation| of {stat:.4g} "
                      f"is above the threshold {self.threshold}")
            raise BalanceNotAchieved(
                f"covariate balancing failed: {reason}",
                iterations=n_iter,
                statistic=float(stat),
                threshold=self.threshold,
                strategy=self.name,
            )

        return StrategyFit(weights=w, statistic=float(stat), n_iter=n_iter, converged=True)

    def __repr__(self) -> str:
        return (
            f"CovariateBalancing(threshold={self.threshold}, "
            f"stop_method={self.stop_method!r}, max_iter={self.max_iter})"
        )
