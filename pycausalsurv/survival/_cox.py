"""
Weighted Cox proportional hazards model via Newton-Raphson.

Counting-process form: row k is at risk at time t when
start_k < t <= stop_k, so subjects enter the risk sets only at their
interval start (left truncation) and covariates may change between rows.

Efron's weighted partial likelihood (R survival::coxph convention, tied
deaths share their mean weight in the denominator terms):

    L(β) = Σ_j [ Σ_{i ∈ D_j} w_i η_i
                 - w̄_j Σ_{s=0}^{d_j-1} log(S0_j - (s/d_j) S0_{D_j}) ]

    S0_j    = Σ_{l ∈ R_j} w_l exp(η_l)
    S0_{D_j} = Σ_{i ∈ D_j} w_i exp(η_i)
    w̄_j     = Σ_{i ∈ D_j} w_i / d_j

With d_j = 1 (or ties="breslow") this reduces to Breslow's likelihood.

Algorithm:
    β = 0
    repeat:
        step = I(β)^{-1} U(β)
        halve the step while the log-likelihood decreases
        stop when |1 - L_old / L_new| <= tol or max|U| <= tol
    NonConvergence after max_iter iterations or on a singular I(β)

References:
    Cox, D. R. (1972). Regression models and life-tables. JRSS-B, 34(2), 187-220.
    Efron, B. (1977). The efficiency of Cox's likelihood function for
        censored data. JASA, 72(359), 557-565.
    Therneau, T. M. & Grambsch, P. M. (2000). Modeling Survival Data:
        Extending the Cox Model. Springer.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from pycausalsurv.core.exceptions import InsufficientEvents, NonConvergence
from pycausalsurv.survival._common import CoxParams

_MAX_HALVINGS = 20


@dataclass(frozen=True)
class _RiskSet:
    """Rows at risk and rows failing at one distinct event time."""

    time: float
    risk: NDArray        # indices with start < t <= stop
    death: NDArray       # indices with stop == t and event == 1
    death_in_risk: NDArray  # bool mask over ``risk`` marking deaths


def build_risk_sets(
    start: NDArray, stop: NDArray, event: NDArray, weights: NDArray
) -> list[_RiskSet]:
    """Risk and death index sets at each distinct event time.

    They do not depend on β, so they are computed once per fit.
    """
    is_event = (event == 1) & (weights > 0)
    event_times = np.unique(stop[is_event])

    risk_sets = []
    for t in event_times:
        risk = np.flatnonzero((start < t) & (stop >= t))
        death = np.flatnonzero(is_event & (stop == t))
        death_in_risk = np.isin(risk, death)
        risk_sets.append(_RiskSet(float(t), risk, death, death_in_risk))
    return risk_sets


def _efron_fractions(d: int, ties: str) -> NDArray:
    """s / d for s = 0..d-1 (Efron) or a single 0 (Breslow)."""
    if ties == "breslow" or d == 1:
        return np.zeros(1)
    return np.arange(d) / d


def _terms(
    beta: NDArray,
    X: NDArray,
    weights: NDArray,
    risk_sets: list[_RiskSet],
    ties: str,
    need_derivatives: bool = True,
) -> tuple[float, NDArray, NDArray]:
    """Log partial likelihood, score and observed information at β."""
    p = X.shape[1]
    eta = X @ beta
    # The shift cancels exactly in every partial-likelihood term
    shift = np.max(eta) if eta.size else 0.0
    r = weights * np.exp(eta - shift)

    loglik = 0.0
    score = np.zeros(p)
    info = np.zeros((p, p))

    for rs in risk_sets:
        Xr = X[rs.risk]
        rr = r[rs.risk]
        Xd = X[rs.death]
        rd = r[rs.death]
        wd = weights[rs.death]
        d = len(rs.death)
        wd_sum = np.sum(wd)
        mean_w = wd_sum / d

        S0 = np.sum(rr)
        S0_d = np.sum(rd)

        fracs = _efron_fractions(d, ties)
        scale = mean_w if len(fracs) == d else wd_sum
        denoms = S0 - fracs * S0_d
        if np.any(denoms <= 0):
            continue

        loglik += np.sum(wd * (eta[rs.death] - shift)) - scale * np.sum(np.log(denoms))

        if not need_derivatives:
            continue

        S1 = Xr.T @ rr
        S1_d = Xd.T @ rd
        S2 = (Xr * rr[:, None]).T @ Xr
        S2_d = (Xd * rd[:, None]).T @ Xd

        score += wd @ Xd
        for frac, denom in zip(fracs, denoms):
            a = (S1 - frac * S1_d) / denom
            score -= scale * a
            info += scale * ((S2 - frac * S2_d) / denom - np.outer(a, a))

    return loglik, score, info


def _loglik(beta, X, weights, risk_sets, ties) -> float:
    return _terms(beta, X, weights, risk_sets, ties, need_derivatives=False)[0]


def baseline_hazard(
    beta: NDArray,
    X_centered: NDArray,
    weights: NDArray,
    risk_sets: list[_RiskSet],
    ties: str,
) -> tuple[NDArray, NDArray]:
    """Efron (or Breslow) baseline hazard increments at the centering point.

    Returns (event_times, cumulative_hazard). Increments are non-negative,
    so the cumulative hazard is non-decreasing.
    """
    r = weights * np.exp(X_centered @ beta)
    times = np.empty(len(risk_sets))
    increments = np.zeros(len(risk_sets))
    for j, rs in enumerate(risk_sets):
        times[j] = rs.time
        d = len(rs.death)
        wd_sum = np.sum(weights[rs.death])
        fracs = _efron_fractions(d, ties)
        scale = wd_sum / d if len(fracs) == d else wd_sum
        denoms = np.sum(r[rs.risk]) - fracs * np.sum(r[rs.death])
        if np.all(denoms > 0):
            increments[j] = scale * np.sum(1.0 / denoms)
    return times, np.cumsum(increments)


def score_residuals(
    beta: NDArray,
    X: NDArray,
    weights: NDArray,
    event: NDArray,
    risk_sets: list[_RiskSet],
    ties: str,
) -> NDArray:
    """Per-row score residuals (unweighted); Σ_k w_k resid_k = U(β).

    Rows failing at a tied time share the Efron-averaged mean, and their
    at-risk contribution at stage s is scaled by (1 - s/d).
    """
    n, p = X.shape
    eta = X @ beta
    shift = np.max(eta) if n else 0.0
    e = np.exp(eta - shift)
    r = weights * e
    resid = np.zeros((n, p))

    for rs in risk_sets:
        d = len(rs.death)
        wd_sum = np.sum(weights[rs.death])
        fracs = _efron_fractions(d, ties)
        scale = wd_sum / d if len(fracs) == d else wd_sum

        rr = r[rs.risk]
        rd = r[rs.death]
        S0 = np.sum(rr)
        S0_d = np.sum(rd)
        S1 = X[rs.risk].T @ rr
        S1_d = X[rs.death].T @ rd
        denoms = S0 - fracs * S0_d
        if np.any(denoms <= 0):
            continue

        means = (S1[None, :] - fracs[:, None] * S1_d[None, :]) / denoms[:, None]
        h = scale / denoms
        H = np.sum(h)
        A = h @ means
        # Deaths stay in the later Efron denominators with weight (1 - s/d)
        keep = 1.0 - fracs if len(fracs) == d else np.ones(1)
        H_d = np.sum(keep * h)
        A_d = (keep * h) @ means

        Xr = X[rs.risk]
        at_risk = np.where(rs.death_in_risk[:, None],
                           Xr * H_d - A_d, Xr * H - A)
        resid[rs.risk] -= e[rs.risk, None] * at_risk
        resid[rs.death] += X[rs.death] - np.mean(means, axis=0)

    return resid


def robust_variance(
    resid: NDArray,
    weights: NDArray,
    variance: NDArray,
    cluster: NDArray | None,
) -> NDArray:
    """Sandwich variance D'D with D the (cluster-summed) dfbeta matrix."""
    dfbeta = (resid * weights[:, None]) @ variance
    if cluster is not None:
        n_clusters = int(np.max(cluster)) + 1
        summed = np.zeros((n_clusters, dfbeta.shape[1]))
        np.add.at(summed, cluster, dfbeta)
        dfbeta = summed
    return dfbeta.T @ dfbeta


def cox_fit(
    start: NDArray,
    stop: NDArray,
    event: NDArray,
    X: NDArray,
    weights: NDArray,
    *,
    cluster: NDArray | None = None,
    names: tuple[str, ...] | None = None,
    ties: str = "efron",
    tol: float = 1e-9,
    max_iter: int = 25,
    robust: bool = False,
    conf_level: float = 0.95,
    min_events: int = 1,
    target: int = 1,
) -> CoxParams:
    """Fit a (weighted) counting-process Cox model.

    Parameters
    ----------
    start, stop : NDArray
        (n,) at-risk intervals (start, stop].
    event : NDArray
        (n,) 1 = target event at ``stop``, 0 = censored.
    X : NDArray
        (n, p) covariate matrix (no intercept).
    weights : NDArray
        (n,) non-negative case weights.
    cluster : NDArray or None
        (n,) integer cluster codes for the robust variance.
    ties : str
        "efron" (default) or "breslow".
    tol : float
        Convergence tolerance on the relative log-likelihood change and
        on the max-norm of the score.
    max_iter : int
        Newton-Raphson iteration budget.
    robust : bool
        Compute the sandwich variance and report its standard errors.
    conf_level : float
        Confidence level for Wald intervals.
    min_events : int
        Minimum number of target events required.

    Returns
    -------
    CoxParams

    Raises
    ------
    InsufficientEvents
        Fewer than ``min_events`` weighted target events.
    NonConvergence
        Iteration budget exhausted or singular information matrix.
    """
    n, p = X.shape
    if names is None:
        names = tuple(f"x{i}" for i in range(p))

    n_events = int(np.sum((event == 1) & (weights > 0)))
    if n_events < max(min_events, 1):
        raise InsufficientEvents(
            f"{n_events} target event(s) observed, at least {min_events} required",
            n_events=n_events,
            min_events=min_events,
        )

    # Centering leaves β unchanged and keeps exp(η) well scaled
    w_total = np.sum(weights)
    means = (weights @ X) / w_total if w_total > 0 else np.mean(X, axis=0)
    Xc = X - means

    risk_sets = build_risk_sets(start, stop, event, weights)

    beta = np.zeros(p)
    loglik, score, info = _terms(beta, Xc, weights, risk_sets, ties)
    null_loglik = loglik

    converged = False
    n_iter = 0
    rel_change = np.inf
    score_norm = float(np.max(np.abs(score))) if p else 0.0

    for iteration in range(1, max_iter + 1):
        n_iter = iteration
        try:
            step = np.linalg.solve(info, score)
        except np.linalg.LinAlgError:
            raise NonConvergence(
                "information matrix is singular; covariates may be collinear "
                "or constant within every risk set",
                iterations=iteration - 1,
                coefficients=beta.copy(),
                score_norm=score_norm,
                reason="singular",
                threshold=tol,
            ) from None

        beta_new = beta + step
        loglik_new = _loglik(beta_new, Xc, weights, risk_sets, ties)

        # Step halving when the log-likelihood gets worse (as R's coxph)
        halvings = 0
        while (not np.isfinite(loglik_new) or loglik_new < loglik) and halvings < _MAX_HALVINGS:
            step = step / 2.0
            beta_new = beta + step
            loglik_new = _loglik(beta_new, Xc, weights, risk_sets, ties)
            halvings += 1

        if not np.isfinite(loglik_new):
            raise NonConvergence(
                "log partial likelihood became non-finite",
                iterations=iteration,
                coefficients=beta.copy(),
                score_norm=score_norm,
                reason="diverging",
                threshold=tol,
            )

        if loglik_new != 0:
            rel_change = abs(1.0 - loglik / loglik_new)
        else:
            rel_change = abs(loglik_new - loglik)

        beta = beta_new
        loglik, score, info = _terms(beta, Xc, weights, risk_sets, ties)
        score_norm = float(np.max(np.abs(score))) if p else 0.0

        if rel_change <= tol or score_norm <= tol:
            converged = True
            break

    if not converged:
        raise NonConvergence(
            f"Newton-Raphson did not converge in {max_iter} iterations "
            f"(relative log-likelihood change {rel_change:.3g}, "
            f"max |score| {score_norm:.3g})",
            iterations=n_iter,
            coefficients=beta.copy(),
            score_norm=score_norm,
            final_change=float(rel_change),
            reason="max_iterations",
            threshold=tol,
        )

    try:
        variance = np.linalg.inv(info)
    except np.linalg.LinAlgError:
        raise NonConvergence(
            "information matrix is singular at the solution",
            iterations=n_iter,
            coefficients=beta.copy(),
            score_norm=score_norm,
            reason="singular",
            threshold=tol,
        ) from None

    robust_var = None
    if robust:
        resid = score_residuals(beta, Xc, weights, event, risk_sets, ties)
        robust_var = robust_variance(resid, weights, variance, cluster)

    var_used = robust_var if robust_var is not None else variance
    se = np.sqrt(np.maximum(np.diag(var_used), 0.0))
    z = np.divide(beta, se, out=np.zeros(p), where=se > 0)
    p_values = 2.0 * stats.norm.sf(np.abs(z))
    z_crit = stats.norm.ppf(0.5 + conf_level / 2.0)

    base_time, base_cumhaz = baseline_hazard(beta, Xc, weights, risk_sets, ties)

    n_clusters = int(np.max(cluster)) + 1 if cluster is not None else None

    return CoxParams(
        names=tuple(names),
        coefficients=beta,
        hazard_ratios=np.exp(beta),
        variance=variance,
        robust_variance=robust_var,
        standard_errors=se,
        z_statistics=z,
        p_values=p_values,
        ci_lower=beta - z_crit * se,
        ci_upper=beta + z_crit * se,
        conf_level=conf_level,
        loglik=(float(null_loglik), float(loglik)),
        score_norm=score_norm,
        means=means,
        baseline_time=base_time,
        baseline_cumhaz=base_cumhaz,
        n_events=n_events,
        weighted_events=float(np.sum(weights[event == 1])),
        n_observations=n,
        n_clusters=n_clusters,
        n_iter=n_iter,
        converged=converged,
        ties=ties,
        target=target,
    )
