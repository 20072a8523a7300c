import logging
from typing import Sequence

import numpy as np
import numpy_financial as npf

from .energy import project_energy
from .utils import (
    ParameterRecord, EnergyProfile, RevenueLines, OpexLines, DebtSchedule,
    IncomeStatement, CashFlows, IRRSolution, ModelResult,
)

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365


def build_revenue(p: ParameterRecord, energy: EnergyProfile) -> RevenueLines:
    sell = [e * p.discharge_price for e in energy.energy_sold]
    charge = [e * p.charge_price for e in energy.energy_charged]
    arb = [s - c for s, c in zip(sell, charge)]
    # exponent is the 0-based year index
    ppa = [p.ppa_volume * p.ppa_price * (1.0 + p.ppa_esc) ** y for y in range(p.project_life)]
    ancillary = [p.ancillary_rev] * p.project_life
    other = [p.other_rev] * p.project_life
    total = [a + b + c + d for a, b, c, d in zip(arb, ppa, ancillary, other)]
    return RevenueLines(
        sell_revenue=tuple(sell),
        charge_cost=tuple(charge),
        arb_revenue=tuple(arb),
        ppa_revenue=tuple(ppa),
        ancillary_revenue=tuple(ancillary),
        other_revenue=tuple(other),
        total_revenue=tuple(total),
    )


def build_opex(p: ParameterRecord) -> OpexLines:
    n = p.project_life
    insurance = [p.capex * p.insurance_rate] * n
    # throughput on nameplate capacity, not the degraded one
    throughput = p.capacity * p.cycles_per_day * DAYS_PER_YEAR
    var_om = [throughput * p.var_om_rate] * n
    base_fixed = p.fixed_om + p.admin_cost + p.preventive_maintenance
    fixed_om = [base_fixed * (1.0 + p.inflation_rate) ** y for y in range(n)]
    total = [a + b + c for a, b, c in zip(insurance, var_om, fixed_om)]
    return OpexLines(
        insurance=tuple(insurance),
        var_om=tuple(var_om),
        fixed_om=tuple(fixed_om),
        total_opex=tuple(total),
    )


def build_debt_schedule(p: ParameterRecord) -> DebtSchedule:
    """Straight-line principal over the loan term, interest on the opening balance."""
    annual_principal = p.debt_amount / p.loan_term if p.loan_term else 0.0
    opening, principal, interest, closing = [], [], [], []
    for y in range(p.project_life):
        if y == 0:
            open_y = p.debt_amount
        else:
            open_y = closing[y - 1] if closing[y - 1] > 0 else 0.0
        prin_y = min(annual_principal, open_y) if open_y > 0 and y < p.loan_term else 0.0
        opening.append(open_y)
        principal.append(prin_y)
        interest.append(open_y * p.debt_rate)
        closing.append(open_y - prin_y)
    return DebtSchedule(
        opening=tuple(opening),
        principal=tuple(principal),
        interest=tuple(interest),
        closing=tuple(closing),
    )


def build_income_statement(p: ParameterRecord, revenue: RevenueLines, opex: OpexLines,
                           debt: DebtSchedule) -> IncomeStatement:
    annual_depr = p.capex / p.project_life
    depr = [annual_depr if y < p.project_life else 0.0 for y in range(p.project_life)]
    ebitda = [r - o for r, o in zip(revenue.total_revenue, opex.total_opex)]
    ebit = [e - d for e, d in zip(ebitda, depr)]
    ebt = [e - i for e, i in zip(ebit, debt.interest)]
    # losses are not taxed and not carried forward
    tax = [e * p.tax_rate if e > 0 else 0.0 for e in ebt]
    net = [e - t for e, t in zip(ebt, tax)]
    return IncomeStatement(
        ebitda=tuple(ebitda),
        depreciation=tuple(depr),
        ebit=tuple(ebit),
        interest=debt.interest,
        ebt=tuple(ebt),
        tax=tuple(tax),
        net_income=tuple(net),
    )


def build_cash_flows(p: ParameterRecord, income: IncomeStatement, debt: DebtSchedule) -> CashFlows:
    # unlevered view taxes EBIT as if the project were all-equity
    unl_ni = [e * (1.0 - p.tax_rate) for e in income.ebit]
    unl_ocf = [n + d for n, d in zip(unl_ni, income.depreciation)]
    unl_fcf = list(unl_ocf)
    project_cf = [-p.capex] + unl_fcf

    cum_cf = []
    running = 0.0
    for cf in project_cf:
        running += cf
        cum_cf.append(running)

    lev_ocf = [n + d for n, d in zip(income.net_income, income.depreciation)]
    lev_fcf = [o - pr for o, pr in zip(lev_ocf, debt.principal)]
    equity_cf = [-(p.capex - p.debt_amount)] + lev_fcf
    return CashFlows(
        unl_net_income=tuple(unl_ni),
        unl_ocf=tuple(unl_ocf),
        unl_fcf=tuple(unl_fcf),
        project_cf=tuple(project_cf),
        cum_cf=tuple(cum_cf),
        lev_ocf=tuple(lev_ocf),
        lev_fcf=tuple(lev_fcf),
        equity_cf=tuple(equity_cf),
    )


def solve_irr(cash_flows: Sequence[float], guess: float = 0.1, max_iter: int = 1000,
              tol: float = 1e-8) -> IRRSolution:
    """Newton-Raphson on NPV(rate). Always returns a rate; `converged` says whether
    the step size fell below `tol`. Rates leaving [-0.99, 10] are reset into range."""
    flows = np.asarray(cash_flows, dtype=float)
    t = np.arange(flows.size)
    rate = float(guess)
    with np.errstate(all='ignore'):
        for i in range(max_iter):
            factor = (1.0 + rate) ** t
            npv = float(np.sum(flows / factor))
            dnpv = float(-np.sum(t * flows / (factor * (1.0 + rate))))
            if abs(dnpv) < 1e-15:
                logger.debug("IRR: flat derivative after %d iterations at rate %s", i, rate)
                return IRRSolution(rate, False, i)
            new_rate = rate - npv / dnpv
            if abs(new_rate - rate) < tol:
                return IRRSolution(new_rate, True, i + 1)
            rate = new_rate
            if rate < -0.99:
                rate = -0.5
            if rate > 10:
                rate = 1.0
    logger.debug("IRR: no convergence in %d iterations, last rate %s", max_iter, rate)
    return IRRSolution(rate, False, max_iter)


def calc_irr(cash_flows: Sequence[float], guess: float = 0.1, max_iter: int = 1000,
             tol: float = 1e-8) -> float:
    return solve_irr(cash_flows, guess, max_iter, tol).rate


def calc_npv(rate: float, cash_flows: Sequence[float]) -> float:
    # npf.npv discounts the first flow at t=0
    with np.errstate(all='ignore'):
        return float(npf.npv(rate, list(cash_flows)))


def calc_payback(cash_flows: Sequence[float]) -> float:
    """Undiscounted payback in years, interpolated within the crossing year.
    Returns len(cash_flows) when the cumulative never reaches zero."""
    cum = 0.0
    for t, cf in enumerate(cash_flows):
        cum += cf
        if cum >= 0 and t > 0:
            prev = cum - cf
            if cf > 0:
                return (t - 1) + (-prev / cf)
            return float(t)
    return float(len(cash_flows))


def run_model(p: ParameterRecord) -> ModelResult:
    logger.debug("run_model: life=%s capex=%s debt=%s", p.project_life, p.capex, p.debt_amount)
    energy = project_energy(p)
    revenue = build_revenue(p, energy)
    opex = build_opex(p)
    debt = build_debt_schedule(p)
    income = build_income_statement(p, revenue, opex, debt)
    cash = build_cash_flows(p, income, debt)

    project_irr = solve_irr(cash.project_cf)
    equity_irr = solve_irr(cash.equity_cf)
    if not project_irr.converged:
        logger.warning("Project IRR did not converge (best estimate %.6f)", project_irr.rate)

    return ModelResult(
        params=p,
        years=tuple(range(1, p.project_life + 1)),
        energy=energy,
        revenue=revenue,
        opex=opex,
        income=income,
        debt=debt,
        cash=cash,
        irr=project_irr.rate,
        npv=calc_npv(p.discount_rate, cash.project_cf),
        payback=calc_payback(cash.project_cf),
        equity_irr=equity_irr.rate,
        equity_npv=calc_npv(p.discount_rate, cash.equity_cf),
        irr_converged=project_irr.converged,
        equity_irr_converged=equity_irr.converged,
    )
