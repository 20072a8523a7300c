import io
import math
from typing import Dict, Iterable, List, Tuple

import numpy as np
import pandas as pd

from .sensitivity import TornadoBar
from .utils import ModelResult


def _income_lines(r: ModelResult) -> List[Tuple[str, tuple]]:
    return [
        ('Arbitrage Revenue', r.revenue.arb_revenue),
        ('PPA Revenue', r.revenue.ppa_revenue),
        ('Ancillary Services', r.revenue.ancillary_revenue),
        ('Other Revenue', r.revenue.other_revenue),
        ('Total Revenue', r.revenue.total_revenue),
        ('Insurance', r.opex.insurance),
        ('Variable O&M', r.opex.var_om),
        ('Fixed O&M', r.opex.fixed_om),
        ('Total OPEX', r.opex.total_opex),
        ('EBITDA', r.income.ebitda),
        ('Depreciation', r.income.depreciation),
        ('EBIT', r.income.ebit),
        ('Interest', r.income.interest),
        ('EBT', r.income.ebt),
        ('Tax', r.income.tax),
        ('Net Income', r.income.net_income),
    ]


def annual_frame(r: ModelResult) -> pd.DataFrame:
    """One row per operating year, one column per line item."""
    cols = {
        'eff_capacity': r.energy.eff_capacity,
        'energy_charged': r.energy.energy_charged,
        'energy_sold': r.energy.energy_sold,
        'sell_revenue': r.revenue.sell_revenue,
        'charge_cost': r.revenue.charge_cost,
        'arb_revenue': r.revenue.arb_revenue,
        'ppa_revenue': r.revenue.ppa_revenue,
        'ancillary_revenue': r.revenue.ancillary_revenue,
        'other_revenue': r.revenue.other_revenue,
        'total_revenue': r.revenue.total_revenue,
        'insurance': r.opex.insurance,
        'var_om': r.opex.var_om,
        'fixed_om': r.opex.fixed_om,
        'total_opex': r.opex.total_opex,
        'ebitda': r.income.ebitda,
        'depreciation': r.income.depreciation,
        'ebit': r.income.ebit,
        'interest': r.income.interest,
        'ebt': r.income.ebt,
        'tax': r.income.tax,
        'net_income': r.income.net_income,
        'debt_opening': r.debt.opening,
        'debt_principal': r.debt.principal,
        'debt_closing': r.debt.closing,
        'unl_net_income': r.cash.unl_net_income,
        'unl_ocf': r.cash.unl_ocf,
        'unl_fcf': r.cash.unl_fcf,
        'lev_ocf': r.cash.lev_ocf,
        'lev_fcf': r.cash.lev_fcf,
    }
    df = pd.DataFrame({k: list(v) for k, v in cols.items()}, index=pd.Index(r.years, name='year'))
    return df


def income_statement_frame(r: ModelResult) -> pd.DataFrame:
    columns = [f'Year {y}' for y in r.years]
    lines = _income_lines(r)
    return pd.DataFrame([list(v) for _, v in lines], index=[name for name, _ in lines], columns=columns)


def cash_flow_frame(r: ModelResult) -> pd.DataFrame:
    columns = [f'Year {y}' for y in range(r.n_years + 1)]
    rows = {
        'Free Cash Flow': r.cash.project_cf,
        'Cumulative CF': r.cash.cum_cf,
        'Equity CF': r.cash.equity_cf,
    }
    return pd.DataFrame([list(v) for v in rows.values()], index=list(rows), columns=columns)


def metrics_summary(r: ModelResult) -> Dict[str, float]:
    return {
        'project_irr': r.irr,
        'npv': r.npv,
        'payback_years': r.payback,
        'equity_irr': r.equity_irr,
        'equity_npv': r.equity_npv,
        'irr_converged': r.irr_converged,
        'equity_irr_converged': r.equity_irr_converged,
    }


def tornado_frame(bars: Iterable[TornadoBar]) -> pd.DataFrame:
    return pd.DataFrame([{
        'label': b.label,
        'base_irr': b.base_irr,
        'irr_low': b.irr_low,
        'irr_high': b.irr_high,
        'low_delta_pp': b.low_delta_pp,
        'high_delta_pp': b.high_delta_pp,
        'swing': b.swing,
    } for b in bars], columns=['label', 'base_irr', 'irr_low', 'irr_high', 'low_delta_pp', 'high_delta_pp', 'swing'])


def fmt_pct(val: float) -> str:
    if val is None or math.isnan(val):
        return '—'
    return f'{val * 100:.2f}%'


def _round_half_up(df: pd.DataFrame) -> pd.DataFrame:
    # Math.round semantics; DataFrame.round is half-to-even
    return np.floor(df + 0.5)


def to_csv(r: ModelResult) -> str:
    """Income statement, cash flow and metrics as one CSV document."""
    buf = io.StringIO()
    header = ['Line Item', 'Year 0'] + [f'Year {y}' for y in r.years]
    buf.write(','.join(header) + '\n\nINCOME STATEMENT\n')

    income = _round_half_up(income_statement_frame(r))
    income.insert(0, 'Year 0', '')
    income.to_csv(buf, header=False, float_format='%.0f', lineterminator='\n')

    buf.write('\nCASH FLOW\n')
    _round_half_up(cash_flow_frame(r)).to_csv(buf, header=False, float_format='%.0f', lineterminator='\n')

    buf.write('\nMETRICS\n')
    buf.write(f'Project IRR,{fmt_pct(r.irr)}\n')
    buf.write(f'NPV,{r.npv:.0f}\n')
    buf.write(f'Payback,{r.payback:.1f} years\n')
    buf.write(f'Equity IRR,{fmt_pct(r.equity_irr)}\n')
    return buf.getvalue()
