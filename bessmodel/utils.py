from dataclasses import dataclass
from typing import Optional, Tuple

Series = Tuple[float, ...]


@dataclass(frozen=True)
class RawInputs:
    """User-facing inputs: percentages as 0-100, energy prices per kWh."""
    # technical
    capacity: float = 0.0  # MWh usable
    arb_days: float = 0.0  # days/yr
    availability: float = 0.0  # %
    rte: float = 0.0  # % round-trip efficiency
    cycles_per_day: float = 0.0
    degradation: float = 0.0  # %/yr
    # pricing
    charge_price: float = 0.0  # per kWh
    discharge_price: float = 0.0  # per kWh
    # revenue
    ppa_rate: float = 0.0  # per kWh
    ppa_esc: float = 0.0  # %
    ppa_volume: Optional[float] = None  # MWh/yr, None = derive from capacity
    ppa_price: Optional[float] = None  # per MWh, None = derive from ppa_rate
    ancillary: float = 0.0  # per yr
    other_rev: float = 0.0  # per yr
    # cost
    capex: float = 0.0
    insurance: float = 0.0  # % of capex
    var_om: float = 0.0  # per MWh throughput
    fixed_om: float = 0.0  # per yr
    admin_cost: float = 0.0  # per yr
    preventive_maintenance: float = 0.0  # per yr
    inflation: float = 0.0  # %
    project_life: float = 0.0  # years
    # debt
    debt_amount: float = 0.0
    debt_rate: float = 0.0  # %
    loan_term: float = 0.0  # years
    tax_rate: float = 0.0  # %


@dataclass(frozen=True)
class ParameterRecord:
    """Engine units: rates as fractions, energy prices per MWh."""
    capacity: float
    arb_days: float
    availability: float
    rte: float
    charge_price: float
    discharge_price: float
    degradation: float
    cycles_per_day: float
    ppa_volume: float
    ppa_price: float
    ppa_esc: float
    ancillary_rev: float
    other_rev: float
    capex: float
    insurance_rate: float
    var_om_rate: float
    fixed_om: float
    admin_cost: float
    preventive_maintenance: float
    inflation_rate: float
    project_life: int
    debt_amount: float
    debt_rate: float
    loan_term: int
    tax_rate: float
    discount_rate: float = 0.0


@dataclass(frozen=True)
class EnergyProfile:
    eff_capacity: Series
    energy_charged: Series
    energy_sold: Series


@dataclass(frozen=True)
class RevenueLines:
    sell_revenue: Series
    charge_cost: Series
    arb_revenue: Series
    ppa_revenue: Series
    ancillary_revenue: Series
    other_revenue: Series
    total_revenue: Series


@dataclass(frozen=True)
class OpexLines:
    insurance: Series
    var_om: Series
    fixed_om: Series
    total_opex: Series


@dataclass(frozen=True)
class DebtSchedule:
    opening: Series
    principal: Series
    interest: Series
    closing: Series


@dataclass(frozen=True)
class IncomeStatement:
    ebitda: Series
    depreciation: Series
    ebit: Series
    interest: Series
    ebt: Series
    tax: Series
    net_income: Series


@dataclass(frozen=True)
class CashFlows:
    unl_net_income: Series
    unl_ocf: Series
    unl_fcf: Series
    project_cf: Series  # length N+1, index 0 = -capex
    cum_cf: Series  # length N+1
    lev_ocf: Series
    lev_fcf: Series
    equity_cf: Series  # length N+1, index 0 = -(capex - debt)


@dataclass(frozen=True)
class IRRSolution:
    rate: float
    converged: bool
    iterations: int


@dataclass(frozen=True)
class ModelResult:
    params: ParameterRecord
    years: Tuple[int, ...]
    energy: EnergyProfile
    revenue: RevenueLines
    opex: OpexLines
    income: IncomeStatement
    debt: DebtSchedule
    cash: CashFlows
    irr: float
    npv: float
    payback: float
    equity_irr: float
    equity_npv: float
    irr_converged: bool = True
    equity_irr_converged: bool = True

    @property
    def n_years(self) -> int:
        return len(self.years)
