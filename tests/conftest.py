from dataclasses import replace

import pytest

from bessmodel.config import DEFAULT_INPUTS
from bessmodel.params import build_params
from bessmodel.utils import ParameterRecord

ZERO = ParameterRecord(
    capacity=0.0, arb_days=0.0, availability=0.0, rte=0.0,
    charge_price=0.0, discharge_price=0.0, degradation=0.0, cycles_per_day=0.0,
    ppa_volume=0.0, ppa_price=0.0, ppa_esc=0.0, ancillary_rev=0.0, other_rev=0.0,
    capex=0.0, insurance_rate=0.0, var_om_rate=0.0, fixed_om=0.0, admin_cost=0.0,
    preventive_maintenance=0.0, inflation_rate=0.0, project_life=5,
    debt_amount=0.0, debt_rate=0.0, loan_term=1, tax_rate=0.0,
)


def make_params(**overrides) -> ParameterRecord:
    return replace(ZERO, **overrides)


@pytest.fixture
def default_params():
    return build_params(DEFAULT_INPUTS)


@pytest.fixture
def arbitrage_params():
    """10 MWh, 300 days, 20/50 per kWh, no degradation, 5 years, all equity."""
    return make_params(
        capacity=10.0, arb_days=300, availability=1.0, rte=0.9,
        charge_price=20_000.0, discharge_price=50_000.0,
        project_life=5, capex=1_000_000.0,
    )


@pytest.fixture
def levered_params():
    return make_params(
        capacity=10.0, arb_days=300, availability=0.98, rte=0.9, cycles_per_day=1,
        charge_price=3_000.0, discharge_price=9_000.0, degradation=0.02,
        ppa_volume=1_000.0, ppa_price=6_000.0, ppa_esc=0.02,
        ancillary_rev=50_000.0, other_rev=10_000.0,
        capex=40_000_000.0, insurance_rate=0.003, var_om_rate=90.0,
        fixed_om=400_000.0, admin_cost=50_000.0, preventive_maintenance=25_000.0,
        inflation_rate=0.03, project_life=20,
        debt_amount=20_000_000.0, debt_rate=0.07, loan_term=10, tax_rate=0.3,
    )
