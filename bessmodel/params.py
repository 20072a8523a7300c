import math
from typing import Any, Union

from .utils import RawInputs, ParameterRecord

KWH_PER_MWH = 1000.0


def as_float(value: Any, default: float = 0.0) -> float:
    """Coerce a form value to float; None, blanks, junk and nan/inf become `default`."""
    if value is None:
        return default
    if isinstance(value, str):
        value = value.strip().replace(',', '')
        if not value:
            return default
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def round_half_up(x: float) -> Union[int, float]:
    # Math.round semantics; Python's round() is banker's rounding
    if not math.isfinite(x):
        return x
    return int(math.floor(x + 0.5))


def whole_years(x: float, minimum: int) -> int:
    """Rounded year count, never below `minimum`; non-finite counts fall back to it."""
    years = round_half_up(x)
    if not math.isfinite(years):
        return minimum
    return max(minimum, years)


def pct(value: float) -> float:
    return value / 100.0


def per_kwh_to_per_mwh(price: float) -> float:
    return price * KWH_PER_MWH


def compute_ppa_volume(capacity: float, cycles_per_day: float, arb_days: float,
                       rte: float, availability: float) -> Union[int, float]:
    """Contracted MWh/yr from the storage duty cycle (fractions, not %)."""
    return round_half_up(capacity * (cycles_per_day or 0) * arb_days * rte * availability)


def compute_ppa_price(ppa_rate: float) -> Union[int, float]:
    """Unit PPA price per MWh from a per-kWh rate. Not annual revenue."""
    return round_half_up(per_kwh_to_per_mwh(ppa_rate))


def build_params(inputs: RawInputs) -> ParameterRecord:
    availability = pct(inputs.availability)
    rte = pct(inputs.rte)
    if inputs.ppa_volume is None:
        ppa_volume = compute_ppa_volume(inputs.capacity, inputs.cycles_per_day, inputs.arb_days,
                                        rte, availability)
    else:
        ppa_volume = inputs.ppa_volume
    if inputs.ppa_price is None:
        ppa_price = compute_ppa_price(inputs.ppa_rate)
    else:
        ppa_price = inputs.ppa_price
    return ParameterRecord(
        capacity=inputs.capacity,
        arb_days=inputs.arb_days,
        availability=availability,
        rte=rte,
        charge_price=per_kwh_to_per_mwh(inputs.charge_price),
        discharge_price=per_kwh_to_per_mwh(inputs.discharge_price),
        degradation=pct(inputs.degradation),
        cycles_per_day=inputs.cycles_per_day,
        ppa_volume=ppa_volume,
        ppa_price=ppa_price,
        ppa_esc=pct(inputs.ppa_esc),
        ancillary_rev=inputs.ancillary,
        other_rev=inputs.other_rev,
        capex=inputs.capex,
        insurance_rate=pct(inputs.insurance),
        var_om_rate=inputs.var_om,
        fixed_om=inputs.fixed_om,
        admin_cost=inputs.admin_cost,
        preventive_maintenance=inputs.preventive_maintenance,
        inflation_rate=pct(inputs.inflation),
        project_life=whole_years(inputs.project_life, 5),
        debt_amount=inputs.debt_amount,
        debt_rate=pct(inputs.debt_rate),
        loan_term=whole_years(inputs.loan_term, 1),
        tax_rate=pct(inputs.tax_rate),
        # undiscounted: NPV is reported as the plain cash flow total
        discount_rate=0.0,
    )
