import logging
from dataclasses import dataclass, fields, replace
from typing import Iterable, List, Optional, Sequence, Tuple

from .finance import run_model
from .params import whole_years
from .utils import ParameterRecord, ModelResult

logger = logging.getLogger(__name__)

TORNADO_PARAMS: Tuple[Tuple[str, str], ...] = (
    ('discharge_price', 'Discharge Price'),
    ('charge_price', 'Charge Price'),
    ('capex', 'CAPEX'),
    ('capacity', 'Capacity'),
    ('fixed_om', 'Fixed O&M'),
    ('ppa_price', 'PPA Price'),
)

THREE_POINT = (0.8, 1.0, 1.2)
DEGRADATION_RATES = (0.015, 0.025, 0.035)

_INT_FLOORS = {'project_life': 5, 'loan_term': 1}


@dataclass(frozen=True)
class SweepPoint:
    multiplier: float
    value: float
    model: ModelResult


@dataclass(frozen=True)
class SpreadPoint:
    multiplier: float
    spread: float
    model: ModelResult


@dataclass(frozen=True)
class EfficiencyPoint:
    efficiency: float
    yr1_revenue: float
    model: ModelResult


@dataclass(frozen=True)
class DegradationPoint:
    rate: float
    yr10_capacity: float
    model: ModelResult


@dataclass(frozen=True)
class TornadoBar:
    key: str
    label: str
    base_irr: float
    irr_low: float
    irr_high: float

    @property
    def low_delta_pp(self) -> float:
        return (self.irr_low - self.base_irr) * 100

    @property
    def high_delta_pp(self) -> float:
        return (self.irr_high - self.base_irr) * 100

    @property
    def swing(self) -> float:
        return abs(self.high_delta_pp - self.low_delta_pp)


@dataclass(frozen=True)
class SensitivityReport:
    spread: List[SpreadPoint]
    capex: List[SweepPoint]
    efficiency: List[EfficiencyPoint]
    degradation: List[DegradationPoint]
    tornado: List[TornadoBar]


def scale_param(base: ParameterRecord, key: str, multiplier: float) -> ParameterRecord:
    """Copy of `base` with one numeric field multiplied by `multiplier`."""
    names = {f.name for f in fields(ParameterRecord)}
    if key not in names:
        raise ValueError(f"Unknown parameter: {key!r}")
    value = getattr(base, key) * multiplier
    if key in _INT_FLOORS:
        value = whole_years(value, _INT_FLOORS[key])
    return replace(base, **{key: value})


def run_sensitivity(base: ParameterRecord, key: str, multipliers: Iterable[float]) -> List[SweepPoint]:
    out = []
    for m in multipliers:
        p = scale_param(base, key, m)
        logger.debug("sweep %s x%s", key, m)
        out.append(SweepPoint(multiplier=m, value=getattr(p, key), model=run_model(p)))
    return out


def run_spread_sensitivity(base: ParameterRecord, multipliers: Iterable[float] = THREE_POINT) -> List[SpreadPoint]:
    """Scale the discharge price; charge price held."""
    return [SpreadPoint(multiplier=pt.multiplier,
                        spread=pt.model.params.discharge_price - pt.model.params.charge_price,
                        model=pt.model)
            for pt in run_sensitivity(base, 'discharge_price', multipliers)]


def run_capex_sensitivity(base: ParameterRecord, multipliers: Iterable[float] = THREE_POINT) -> List[SweepPoint]:
    return run_sensitivity(base, 'capex', multipliers)


def run_efficiency_sensitivity(base: ParameterRecord,
                               efficiencies: Optional[Sequence[float]] = None) -> List[EfficiencyPoint]:
    if efficiencies is None:
        efficiencies = [base.rte * 0.95, base.rte, min(1.0, base.rte * 1.05)]
    out = []
    for eff in efficiencies:
        model = run_model(replace(base, rte=eff))
        yr1 = model.revenue.total_revenue[0] if model.n_years else 0.0
        out.append(EfficiencyPoint(efficiency=eff, yr1_revenue=yr1, model=model))
    return out


def run_degradation_sensitivity(base: ParameterRecord,
                                rates: Iterable[float] = DEGRADATION_RATES) -> List[DegradationPoint]:
    out = []
    for r in rates:
        model = run_model(replace(base, degradation=r))
        out.append(DegradationPoint(rate=r, yr10_capacity=base.capacity * (1 - r) ** 9, model=model))
    return out


def run_tornado_sensitivity(base: ParameterRecord,
                            params: Sequence[Tuple[str, str]] = TORNADO_PARAMS,
                            low: float = 0.9, high: float = 1.1) -> List[TornadoBar]:
    """IRR at `low` and `high` times each parameter, in the order given."""
    base_irr = run_model(base).irr
    bars = []
    for key, label in params:
        irr_low = run_model(scale_param(base, key, low)).irr
        irr_high = run_model(scale_param(base, key, high)).irr
        bars.append(TornadoBar(key=key, label=label, base_irr=base_irr, irr_low=irr_low, irr_high=irr_high))
    return bars


def rank_tornado(bars: Iterable[TornadoBar]) -> List[TornadoBar]:
    """Largest IRR swing first; ties keep their input order."""
    return sorted(bars, key=lambda b: b.swing, reverse=True)


def run_sensitivity_suite(base: ParameterRecord) -> SensitivityReport:
    return SensitivityReport(
        spread=run_spread_sensitivity(base),
        capex=run_capex_sensitivity(base),
        efficiency=run_efficiency_sensitivity(base),
        degradation=run_degradation_sensitivity(base),
        tornado=rank_tornado(run_tornado_sensitivity(base)),
    )
