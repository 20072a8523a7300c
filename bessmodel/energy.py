from typing import List
from .utils import ParameterRecord, EnergyProfile


def effective_capacity(capacity: float, degradation: float, years: int) -> List[float]:
    """Year-1 capacity is nameplate; each later year loses `degradation` of the prior year."""
    cap = [capacity]
    for _ in range(1, years):
        cap.append(cap[-1] * (1.0 - degradation))
    return cap[:years]


def project_energy(p: ParameterRecord) -> EnergyProfile:
    cap = effective_capacity(p.capacity, p.degradation, p.project_life)
    charged = [c * p.arb_days * p.availability for c in cap]
    sold = [e * p.rte for e in charged]
    return EnergyProfile(
        eff_capacity=tuple(cap),
        energy_charged=tuple(charged),
        energy_sold=tuple(sold),
    )
