import logging
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import yaml

from .params import as_float
from .utils import RawInputs

logger = logging.getLogger(__name__)

# UI defaults. Monetary values are in one base currency throughout.
DEFAULT_INPUTS = RawInputs(
    capacity=1.8,
    arb_days=280,
    availability=98,
    rte=90,
    cycles_per_day=1,
    degradation=3.0,
    charge_price=3,
    discharge_price=4.5,
    ppa_rate=6,
    ppa_esc=0,
    ancillary=0,
    other_rev=0,
    capex=35_000_000,
    insurance=0.3,
    var_om=90,
    fixed_om=500_000,
    admin_cost=0,
    preventive_maintenance=0,
    inflation=3.0,
    project_life=20,
    debt_amount=24_901_850,
    debt_rate=7,
    loan_term=10,
    tax_rate=30,
)

_OPTIONAL = {'ppa_volume', 'ppa_price'}


def raw_inputs_from_mapping(mapping: Mapping[str, Any], base: RawInputs = DEFAULT_INPUTS) -> RawInputs:
    """Overlay `mapping` on `base`. Unparseable numbers become 0."""
    known = {f.name for f in fields(RawInputs)}
    unknown = sorted(set(mapping) - known)
    if unknown:
        raise ValueError(f"Unknown input field(s): {', '.join(unknown)}")
    updates: Dict[str, Any] = {}
    for key, value in mapping.items():
        if key in _OPTIONAL and value is None:
            updates[key] = None
        else:
            updates[key] = as_float(value)
    return replace(base, **updates)


def load_inputs(path: Union[str, Path], base: RawInputs = DEFAULT_INPUTS) -> RawInputs:
    """Read a YAML file of raw inputs, optionally nested under `inputs:`."""
    data = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of inputs, got {type(data).__name__}")
    if 'inputs' in data and isinstance(data['inputs'], dict):
        data = data['inputs']
    inputs = raw_inputs_from_mapping(data, base)
    logger.info("Loaded %d input override(s) from %s", len(data), path)
    return inputs
