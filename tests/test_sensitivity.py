from dataclasses import replace

import pytest

from bessmodel.finance import run_model
from bessmodel.sensitivity import (
    TORNADO_PARAMS,
    TornadoBar,
    rank_tornado,
    run_capex_sensitivity,
    run_degradation_sensitivity,
    run_efficiency_sensitivity,
    run_sensitivity,
    run_sensitivity_suite,
    run_spread_sensitivity,
    run_tornado_sensitivity,
    scale_param,
)


class TestScaleParam:
    def test_scales_one_field(self, levered_params):
        p = scale_param(levered_params, 'capex', 1.2)
        assert p.capex == pytest.approx(48_000_000.0)
        assert p.fixed_om == levered_params.fixed_om
        assert levered_params.capex == 40_000_000.0

    def test_integer_fields_stay_integral(self, levered_params):
        assert scale_param(levered_params, 'project_life', 1.1).project_life == 22
        assert scale_param(levered_params, 'loan_term', 0.01).loan_term == 1

    def test_unknown_field(self, levered_params):
        with pytest.raises(ValueError):
            scale_param(levered_params, 'wacc', 1.1)


class TestSweeps:
    def test_generic_sweep(self, levered_params):
        points = run_sensitivity(levered_params, 'capex', [0.8, 1.0, 1.2])
        assert [pt.multiplier for pt in points] == [0.8, 1.0, 1.2]
        assert points[1].value == levered_params.capex
        assert points[1].model.irr == pytest.approx(run_model(levered_params).irr)
        # higher capex, lower return
        assert points[0].model.irr > points[1].model.irr > points[2].model.irr

    def test_capex_sweep_defaults(self, levered_params):
        points = run_capex_sensitivity(levered_params)
        assert [pt.value for pt in points] == pytest.approx([32e6, 40e6, 48e6])

    def test_spread(self, levered_params):
        points = run_spread_sensitivity(levered_params)
        assert [pt.spread for pt in points] == pytest.approx([9000 * 0.8 - 3000, 6000, 9000 * 1.2 - 3000])
        assert points[0].model.npv < points[2].model.npv

    def test_efficiency_defaults(self, levered_params):
        points = run_efficiency_sensitivity(levered_params)
        assert [pt.efficiency for pt in points] == pytest.approx([0.855, 0.9, 0.945])
        assert points[1].yr1_revenue == pytest.approx(run_model(levered_params).revenue.total_revenue[0])
        assert points[0].yr1_revenue < points[2].yr1_revenue

    def test_efficiency_capped_at_one(self, levered_params):
        points = run_efficiency_sensitivity(replace(levered_params, rte=0.98))
        assert points[2].efficiency == 1.0

    def test_degradation(self, levered_params):
        points = run_degradation_sensitivity(levered_params)
        assert [pt.rate for pt in points] == [0.015, 0.025, 0.035]
        assert points[0].yr10_capacity == pytest.approx(10 * 0.985 ** 9)
        assert points[0].model.params.degradation == 0.015
        assert points[0].model.irr > points[2].model.irr


class TestTornado:
    def test_bars_in_parameter_order(self, levered_params):
        bars = run_tornado_sensitivity(levered_params)
        assert [b.key for b in bars] == [k for k, _ in TORNADO_PARAMS]
        base = run_model(levered_params).irr
        assert all(b.base_irr == base for b in bars)

    def test_directions(self, levered_params):
        bars = {b.key: b for b in run_tornado_sensitivity(levered_params)}
        assert bars['discharge_price'].irr_high > bars['discharge_price'].base_irr > bars['discharge_price'].irr_low
        assert bars['capex'].irr_high < bars['capex'].base_irr < bars['capex'].irr_low
        assert bars['charge_price'].high_delta_pp < 0

    def test_insensitive_parameter(self, levered_params):
        key = [('admin_cost', 'Admin Cost')]
        zero_admin = run_tornado_sensitivity(replace(levered_params, admin_cost=0.0), params=key)[0]
        assert zero_admin.irr_low == zero_admin.irr_high == zero_admin.base_irr
        assert zero_admin.swing == 0
        assert run_tornado_sensitivity(levered_params, params=key)[0].swing > 0

    def test_ranking(self):
        bars = [
            TornadoBar('a', 'A', 0.10, 0.09, 0.11),
            TornadoBar('b', 'B', 0.10, 0.05, 0.15),
            TornadoBar('c', 'C', 0.10, 0.12, 0.08),
            TornadoBar('d', 'D', 0.10, 0.09, 0.11),
        ]
        ranked = rank_tornado(bars)
        assert [b.key for b in ranked] == ['b', 'c', 'a', 'd']
        assert ranked[0].low_delta_pp == pytest.approx(-5.0)
        assert ranked[0].high_delta_pp == pytest.approx(5.0)
        assert ranked[0].swing == pytest.approx(10.0)


class TestSuite:
    def test_suite(self, levered_params):
        report = run_sensitivity_suite(levered_params)
        assert len(report.spread) == 3
        assert len(report.capex) == 3
        assert len(report.efficiency) == 3
        assert len(report.degradation) == 3
        swings = [b.swing for b in report.tornado]
        assert swings == sorted(swings, reverse=True)
        assert {b.key for b in report.tornado} == {k for k, _ in TORNADO_PARAMS}
