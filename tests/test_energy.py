import pytest

from bessmodel.energy import effective_capacity, project_energy

from conftest import make_params


class TestEffectiveCapacity:
    def test_compounds_degradation(self):
        cap = effective_capacity(10.0, 0.03, 20)
        assert cap[0] == 10.0
        for y, c in enumerate(cap):
            assert c == pytest.approx(10.0 * 0.97 ** y)

    def test_no_degradation_is_flat(self):
        assert effective_capacity(5.0, 0.0, 6) == [5.0] * 6

    def test_full_degradation_is_not_clamped(self):
        cap = effective_capacity(5.0, 1.5, 3)
        assert cap == [5.0, -2.5, 1.25]


class TestProjectEnergy:
    def test_charged_and_sold(self):
        p = make_params(capacity=10.0, arb_days=300, availability=0.98, rte=0.9,
                        degradation=0.02, project_life=10)
        e = project_energy(p)
        assert len(e.eff_capacity) == 10
        assert e.energy_charged[0] == pytest.approx(10 * 300 * 0.98)
        assert e.energy_sold[0] == pytest.approx(10 * 300 * 0.98 * 0.9)
        assert e.energy_charged[9] == pytest.approx(10 * 0.98 ** 9 * 300 * 0.98)

    def test_zero_efficiency(self):
        e = project_energy(make_params(capacity=1.0, arb_days=100, availability=1.0))
        assert set(e.energy_sold) == {0.0}
