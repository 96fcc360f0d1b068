import pytest

from silonet.models.domain import PointRole
from silonet.services.scenarios import list_scenarios, load_scenario


def test_all_scenarios_are_balanced():
    for key in list_scenarios():
        scenario = load_scenario(key)
        assert scenario.key == key
        assert len(scenario.silos) == len(scenario.trucks) > 0
        assert scenario.hub.role is PointRole.HUB
        assert [silo.id for silo in scenario.silos] == list(range(1, len(scenario.silos) + 1))
        assert all(truck.role is PointRole.TRUCK for truck in scenario.trucks)


def test_unknown_scenario_raises_key_error():
    with pytest.raises(KeyError, match="Unknown scenario"):
        load_scenario("gigantic")
