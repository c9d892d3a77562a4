import pytest

from mass_property_info.errors import ResolutionError
from mass_property_info.form.roles import ROLE_RULES, classify_by_keywords, resolve_controls
from mass_property_info.schema import ControlDescriptor


def control(identifier="", name="", position=0):
    return ControlDescriptor(identifier=identifier, name=name, ordinal_position=position)


def test_keywords_assign_roles_regardless_of_order():
    controls = [
        control("ddlNumber", position=0),
        control("ddlTown", position=1),
        control("ddlStreet", position=2),
    ]
    resolved = resolve_controls(controls)
    assert resolved.region.identifier == "ddlTown"
    assert resolved.street.identifier == "ddlStreet"
    assert resolved.address.identifier == "ddlNumber"


def test_name_is_checked_when_id_is_missing():
    controls = [
        control(name="ctl00$Main$Street", position=0),
        control(name="ctl00$Main$City", position=1),
        control(name="ctl00$Main$AddressNo", position=2),
    ]
    resolved = resolve_controls(controls)
    assert resolved.region.name == "ctl00$Main$City"
    assert resolved.street.name == "ctl00$Main$Street"
    assert resolved.address.name == "ctl00$Main$AddressNo"
    assert resolved.street.selector == 'select[name="ctl00$Main$Street"]'


def test_positional_fallback_without_keywords():
    controls = [control("a", position=0), control("b", position=1), control("c", position=2)]
    resolved = resolve_controls(controls)
    assert [c.identifier for _, c in resolved.in_order()] == ["a", "b", "c"]


def test_positional_fallback_skips_claimed_controls():
    controls = [control("ddlStreet", position=0), control("x", position=1), control("y", position=2)]
    resolved = resolve_controls(controls)
    assert resolved.street.identifier == "ddlStreet"
    assert resolved.region.identifier == "x"
    assert resolved.address.identifier == "y"


def test_control_takes_first_matching_rule_only():
    controls = [control("cityNumber", position=0), control("s1", position=1), control("n1", position=2)]
    assigned = classify_by_keywords(controls)
    assert assigned == {"region": 0}


def test_first_unclaimed_control_wins_per_role():
    controls = [
        control("townA", position=0),
        control("townB", position=1),
        control("street", position=2),
        control("number", position=3),
    ]
    resolved = resolve_controls(controls)
    assert resolved.region.identifier == "townA"
    assert resolved.street.identifier == "street"
    assert resolved.address.identifier == "number"


def test_fewer_than_three_controls_fails():
    with pytest.raises(ResolutionError) as excinfo:
        resolve_controls([control("ddlTown"), control("ddlStreet", position=1)])
    assert "Found 2 selects" in str(excinfo.value)


def test_rule_table_order_is_region_street_address():
    assert [role for role, _ in ROLE_RULES] == ["region", "street", "address"]


def test_selector_falls_back_to_position():
    assert control(position=2).selector == "select >> nth=2"
    assert control("ddlTown").selector == "#ddlTown"
