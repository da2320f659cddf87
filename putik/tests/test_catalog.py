# putik/tests/test_catalog.py
from types import SimpleNamespace

import pytest
from werkzeug.datastructures import MultiDict

from putik.services.catalog_service import CatalogService, PartFilter


def test_filter_from_args():
    part_filter = PartFilter.from_args(MultiDict({"vehicle_id": "3", "search": "  bar ", "types": "1, 2,"}))
    assert part_filter.vehicle_id == 3
    assert part_filter.search_term == "bar"
    assert part_filter.type_ids == [1, 2]

    with pytest.raises(ValueError):
        PartFilter.from_args(MultiDict({"vehicle_id": "x"}))


def test_filter_updates_are_shared_by_reference():
    part_filter = PartFilter(vehicle_id=1)
    header, results = part_filter, part_filter

    header.set_search_term(" Lift ")
    header.toggle_type(4)
    header.toggle_type(5)
    header.toggle_type(4)
    assert (results.search_term, results.type_ids) == ("Lift", [5])

    header.clear_types()
    assert results.type_ids == []

    restored = PartFilter.from_session(part_filter.to_session(), vehicle_id=2)
    assert (restored.vehicle_id, restored.search_term, restored.type_ids) == (2, "Lift", [])


def test_filter_matches():
    part = SimpleNamespace(name="LED Light Bar", vehicle_id=1, type_id=3)
    assert PartFilter(vehicle_id=1, search_term="light", type_ids=[3]).matches(part)
    assert not PartFilter(vehicle_id=2).matches(part)
    assert not PartFilter(search_term="bumper").matches(part)
    assert not PartFilter(type_ids=[1]).matches(part)


def test_list_parts(db, seeded):
    catalog = CatalogService(db)
    assert len(catalog.list_parts()) == 4
    assert [p.id for p in catalog.list_parts(PartFilter(vehicle_id=seeded.hilux.id, search_term="bumper"))] == [
        seeded.bumper.id
    ]
    assert [p.id for p in catalog.list_parts(PartFilter(type_ids=[seeded.suspension.id]))] == [
        seeded.lift_kit.id,
        seeded.coilover.id,
    ]
    assert set(catalog.parts_by_id([seeded.lift_kit.id, 9999])) == {seeded.lift_kit.id}
    assert catalog.parts_by_id([]) == {}
