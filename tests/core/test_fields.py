from datetime import date, datetime

import pytest

from crudmap.core import BooleanField, DateTimeField, Entity, FloatField, IntegerField


class Reading(Entity):
    id = IntegerField()
    value = FloatField()
    active = BooleanField()
    taken_at = DateTimeField()


def test_numeric_fields_coerce_values():
    reading = Reading(id="7", value="1.5", active="t")
    assert reading.id == 7
    assert reading.value == 1.5
    assert reading.active is True


def test_invalid_integer_raises():
    with pytest.raises(ValueError):
        Reading(id="seven")


def test_datetime_field_accepts_iso_strings_and_dates():
    assert Reading(taken_at="2024-05-01 10:00:00").taken_at == datetime(2024, 5, 1, 10)
    assert Reading(taken_at=date(2024, 5, 1)).taken_at == datetime(2024, 5, 1)


def test_datetime_field_rejects_garbage():
    with pytest.raises(ValueError):
        Reading(taken_at="yesterday")


def test_datetime_field_is_temporal():
    assert Reading._meta.fields["taken_at"].temporal is True
    assert Reading._meta.fields["value"].temporal is None
