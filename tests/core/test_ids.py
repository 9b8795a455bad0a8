from crudmap.core import Entity, StringField, to_ids


class Activity(Entity):
    id = StringField()
    name = StringField()


def test_to_ids_preserves_order_and_skips_missing():
    activities = [Activity(id="b"), Activity(name="no id"), Activity(id="a")]
    assert to_ids(activities) == ["b", "a"]


def test_to_ids_empty_input():
    assert to_ids([]) == []
