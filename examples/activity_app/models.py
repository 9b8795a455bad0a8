"""
Entities for the crudmap activity example.
"""

from __future__ import annotations

from crudmap import DateTimeField, Entity, IntegerField, StringField


class BizActivity(Entity):
    id = StringField()
    name = StringField(max_length=120)
    status = IntegerField(default=1)
    create_time = DateTimeField()
    delete_flag = IntegerField(default=0)


SCHEMA = (
    "CREATE TABLE IF NOT EXISTS biz_activity ("
    "id TEXT PRIMARY KEY, name TEXT, status INTEGER, create_time TEXT, delete_flag INTEGER)"
)
