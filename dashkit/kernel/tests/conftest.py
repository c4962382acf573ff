"""
Kernel test configuration.

Shared schemas and collections for view engine tests. Every fixture returns
fresh objects so tests can check the engine never mutates its inputs.
"""

from __future__ import annotations

import pytest

from dashkit.kernel.types import CollectionSchema

TEAM_FIELDS = {
    "id": "string",
    "name": "string",
    "role": {"enum": ["engineer", "designer", "manager"]},
    "team": "string",
    "salary": "float",
    "level": "int?",
    "active": "bool",
    "skills": {"list": "string"},
    "joined": "date",
    "last_login": "datetime?",
}


def make_members():
    return [
        {
            "id": "m01",
            "name": "Alice Chen",
            "role": "engineer",
            "team": "Platform",
            "salary": 120000.0,
            "level": 3,
            "active": True,
            "skills": ["python", "go"],
            "joined": "2021-03-15",
            "last_login": "2024-05-10T09:00:00Z",
        },
        {
            "id": "m02",
            "name": "bob Martin",
            "role": "designer",
            "team": "Growth",
            "salary": 95000.0,
            "level": 2,
            "active": True,
            "skills": ["figma"],
            "joined": "2022-07-01",
            "last_login": "2024-05-09T17:30:00Z",
        },
        {
            "id": "m03",
            "name": "Carol Diaz",
            "role": "manager",
            "team": "Platform",
            "salary": 150000.0,
            "level": None,
            "active": False,
            "skills": ["planning", "python"],
            "joined": "2019-11-20",
            "last_login": None,
        },
        {
            "id": "m04",
            "name": "Dan Wu",
            "role": "engineer",
            "team": "Growth",
            "salary": 110000.0,
            "level": 2,
            "active": True,
            "skills": ["python"],
            "joined": "2023-01-09",
            "last_login": "2024-05-11T08:15:00+02:00",
        },
        {
            "id": "m05",
            "name": "Erin Park",
            "role": "engineer",
            "team": "Platform",
            "salary": 120000.0,
            "level": 3,
            "active": False,
            "skills": [],
            "joined": "2020-06-30",
            "last_login": "2024-04-30T12:00:00Z",
        },
    ]


@pytest.fixture
def team_fields():
    return dict(TEAM_FIELDS)


@pytest.fixture
def team_schema():
    return CollectionSchema(fields=dict(TEAM_FIELDS), searchable=("name", "team", "skills"))


@pytest.fixture
def members():
    return make_members()


@pytest.fixture
def people_schema():
    return CollectionSchema(fields={"id": "int", "name": "string", "age": "int"})


@pytest.fixture
def people():
    return [
        {"id": 1, "name": "B", "age": 30},
        {"id": 2, "name": "A", "age": 25},
        {"id": 3, "name": "A", "age": 40},
    ]


@pytest.fixture
def numbered():
    """Ten records, ids 0..9, in id order."""
    return [{"id": i, "name": f"P{i}", "age": 20 + i} for i in range(10)]
