"""
Built-in sample datasets.

Each dataset pairs a schema with the demo records a dashboard is seeded with
on first run (when the store has nothing under its key).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from dashkit.kernel.types import CollectionSchema


@dataclass(frozen=True)
class SampleDataset:
    key: str
    schema: CollectionSchema
    records: list[dict[str, Any]]


INVENTORY_SCHEMA = CollectionSchema(
    fields={
        "id": "string",
        "name": "string",
        "category": "string",
        "quantity": "int",
        "unit": "string",
        "location": "string",
        "reorder_level": "int",
        "last_updated": "date",
        "supplier": "string",
        "cost": "float",
    },
    searchable=("name", "supplier"),
    case_insensitive=frozenset({"name", "category"}),
)

INVENTORY = SampleDataset(
    key="inventory",
    schema=INVENTORY_SCHEMA,
    records=[
        {
            "id": "inv_001",
            "name": "Steel Bolts M8",
            "category": "Hardware",
            "quantity": 1200,
            "unit": "pcs",
            "location": "Warehouse A",
            "reorder_level": 500,
            "last_updated": "2024-05-02",
            "supplier": "FastenCo",
            "cost": 0.12,
        },
        {
            "id": "inv_002",
            "name": "Pallet Wrap",
            "category": "Packaging",
            "quantity": 40,
            "unit": "rolls",
            "location": "Warehouse B",
            "reorder_level": 50,
            "last_updated": "2024-05-10",
            "supplier": "WrapIt Ltd",
            "cost": 18.5,
        },
        {
            "id": "inv_003",
            "name": "cardboard boxes (large)",
            "category": "Packaging",
            "quantity": 310,
            "unit": "pcs",
            "location": "Warehouse A",
            "reorder_level": 200,
            "last_updated": "2024-04-28",
            "supplier": "BoxWorks",
            "cost": 1.75,
        },
        {
            "id": "inv_004",
            "name": "Forklift Battery",
            "category": "Equipment",
            "quantity": 3,
            "unit": "units",
            "location": "Dock 2",
            "reorder_level": 2,
            "last_updated": "2024-03-15",
            "supplier": "VoltPro",
            "cost": 2450.0,
        },
        {
            "id": "inv_005",
            "name": "Safety Gloves",
            "category": "Safety",
            "quantity": 75,
            "unit": "pairs",
            "location": "Warehouse B",
            "reorder_level": 100,
            "last_updated": "2024-05-12",
            "supplier": "SafeHands",
            "cost": 3.2,
        },
    ],
)


SHIPMENT_SCHEMA = CollectionSchema(
    fields={
        "id": "string",
        "tracking_number": "string",
        "origin": "string",
        "destination": "string",
        "carrier": "string",
        "status": {"enum": ["Scheduled", "In Transit", "Delayed", "Delivered"]},
        "transport_mode": {"enum": ["Sea", "Air", "Land"]},
        "priority": {"enum": ["Low", "Medium", "High"]},
        "departure_date": "datetime",
        "weight_kg": "float",
    },
    searchable=("id", "tracking_number", "origin", "destination", "carrier"),
)

SHIPMENTS = SampleDataset(
    key="shipments",
    schema=SHIPMENT_SCHEMA,
    records=[
        {
            "id": "SHP-1001",
            "tracking_number": "MSKU7781234",
            "origin": "Shanghai",
            "destination": "Rotterdam",
            "carrier": "Maersk",
            "status": "In Transit",
            "transport_mode": "Sea",
            "priority": "Medium",
            "departure_date": "2024-05-01T08:00:00Z",
            "weight_kg": 18250.0,
        },
        {
            "id": "SHP-1002",
            "tracking_number": "LH4490021",
            "origin": "Frankfurt",
            "destination": "Chicago",
            "carrier": "Lufthansa Cargo",
            "status": "Delivered",
            "transport_mode": "Air",
            "priority": "High",
            "departure_date": "2024-04-22T14:30:00Z",
            "weight_kg": 820.5,
        },
        {
            "id": "SHP-1003",
            "tracking_number": "DHL5521907",
            "origin": "Lyon",
            "destination": "Milan",
            "carrier": "DHL Freight",
            "status": "Delayed",
            "transport_mode": "Land",
            "priority": "High",
            "departure_date": "2024-05-06T06:15:00Z",
            "weight_kg": 4300.0,
        },
        {
            "id": "SHP-1004",
            "tracking_number": "CMA0093311",
            "origin": "Singapore",
            "destination": "Los Angeles",
            "carrier": "CMA CGM",
            "status": "Scheduled",
            "transport_mode": "Sea",
            "priority": "Low",
            "departure_date": "2024-05-20T10:00:00Z",
            "weight_kg": 22100.0,
        },
    ],
)


TASK_SCHEMA = CollectionSchema(
    fields={
        "id": "string",
        "title": "string",
        "assignee": "string?",
        "status": {"enum": ["todo", "in_progress", "done"]},
        "priority": {"enum": ["low", "medium", "high"]},
        "tags": {"list": "string"},
        "due_date": "date?",
        "estimate_hours": "float?",
    },
    searchable=("title", "assignee", "tags"),
    case_insensitive=frozenset({"title"}),
)

TASKS = SampleDataset(
    key="tasks",
    schema=TASK_SCHEMA,
    records=[
        {
            "id": "task_001",
            "title": "Draft Q3 roadmap",
            "assignee": "Priya",
            "status": "in_progress",
            "priority": "high",
            "tags": ["planning"],
            "due_date": "2024-06-01",
            "estimate_hours": 6.0,
        },
        {
            "id": "task_002",
            "title": "Fix login redirect",
            "assignee": "Marco",
            "status": "todo",
            "priority": "high",
            "tags": ["bug", "auth"],
            "due_date": "2024-05-20",
            "estimate_hours": 2.5,
        },
        {
            "id": "task_003",
            "title": "Update onboarding docs",
            "assignee": None,
            "status": "todo",
            "priority": "low",
            "tags": ["docs"],
            "due_date": None,
            "estimate_hours": None,
        },
        {
            "id": "task_004",
            "title": "Release 2.4",
            "assignee": "Priya",
            "status": "done",
            "priority": "medium",
            "tags": ["release"],
            "due_date": "2024-05-10",
            "estimate_hours": 3.0,
        },
    ],
)


SAMPLE_DATASETS: dict[str, SampleDataset] = {ds.key: ds for ds in (INVENTORY, SHIPMENTS, TASKS)}
