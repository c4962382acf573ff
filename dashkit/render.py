"""
dashkit Renderer

Pure function: (DerivedView, schema) → text table or HTML fragment.
No IO. Deterministic: same input → same output.

Renders the current page, a "Showing X–Y of Z" line and the view's
aggregates. Values are formatted by field type (dates as "May 2", ints with
thousands separators, floats with two decimals, enums title-cased).
"""

from __future__ import annotations

from datetime import datetime
from html import escape as _html_escape
from typing import Any

import chevron

from dashkit.kernel.types import CollectionSchema, DerivedView, base_type, parse_instant

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

TEXT_TEMPLATE = """\
{{#has_heading}}
{{{heading}}}
{{{underline}}}
{{/has_heading}}
{{{header}}}
{{{rule}}}
{{#lines}}
{{{.}}}
{{/lines}}
{{^lines}}
(no records)
{{/lines}}

{{{summary}}}
{{#aggregates}}
{{{label}}}: {{{value}}}
{{/aggregates}}
"""

HTML_TEMPLATE = """\
<section class="dk-view">
{{#has_heading}}  <h2 class="dk-view__title">{{heading}}</h2>
{{/has_heading}}
  <div class="dk-table-wrap"><table class="dk-table"><thead><tr>{{#headers}}<th>{{label}}</th>{{/headers}}</tr></thead><tbody>{{#rows}}<tr>{{#cells}}<td class="dk-table__td--{{kind}}">{{{html}}}</td>{{/cells}}</tr>{{/rows}}</tbody></table></div>
{{^rows}}  <p class="dk-empty">No records match.</p>
{{/rows}}
  <p class="dk-summary">{{summary}}</p>
{{#has_aggregates}}  <dl class="dk-aggregates">{{#aggregates}}<dt>{{label}}</dt><dd>{{value}}</dd>{{/aggregates}}</dl>
{{/has_aggregates}}
</section>
"""

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_text(
    view: DerivedView,
    schema: CollectionSchema,
    fields: list[str] | None = None,
    title: str | None = None,
) -> str:
    """Plain-text table of the current page (terminal, logs)."""
    columns = _columns(schema, fields)
    headers = [display_name(c) for c in columns]
    rows = [[format_value(record.get(c), schema.type_of(c), "text") for c in columns] for record in view.page]

    widths = [len(h) for h in headers]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row, strict=True)]

    def line(cells: list[str]) -> str:
        return " | ".join(cell.ljust(w) for cell, w in zip(cells, widths, strict=True)).rstrip()

    context = {
        "has_heading": bool(title),
        "heading": title or "",
        "underline": "=" * len(title) if title else "",
        "header": line(headers),
        "rule": "-+-".join("-" * w for w in widths),
        "lines": [line(row) for row in rows],
        "summary": page_summary(view),
        "aggregates": _aggregate_items(view.aggregates),
    }
    return chevron.render(TEXT_TEMPLATE, context).rstrip() + "\n"


def render_html(
    view: DerivedView,
    schema: CollectionSchema,
    fields: list[str] | None = None,
    title: str | None = None,
) -> str:
    """HTML fragment with the current page as a table."""
    columns = _columns(schema, fields)
    aggregates = _aggregate_items(view.aggregates)
    context = {
        "has_heading": bool(title),
        "heading": title or "",
        "headers": [{"label": display_name(c)} for c in columns],
        "rows": [
            {
                "cells": [
                    {
                        "kind": base_type(schema.type_of(c)),
                        "html": format_value(record.get(c), schema.type_of(c), "html"),
                    }
                    for c in columns
                ]
            }
            for record in view.page
        ],
        "summary": page_summary(view),
        "has_aggregates": bool(aggregates),
        "aggregates": aggregates,
    }
    return chevron.render(HTML_TEMPLATE, context)


def page_summary(view: DerivedView) -> str:
    """Human-readable position, e.g. "Showing 11–20 of 42 (page 2 of 5)"."""
    if not view.page:
        return f"Showing 0 of {view.total}"
    start = (view.page_index - 1) * (view.page_size or 0) + 1
    end = start + len(view.page) - 1
    text = f"Showing {start}–{end} of {view.total}"
    if view.page_size is not None:
        text += f" (page {view.page_index} of {view.total_pages})"
    return text


# ---------------------------------------------------------------------------
# Value formatting
# ---------------------------------------------------------------------------


def format_value(value: Any, field_type: Any, channel: str = "text") -> str:
    """
    Display string for a field value.
    channel="html" escapes the result and renders nulls/booleans as glyphs.
    """
    html = channel == "html"
    if value is None:
        return '<span class="dk-null">&mdash;</span>' if html else "-"

    bt = base_type(field_type)
    if bt == "bool":
        if html:
            return "&#10003;" if value else "&#9675;"
        return "yes" if value else "no"

    text = _format_plain(value, bt)
    return escape(text) if html else text


def display_name(field_name: str) -> str:
    return field_name.replace("_", " ").title()


def escape(text: str) -> str:
    """HTML-escape user content."""
    return _html_escape(str(text), quote=True)


def _format_plain(value: Any, bt: str) -> str:
    if bt == "date" and isinstance(value, str):
        parsed = parse_instant(value)
        if parsed is not None:
            return f"{parsed:%b} {parsed.day}"
    if bt == "datetime" and isinstance(value, str):
        parsed = parse_instant(value)
        if parsed is not None:
            return f"{parsed:%b} {parsed.day}, {_clock(parsed)}"
    if bt == "enum":
        return str(value).replace("_", " ").title()
    if bt == "list" and isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if bt == "int" and isinstance(value, int):
        return f"{value:,}"
    if bt == "float" and isinstance(value, int | float):
        return f"{value:,.2f}"
    return str(value)


def _clock(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    return f"{hour}:{moment:%M} {moment:%p}"


def _columns(schema: CollectionSchema, fields: list[str] | None) -> list[str]:
    if fields is None:
        return [name for name in schema.fields if name != schema.id_field]
    unknown = [f for f in fields if not schema.has_field(f)]
    if unknown:
        raise ValueError(f"Unknown fields for rendering: {unknown}")
    return list(fields)


def _aggregate_items(aggregates: dict[str, Any]) -> list[dict[str, str]]:
    items = []
    for name, value in aggregates.items():
        if isinstance(value, dict):
            shown = ", ".join(f"{key}: {_number(v)}" for key, v in value.items())
        else:
            shown = _number(value)
        items.append({"label": display_name(name), "value": shown})
    return items


def _number(value: Any) -> str:
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value)
