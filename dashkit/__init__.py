"""
dashkit — collection views for CRUD dashboards.

  kernel  — pure engine: search, filter, sort, paginate, aggregate
  store   — record stores, CSV/JSON import-export, collection sessions
  render  — text/HTML presentation of a derived view
"""

__version__ = "0.1.0"
