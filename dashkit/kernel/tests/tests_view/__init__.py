"""
dashkit View Engine Test Suite

Tests for derive_view, organized by pipeline stage.

Test Files:
1. test_view_query_filter.py - Free-text query and field predicates
2. test_view_sort.py - Typed, stable sorting in both directions
3. test_view_pagination.py - Page slicing and page counts
4. test_view_aggregates.py - Counts, sums, averages and group-bys
5. test_view_errors.py - Fail-fast programmer errors
6. test_view_properties.py - Determinism, monotonicity, stability, coverage
"""
