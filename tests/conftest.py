"""Shared fixtures for the dashboard test-suite."""

import pytest

from tuna_core.data import load_dashboard_data, prepare_context


@pytest.fixture
def data_ctx():
    return load_dashboard_data()


@pytest.fixture
def ctx(data_ctx):
    return prepare_context({}, data_ctx)


@pytest.fixture
def rows(data_ctx):
    return data_ctx["rows"]


@pytest.fixture
def by_year(rows):
    return {r.year: r for r in rows}
