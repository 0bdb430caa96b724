from __future__ import annotations

import pytest

from findtree.engine.aggregator import ReportAggregator


@pytest.fixture()
def aggregator() -> ReportAggregator:
    return ReportAggregator()
