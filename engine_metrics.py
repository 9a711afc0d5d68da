"""
Prometheus Metrics

Tracks:
- Route executions by outcome (success or failure reason)
- Swaps per venue
- Realized profit
- Last profitability estimate

Exposes metrics in Prometheus format for Grafana dashboards.
"""

import logging
from decimal import Decimal
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)


class MetricsEngine:
    """
    Metrics for one executor.

    Each instance owns its registry so several executors (or test cases)
    never collide on metric names.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._setup_prometheus_metrics()

    def _setup_prometheus_metrics(self):
        """Initialize Prometheus metrics"""

        self.executions_total = Counter(
            'arb_executions_total',
            'Arbitrage route executions by outcome',
            ['outcome'],
            registry=self.registry,
        )

        self.swaps_total = Counter(
            'arb_swaps_total',
            'Swaps executed per venue',
            ['venue'],
            registry=self.registry,
        )

        self.profit_total = Counter(
            'arb_profit_total',
            'Cumulative profit retained, in principal asset units',
            registry=self.registry,
        )

        self.profit_per_execution = Histogram(
            'arb_profit_per_execution',
            'Profit retained per successful execution',
            buckets=[0.1, 1, 5, 10, 50, 100, 500, 1000, 5000],
            registry=self.registry,
        )

        self.estimate_profitable = Gauge(
            'arb_estimate_profitable',
            '1 if the last estimate cleared the fee threshold',
            registry=self.registry,
        )

        self.estimate_expected_profit = Gauge(
            'arb_estimate_expected_profit',
            'Expected profit of the last estimate',
            registry=self.registry,
        )

    def record_swap(self, venue: str):
        self.swaps_total.labels(venue=venue).inc()

    def record_success(self, retained: Decimal):
        self.executions_total.labels(outcome="success").inc()
        if retained > 0:
            self.profit_total.inc(float(retained))
        self.profit_per_execution.observe(float(retained))

    def record_failure(self, reason: str):
        self.executions_total.labels(outcome=reason).inc()

    def record_estimate(self, profitable: bool, expected_profit: Decimal):
        self.estimate_profitable.set(1 if profitable else 0)
        self.estimate_expected_profit.set(float(expected_profit))

    def get_value(self, name: str, labels: Optional[dict] = None) -> Optional[float]:
        """Current value of a sample, e.g. get_value('arb_executions_total', {'outcome': 'success'})"""
        return self.registry.get_sample_value(name, labels or {})

    def export(self) -> bytes:
        """Prometheus text exposition"""
        return generate_latest(self.registry)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST
