"""
Prometheus metrics.

/metrics serves the HTTP request metrics recorded by the request hooks below
together with the ledger counters the sales, payment and transaction
services increment. Keep the endpoint on the internal network.
"""
import os
import time

from flask import Blueprint, Response, request, g
from prometheus_client import (
    CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, generate_latest, multiprocess
)

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers write to PROMETHEUS_MULTIPROC_DIR and are aggregated at scrape time
MULTIPROCESS_MODE = bool(os.environ.get('PROMETHEUS_MULTIPROC_DIR'))

if MULTIPROCESS_MODE:
    scrape_registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(scrape_registry)
    _registry = None
else:
    scrape_registry = REGISTRY
    _registry = REGISTRY

LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

http_requests_total = Counter(
    'http_requests_total', 'HTTP requests served',
    ['method', 'endpoint', 'http_status'], registry=_registry
)
http_request_duration_seconds = Histogram(
    'http_request_duration_seconds', 'HTTP request latency in seconds',
    ['method', 'endpoint'], registry=_registry, buckets=LATENCY_BUCKETS
)
http_requests_in_flight = Gauge(
    'http_requests_in_flight', 'HTTP requests being handled', registry=_registry
)

sales_created_total = Counter(
    'bizdesk_sales_created_total', 'Sales committed', registry=_registry
)
payments_applied_total = Counter(
    'bizdesk_payments_applied_total', 'Payments applied to existing sales', registry=_registry
)
transaction_retries_total = Counter(
    'bizdesk_transaction_retries_total', 'Ledger transactions re-run after an optimistic conflict',
    ['operation'], registry=_registry
)


def setup_metrics_instrumentation(app):
    """Time every request and count it by endpoint and status."""

    @app.before_request
    def start_request_timer():
        g._metrics_started = time.perf_counter()
        http_requests_in_flight.inc()

    @app.after_request
    def record_request_metrics(response):
        started = g.pop('_metrics_started', None)
        if started is None:
            return response
        try:
            endpoint = request.endpoint or 'unknown'
            http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(
                time.perf_counter() - started
            )
            http_requests_total.labels(
                method=request.method, endpoint=endpoint, http_status=response.status_code
            ).inc()
            http_requests_in_flight.dec()
        except Exception as e:
            app.logger.warning(f"Failed to record metrics: {e}")
        return response


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus text exposition (unauthenticated)."""
    return Response(generate_latest(scrape_registry), mimetype=CONTENT_TYPE_LATEST)
