"""
Prometheus metrics for the investment loops.
"""

from typing import Optional

from prometheus_client import Counter, Gauge, start_http_server

# Loop metrics
cycles_total = Counter(
    'notebuyer_cycles_total',
    'Polling cycles run',
    ['investor_id']
)

orders_submitted_total = Counter(
    'notebuyer_orders_submitted_total',
    'Purchase orders submitted',
    ['investor_id']
)

loans_purchased_total = Counter(
    'notebuyer_loans_purchased_total',
    'Loan notes confirmed as purchased',
    ['investor_id']
)

loans_rejected_total = Counter(
    'notebuyer_loans_rejected_total',
    'Order lines rejected by the marketplace',
    ['investor_id']
)

loop_exits_total = Counter(
    'notebuyer_loop_exits_total',
    'Investment loops finished, by reason',
    ['reason']
)

# Account metrics
available_cash = Gauge(
    'notebuyer_available_cash',
    'Locally tracked available cash',
    ['investor_id']
)


def start_metrics_server(port: Optional[int]) -> bool:
    """Expose metrics over HTTP when a port is configured."""
    if not port:
        return False
    start_http_server(port)
    return True
