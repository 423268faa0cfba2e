import asyncio

import pytest

from app.config import get_settings
from app.observability.cart_observer import CartMetricsObserver
from app.observability.metrics import LATENCY_BUCKETS_SECONDS, ServiceMetrics, classify_error
from app.services.cart_store import CartTotals


@pytest.fixture
def metrics() -> ServiceMetrics:
    return ServiceMetrics(get_settings())


def _labels(method: str, endpoint: str, status: int) -> dict[str, str]:
    return {"method": method, "endpoint": endpoint, "status_code": str(status)}


@pytest.mark.parametrize(
    ("status_code", "expected"),
    [(200, None), (302, None), (400, "client_error"), (404, "client_error"), (500, "server_error"), (503, "server_error")],
)
def test_classify_error(status_code: int, expected: str | None) -> None:
    assert classify_error(status_code) == expected


def test_successful_request_records_count_and_latency_only(metrics: ServiceMetrics) -> None:
    metrics.observe_http_request(method="GET", endpoint="/health", status_code=200, elapsed_seconds=0.004)

    labels = _labels("GET", "/health", 200)
    registry = metrics.registry
    assert registry.get_sample_value("http_requests_total", labels) == 1.0
    assert registry.get_sample_value("http_request_duration_seconds_count", labels) == 1.0
    assert registry.get_sample_value("http_request_duration_seconds_sum", labels) == pytest.approx(0.004)
    assert registry.get_sample_value("http_request_duration_seconds_bucket", {**labels, "le": "0.001"}) == 0.0
    assert registry.get_sample_value("http_request_duration_seconds_bucket", {**labels, "le": "0.005"}) == 1.0
    assert list(metrics.request_errors_total.collect())[0].samples == []


@pytest.mark.parametrize(("status_code", "error_type"), [(404, "client_error"), (502, "server_error")])
def test_error_request_labels_are_consistent(metrics: ServiceMetrics, status_code: int, error_type: str) -> None:
    metrics.observe_http_request(method="POST", endpoint="/cart/add", status_code=status_code, elapsed_seconds=0.2)

    registry = metrics.registry
    labels = _labels("POST", "/cart/add", status_code)
    assert registry.get_sample_value("http_requests_total", labels) == 1.0
    assert registry.get_sample_value("http_request_duration_seconds_count", labels) == 1.0
    assert (
        registry.get_sample_value(
            "http_requests_errors_total",
            {"error_type": error_type, "endpoint": "/cart/add", "status_code": str(status_code)},
        )
        == 1.0
    )


def test_latency_buckets_span_one_millisecond_to_ten_seconds(metrics: ServiceMetrics) -> None:
    assert LATENCY_BUCKETS_SECONDS[0] == 0.001
    assert LATENCY_BUCKETS_SECONDS[-1] == 10.0

    metrics.observe_http_request(method="GET", endpoint="/slow", status_code=200, elapsed_seconds=12.0)
    labels = _labels("GET", "/slow", 200)
    assert metrics.registry.get_sample_value("http_request_duration_seconds_bucket", {**labels, "le": "10.0"}) == 0.0
    assert metrics.registry.get_sample_value("http_request_duration_seconds_bucket", {**labels, "le": "+Inf"}) == 1.0


def test_service_info_carries_resource_attributes(metrics: ServiceMetrics) -> None:
    value = metrics.registry.get_sample_value(
        "service_info",
        {
            "service_name": "shopping-cart-service",
            "service_version": "1.0.0",
            "service_instance_id": "instance-1",
            "environment": "development",
        },
    )
    assert value == 1.0


def test_separate_instances_do_not_share_series() -> None:
    first = ServiceMetrics(get_settings())
    second = ServiceMetrics(get_settings())

    first.observe_http_request(method="GET", endpoint="/health", status_code=200, elapsed_seconds=0.01)

    assert second.registry.get_sample_value("http_requests_total", _labels("GET", "/health", 200)) is None


def test_observer_reports_zero_for_empty_store(store, metrics: ServiceMetrics) -> None:
    totals = CartMetricsObserver(store, metrics).observe()

    assert totals == CartTotals(0, 0)
    assert metrics.registry.get_sample_value("cart_items_total") == 0.0
    assert metrics.registry.get_sample_value("active_users_total") == 0.0


def test_observer_publishes_store_totals(store, make_item, metrics: ServiceMetrics) -> None:
    observer = CartMetricsObserver(store, metrics)
    store.add_item("u1", make_item("a", quantity=2))
    store.add_item("u1", make_item("a", quantity=3))
    store.add_item("u2", make_item("b", quantity=1))

    observer.observe()
    assert metrics.registry.get_sample_value("cart_items_total") == 6.0
    assert metrics.registry.get_sample_value("active_users_total") == 2.0

    store.remove_item("u1", "a")
    observer.observe()
    assert metrics.registry.get_sample_value("cart_items_total") == 1.0
    assert metrics.registry.get_sample_value("active_users_total") == 2.0


def test_observer_does_not_mutate_store(store, make_item, metrics: ServiceMetrics) -> None:
    store.add_item("u1", make_item("a", quantity=2))
    before = store.get_cart("u1")

    CartMetricsObserver(store, metrics).observe()

    assert store.get_cart("u1") == before
    assert store.totals() == CartTotals(2, 1)


async def test_observer_run_loop_observes_until_cancelled(store, make_item, metrics: ServiceMetrics) -> None:
    store.add_item("u1", make_item("a", quantity=7))
    task = asyncio.create_task(CartMetricsObserver(store, metrics).run(interval_seconds=0.01))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert metrics.registry.get_sample_value("cart_items_total") == 7.0
