from prometheus_client import REGISTRY, Counter, generate_latest

from divergent_flow.config import InferenceSettings
from divergent_flow.engine import InferenceEngine
from divergent_flow.metrics import INFERENCES_TOTAL, get_or_create_metric


def _sample(name, labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_get_or_create_metric_reuses_registered_collector():
    again = get_or_create_metric(
        "divergent_flow_inferences_total",
        "Attribute inferences by kind and outcome",
        Counter,
        labelnames=["kind", "outcome"],
    )
    assert again is INFERENCES_TOTAL


def test_inference_is_counted(now):
    labels = {"kind": "type", "outcome": "reminder"}
    before = _sample("divergent_flow_inferences_total", labels)

    InferenceEngine(InferenceSettings()).infer("remind me to water the plants", now=now)

    assert _sample("divergent_flow_inferences_total", labels) == before + 1


def test_learning_records_are_counted(make_item, now):
    labels = {"kind": "estimate", "was_correct": "false"}
    before = _sample("divergent_flow_learning_records_total", labels)

    InferenceEngine(InferenceSettings()).confirm(make_item(text="mow the lawn"), "estimate", "1hour", now=now)

    assert _sample("divergent_flow_learning_records_total", labels) == before + 1


def test_metrics_are_exposed():
    output = generate_latest().decode()
    for name in (
        "divergent_flow_inferences_total",
        "divergent_flow_inference_latency_seconds",
        "divergent_flow_learning_records_total",
        "divergent_flow_review_queue_depth",
    ):
        assert name in output
