from prometheus_client import Counter, Histogram, Gauge, REGISTRY


# re-importing this module in tests must not register the collectors twice
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


INFERENCES_TOTAL = get_or_create_metric(
    "divergent_flow_inferences_total",
    "Attribute inferences by kind and outcome",
    Counter,
    labelnames=["kind", "outcome"],
)

INFERENCE_LATENCY_SECONDS = get_or_create_metric(
    "divergent_flow_inference_latency_seconds",
    "Time spent inferring one attribute",
    Histogram,
    labelnames=["kind"],
)

LEARNING_RECORDS_TOTAL = get_or_create_metric(
    "divergent_flow_learning_records_total",
    "Learning records produced from confirmations and corrections",
    Counter,
    labelnames=["kind", "was_correct"],
)

REVIEW_QUEUE_DEPTH = get_or_create_metric(
    "divergent_flow_review_queue_depth",
    "Items needing review at the last ranking call",
    Gauge,
)
