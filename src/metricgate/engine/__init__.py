"""MetricGate engine - descriptors, metrics, vectors and the registry."""

from metricgate.engine.desc import Desc, build_fq_name, new_desc
from metricgate.engine.errors import (
    AlreadyRegisteredError,
    CollectorError,
    DescriptorValidationError,
    DuplicateDescriptorError,
    GatherError,
    InconsistentCardinalityError,
    InconsistentHelpError,
    InconsistentLabelDimensionError,
    MetricGateError,
    RegistrationError,
)
from metricgate.engine.histogram import Histogram, new_histogram
from metricgate.engine.metric import (
    Collector,
    Metric,
    SelfCollector,
    new_const_histogram,
    new_const_metric,
    new_const_summary,
)
from metricgate.engine.opts import (
    CounterOpts,
    GaugeOpts,
    HistogramOpts,
    Opts,
    SummaryOpts,
    UntypedOpts,
    exponential_buckets,
    linear_buckets,
)
from metricgate.engine.registry import Registry
from metricgate.engine.summary import Summary, new_summary
from metricgate.engine.value import Counter, Gauge, Untyped, new_counter, new_gauge, new_untyped
from metricgate.engine.vec import (
    CounterVec,
    GaugeVec,
    HistogramVec,
    MetricVec,
    SummaryVec,
    UntypedVec,
    new_counter_vec,
    new_gauge_vec,
    new_histogram_vec,
    new_summary_vec,
    new_untyped_vec,
)

__all__ = [
    "AlreadyRegisteredError",
    "Collector",
    "CollectorError",
    "Counter",
    "CounterOpts",
    "CounterVec",
    "Desc",
    "DescriptorValidationError",
    "DuplicateDescriptorError",
    "Gauge",
    "GaugeOpts",
    "GaugeVec",
    "GatherError",
    "Histogram",
    "HistogramOpts",
    "HistogramVec",
    "InconsistentCardinalityError",
    "InconsistentHelpError",
    "InconsistentLabelDimensionError",
    "Metric",
    "MetricGateError",
    "MetricVec",
    "Opts",
    "Registry",
    "RegistrationError",
    "SelfCollector",
    "Summary",
    "SummaryOpts",
    "SummaryVec",
    "Untyped",
    "UntypedOpts",
    "UntypedVec",
    "build_fq_name",
    "exponential_buckets",
    "linear_buckets",
    "new_const_histogram",
    "new_const_metric",
    "new_const_summary",
    "new_counter",
    "new_counter_vec",
    "new_desc",
    "new_gauge",
    "new_gauge_vec",
    "new_histogram",
    "new_histogram_vec",
    "new_summary",
    "new_summary_vec",
    "new_untyped",
    "new_untyped_vec",
]
