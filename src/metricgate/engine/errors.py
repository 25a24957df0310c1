"""MetricGate engine errors."""

from typing import Any, Optional


class MetricGateError(Exception):
    """Base error for MetricGate operations."""

    def __init__(self, message: str, code: str = "METRICGATE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class DescriptorValidationError(MetricGateError):
    """Malformed metric name, help text or label names."""

    def __init__(self, message: str, fq_name: str = ""):
        super().__init__(message, "DESCRIPTOR_INVALID")
        self.fq_name = fq_name


class InconsistentCardinalityError(MetricGateError):
    """Label values do not match the descriptor's variable labels."""

    def __init__(self, fq_name: str, expected: int, got: int, detail: str = ""):
        message = (
            f"{fq_name}: inconsistent label cardinality "
            f"(expected {expected} label values, got {got})"
        )
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, "INCONSISTENT_CARDINALITY")
        self.fq_name = fq_name
        self.expected = expected
        self.got = got


class RegistrationError(MetricGateError):
    """Collector could not be registered."""

    def __init__(self, message: str, code: str = "REGISTRATION_FAILED"):
        super().__init__(message, code)


class AlreadyRegisteredError(RegistrationError):
    """The collector (or an equivalent one) is already registered."""

    def __init__(self, existing_collector: Any):
        super().__init__(
            f"Collector already registered: {existing_collector!r}",
            "ALREADY_REGISTERED",
        )
        self.existing_collector = existing_collector


class DuplicateDescriptorError(RegistrationError):
    """A collector described the same descriptor more than once, or nothing."""

    def __init__(self, message: str):
        super().__init__(message, "DUPLICATE_DESCRIPTOR")


class InconsistentLabelDimensionError(RegistrationError):
    """Same descriptor id already registered with different label names."""

    def __init__(self, fq_name: str):
        super().__init__(
            f"Descriptor {fq_name} already registered with different label names",
            "INCONSISTENT_LABEL_DIMENSIONS",
        )
        self.fq_name = fq_name


class InconsistentHelpError(RegistrationError):
    """Same descriptor id already registered with a different help string."""

    def __init__(self, fq_name: str, existing_help: str, new_help: str):
        super().__init__(
            f"Descriptor {fq_name} already registered with help {existing_help!r}, "
            f"got {new_help!r}",
            "INCONSISTENT_HELP",
        )
        self.fq_name = fq_name
        self.existing_help = existing_help
        self.new_help = new_help


class CollectorError(MetricGateError):
    """A single problem found while gathering."""

    def __init__(self, message: str, collector: Optional[Any] = None):
        super().__init__(message, "COLLECT_FAILED")
        self.collector = collector


class GatherError(MetricGateError):
    """Aggregate of every problem found during one gather call."""

    def __init__(self, errors: list[MetricGateError]):
        lines = "\n".join(f"* {error.message}" for error in errors)
        super().__init__(
            f"{len(errors)} error(s) occurred during gathering:\n{lines}",
            "GATHER_FAILED",
        )
        self.errors = errors

    def __len__(self) -> int:
        return len(self.errors)
