"""Metric descriptors - immutable identity and label schema of a family."""

import hashlib
import re
from typing import Any, Iterable, Mapping, Optional

from metricgate.engine.errors import DescriptorValidationError
from metricgate.models.exposition import LabelPair

METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

# Separates hashed fields; cannot occur in valid UTF-8
_SEPARATOR = b"\xff"


def _hash64(parts: Iterable[str]) -> int:
    digest = hashlib.blake2b(digest_size=8)
    for part in parts:
        digest.update(part.encode("utf-8"))
        digest.update(_SEPARATOR)
    return int.from_bytes(digest.digest(), "big")


def build_fq_name(namespace: str = "", subsystem: str = "", name: str = "") -> str:
    """Join the non-empty name parts with underscores."""
    if not name:
        return ""
    return "_".join(part for part in (namespace, subsystem, name) if part)


def is_valid_metric_name(name: str) -> bool:
    return bool(METRIC_NAME_RE.match(name))


def is_valid_label_name(name: str) -> bool:
    return bool(LABEL_NAME_RE.match(name)) and not name.startswith("__")


class Desc:
    """
    Descriptor of a metric family.

    Identity:
    - id: hash over fq_name and the const label values (sorted by label name)
    - dim_hash: hash over the sorted set of all label names

    Two descriptors with equal id must have equal dim_hash and help; the
    registry enforces that at registration time.
    """

    __slots__ = (
        "fq_name",
        "help",
        "variable_labels",
        "const_labels",
        "const_label_pairs",
        "id",
        "dim_hash",
    )

    def __init__(
        self,
        fq_name: str,
        help: str,
        variable_labels: Iterable[str] = (),
        const_labels: Optional[Mapping[str, str]] = None,
    ):
        if isinstance(variable_labels, str):
            raise DescriptorValidationError(
                f"{fq_name}: variable labels must be a sequence of names, not a string",
                str(fq_name),
            )
        variable_labels = tuple(variable_labels)
        const_labels = dict(const_labels or {})

        if not isinstance(fq_name, str) or not is_valid_metric_name(fq_name):
            raise DescriptorValidationError(f"Invalid metric name: {fq_name!r}", str(fq_name))
        if not isinstance(help, str) or not help:
            raise DescriptorValidationError(f"{fq_name}: help text must not be empty", fq_name)

        seen: set[str] = set()
        for label_name in sorted(const_labels):
            if not is_valid_label_name(label_name):
                raise DescriptorValidationError(
                    f"{fq_name}: invalid const label name {label_name!r}", fq_name
                )
            if not isinstance(const_labels[label_name], str):
                raise DescriptorValidationError(
                    f"{fq_name}: const label {label_name!r} must have a string value", fq_name
                )
            seen.add(label_name)

        for label_name in variable_labels:
            if not isinstance(label_name, str) or not is_valid_label_name(label_name):
                raise DescriptorValidationError(
                    f"{fq_name}: invalid label name {label_name!r}", fq_name
                )
            if label_name in const_labels:
                raise DescriptorValidationError(
                    f"{fq_name}: label {label_name!r} is both variable and constant", fq_name
                )
            if label_name in seen:
                raise DescriptorValidationError(
                    f"{fq_name}: duplicate label name {label_name!r}", fq_name
                )
            seen.add(label_name)

        set_ = object.__setattr__
        set_(self, "fq_name", fq_name)
        set_(self, "help", help)
        set_(self, "variable_labels", variable_labels)
        set_(self, "const_labels", const_labels)
        set_(
            self,
            "const_label_pairs",
            tuple(LabelPair(name=k, value=const_labels[k]) for k in sorted(const_labels)),
        )
        set_(
            self,
            "id",
            _hash64([fq_name, *(const_labels[k] for k in sorted(const_labels))]),
        )
        set_(self, "dim_hash", _hash64(sorted(seen)))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Desc is immutable")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Desc):
            return NotImplemented
        return (
            self.id == other.id
            and self.dim_hash == other.dim_hash
            and self.help == other.help
            and self.variable_labels == other.variable_labels
        )

    def __hash__(self) -> int:
        return hash((self.id, self.dim_hash, self.variable_labels))

    def __repr__(self) -> str:
        const = ", ".join(f"{p.name}={p.value!r}" for p in self.const_label_pairs)
        return (
            f"Desc(fq_name={self.fq_name!r}, help={self.help!r}, "
            f"const_labels={{{const}}}, variable_labels={list(self.variable_labels)})"
        )


def new_desc(
    fq_name: str,
    help: str,
    variable_labels: Iterable[str] = (),
    const_labels: Optional[Mapping[str, str]] = None,
) -> Desc:
    """Create a descriptor, raising DescriptorValidationError when malformed."""
    return Desc(fq_name, help, variable_labels, const_labels)
