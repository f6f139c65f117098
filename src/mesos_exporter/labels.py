"""Label name normalisation and the attribute value text policy.

See http://mesos.apache.org/documentation/latest/attributes-resources/ for the
attribute value forms Mesos produces. Scalars render as text for this purpose.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Sequence

from mesos_exporter.errors import AttributeRejected

# https://prometheus.io/docs/concepts/data_model/
_INVALID_LABEL_CHARS = re.compile(r"(^[^a-zA-Z_])|([^a-zA-Z0-9_])")

_ATTRIBUTE_TEXT = re.compile(r"[-\w/.]*", re.ASCII)


def normalise_label(label: str) -> str:
    """Force a string into a valid Prometheus label name."""
    return _INVALID_LABEL_CHARS.sub("_", label)


def normalise_label_list(labels: Sequence[str]) -> list[str]:
    """Normalise each label name, keeping order and duplicates."""
    return [normalise_label(label) for label in labels]


def attribute_string(value: Any) -> str:
    """Convert an attribute value to label text.

    Args:
        value: Decoded attribute value, or its raw JSON text.

    Returns:
        The value with wrapping quotes removed.

    Raises:
        AttributeRejected: If the value holds anything beyond word
            characters, ``-``, ``/`` and ``.``.
    """
    text = value if isinstance(value, str) else json.dumps(value)
    text = text.strip('"')
    if not _ATTRIBUTE_TEXT.fullmatch(text):
        raise AttributeRejected(f"value neither scalar nor text: {text!r}")
    return text


def label_values(labels: Mapping[str, str], ordered_keys: Sequence[str]) -> list[str]:
    """Project a label mapping onto an ordered key list, defaulting to ""."""
    return [labels.get(key, "") for key in ordered_keys]
