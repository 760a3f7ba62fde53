"""Equipment categorization."""

from wbscalc.classification.equipment_classifier import (
    ClassificationResult,
    ConfigurationError,
    EquipmentClassifier,
    classify_equipment,
    get_classifier,
    normalize_equipment_number,
    split_base_and_sub_device,
    strip_polarity,
)

__all__ = [
    "ClassificationResult",
    "ConfigurationError",
    "EquipmentClassifier",
    "classify_equipment",
    "get_classifier",
    "normalize_equipment_number",
    "split_base_and_sub_device",
    "strip_polarity",
]
