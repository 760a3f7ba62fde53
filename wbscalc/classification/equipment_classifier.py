"""YAML-driven equipment classifier for WBSCalc.

Maps an equipment identifier to one of the fixed category buckets using an
ordered rule list:
1. Categories are tried in file order (10 first, then 01 ... 09)
2. Rules inside a category are tried in file order
3. The first matching rule wins
4. No match falls back to 99 (Unrecognised Equipment)

The ordering is significant: some prefixes (BCR) appear in more than one
category and the earlier category takes them, so BCR is classified as 10.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from wbscalc.config import get_config
from wbscalc.models import CATEGORIES, UNRECOGNISED_CATEGORY

logger = logging.getLogger(__name__)

POLARITY_MARKERS = "+-"


class ConfigurationError(Exception):
    """Configuration file is invalid or missing."""

    pass


@dataclass(frozen=True)
class ClassificationRule:
    """A single compiled pattern belonging to a category."""

    category_id: str
    pattern: re.Pattern[str]
    label: str

    def matches(self, cleaned_number: str) -> bool:
        return self.pattern.search(cleaned_number) is not None


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying one equipment number.

    Attributes:
        category_id: Category bucket ("01".."10" or "99")
        category_name: Display name of the bucket
        rule_label: Label of the rule that matched (None for 99)
    """

    category_id: str
    category_name: str
    rule_label: str | None = None

    @property
    def recognised(self) -> bool:
        return self.category_id != UNRECOGNISED_CATEGORY


def strip_polarity(equipment_number: str) -> str:
    """Remove one leading +/- polarity marker ("+UH101" -> "UH101")."""
    value = equipment_number.strip()
    if value and value[0] in POLARITY_MARKERS:
        return value[1:]
    return value


def normalize_equipment_number(equipment_number: str | None) -> str:
    """Canonical form used for comparisons: no polarity marker, upper case."""
    if not equipment_number:
        return ""
    return strip_polarity(str(equipment_number)).strip().upper()


def split_base_and_sub_device(equipment_number: str) -> tuple[str, Optional[str]]:
    """Split an identifier into its base code and sub-device suffix.

    The base is everything before the first dash that follows the optional
    polarity marker; the suffix starts at that dash.

    Example:
        >>> split_base_and_sub_device("+UH101-KF")
        ('+UH101', '-KF')
        >>> split_base_and_sub_device("-FM01")
        ('-FM01', None)
    """
    value = equipment_number.strip()
    start = 1 if value and value[0] in POLARITY_MARKERS else 0
    dash = value.find("-", start)
    if dash == -1:
        return value, None
    return value[:dash], value[dash:]


class EquipmentClassifier:
    """Ordered first-match-wins classifier loaded from YAML."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize classifier from YAML rule file.

        Args:
            config_path: Path to equipment_rules.yaml
                        (defaults to the configured classification path)

        Raises:
            ConfigurationError: If YAML is invalid, missing, or references
                                unknown categories
        """
        if config_path is None:
            config_path = get_config().classification_config_path

        if not config_path.exists():
            raise ConfigurationError(f"Classification rules not found: {config_path}")

        try:
            with config_path.open(encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(self._config, dict):
            raise ConfigurationError(f"Expected a mapping in {config_path}")

        self._rules = self._compile_rules(self._config.get("categories", []))
        if not self._rules:
            raise ConfigurationError("No classification rules defined in configuration")

        self._sub_devices: dict[str, str] = {
            str(k).upper(): str(v) for k, v in (self._config.get("sub_devices") or {}).items()
        }
        self._equipment_types: dict[str, str] = {
            str(k).upper(): str(v)
            for k, v in (self._config.get("equipment_types") or {}).items()
        }

        logger.debug(f"Loaded {len(self._rules)} classification rules from {config_path}")

    @staticmethod
    def _compile_rules(categories: Any) -> list[ClassificationRule]:
        if not isinstance(categories, list):
            raise ConfigurationError("'categories' must be a list")

        rules: list[ClassificationRule] = []
        for entry in categories:
            category_id = str(entry.get("id", "")).zfill(2)
            if category_id not in CATEGORIES or category_id == UNRECOGNISED_CATEGORY:
                raise ConfigurationError(f"Unknown category id in rules: '{entry.get('id')}'")

            for rule in entry.get("rules") or []:
                try:
                    pattern = re.compile(rule["pattern"], re.IGNORECASE)
                except (KeyError, TypeError) as e:
                    raise ConfigurationError(
                        f"Rule in category {category_id} has no pattern"
                    ) from e
                except re.error as e:
                    raise ConfigurationError(
                        f"Invalid pattern '{rule['pattern']}' in category {category_id}: {e}"
                    ) from e
                rules.append(
                    ClassificationRule(
                        category_id=category_id,
                        pattern=pattern,
                        label=str(rule.get("label", CATEGORIES[category_id])),
                    )
                )
        return rules

    @property
    def rules(self) -> list[ClassificationRule]:
        return list(self._rules)

    def classify_detailed(self, equipment_number: str | None) -> ClassificationResult:
        """Classify an equipment number and report which rule matched."""
        cleaned = normalize_equipment_number(equipment_number)
        if cleaned:
            for rule in self._rules:
                if rule.matches(cleaned):
                    return ClassificationResult(
                        category_id=rule.category_id,
                        category_name=CATEGORIES[rule.category_id],
                        rule_label=rule.label,
                    )

        return ClassificationResult(
            category_id=UNRECOGNISED_CATEGORY,
            category_name=CATEGORIES[UNRECOGNISED_CATEGORY],
        )

    def classify(self, equipment_number: str | None) -> str:
        """Classify an equipment number.

        Args:
            equipment_number: Identifier, optionally with a +/- polarity marker

        Returns:
            str: Category id ("99" if no rule matched)
        """
        return self.classify_detailed(equipment_number).category_id

    def describe_equipment_type(self, equipment_number: str) -> str:
        """Equipment type from the name key ("+UH101-F" -> "Protection Panels")."""
        base, _ = split_base_and_sub_device(equipment_number)
        prefix = re.sub(r"[^A-Z]", "", normalize_equipment_number(base))
        return self._equipment_types.get(prefix, "Unknown Equipment Type")

    def describe_sub_device(self, suffix: str | None) -> str | None:
        """Sub-device type for a suffix ("-F" -> "Protection Relay")."""
        if not suffix:
            return None
        return self._sub_devices.get(suffix.strip().upper())


# Singleton instance
_classifier: Optional[EquipmentClassifier] = None


def get_classifier() -> EquipmentClassifier:
    """Get or create singleton classifier instance.

    Raises:
        ConfigurationError: If classification rules are invalid
    """
    global _classifier
    if _classifier is None:
        _classifier = EquipmentClassifier()
    return _classifier


def classify_equipment(equipment_number: str | None) -> str:
    """Classify equipment number using the shared classifier (convenience function)."""
    return get_classifier().classify(equipment_number)
