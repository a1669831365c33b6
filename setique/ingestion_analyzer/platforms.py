# -*- coding: utf-8 -*-
"""
Platform Configuration Registry

Loads the static platform definitions used by schema detection. Each
recognised platform is described by one YAML file under ``platform_definitions/``;
adding a platform means adding a file, with no change to the detection
algorithm. A built-in ``other`` configuration is always registered last
and acts as the fallback when no platform scores confidently.

Definitions are validated into frozen ``PlatformConfig`` models and every
regex is compiled once at load time, so a malformed definition fails at
import rather than during an analysis.

Example:
    >>> from setique.ingestion_analyzer.platforms import get_platform_config
    >>> get_platform_config("tiktok").display_name
    'TikTok'
    >>> get_platform_config("myspace").platform
    'other'
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from setique.ingestion_analyzer.exceptions import PlatformConfigError
from setique.ingestion_analyzer.models import (
    DataTypeCategory,
    OTHER_PLATFORM,
    PlatformConfig,
)

logger = logging.getLogger(__name__)

#: Directory holding the packaged platform definitions.
PLATFORMS_DIR = Path(__file__).parent / "platform_definitions"

#: Registration order; it is also the tie-break order for equal scores.
PLATFORM_ORDER: tuple = ("tiktok", "youtube", "instagram", "linkedin", "shopify")

# Generic definition for data from unknown sources.
_OTHER_DEFINITION: Dict[str, object] = {
    "platform": OTHER_PLATFORM,
    "display_name": "Other",
    "description": "Generic data format",
    "data_type": "other",
    "required_headers": [],
    "optional_headers": [],
    "header_aliases": {
        "date": ["date", "timestamp", "time", "day"],
        "views": ["views", "impressions", "pageviews"],
        "likes": ["likes", "favorites", "upvotes"],
        "comments": ["comments", "replies"],
        "shares": ["shares", "retweets", "forwards"],
        "followers": ["followers", "subscribers", "fans"],
        "revenue": ["revenue", "sales", "earnings"],
    },
    "patterns": {},
    "extended_fields": [],
    "pii_rules": {
        "remove_usernames": True,
        "remove_urls": True,
        "strict_mode": False,
        "custom_patterns": [],
    },
    "quality_checks": [],
    "export_instructions": (
        "Export your data as CSV from your platform's analytics section."
    ),
    "value_props": [],
}


def _build_config(definition: Dict[str, object], source: str) -> PlatformConfig:
    """Validate one raw definition into a PlatformConfig.

    Args:
        definition: Parsed YAML mapping.
        source: File name, used in error context.

    Returns:
        Frozen PlatformConfig.

    Raises:
        PlatformConfigError: If the definition is structurally invalid or
            contains a regex that does not compile.
    """
    try:
        config = PlatformConfig.model_validate(definition)
    except ValidationError as exc:
        raise PlatformConfigError(
            message=f"Invalid platform definition in {source}",
            context={"source": source, "errors": exc.errors()},
        ) from exc

    regexes = dict(config.patterns)
    for check in config.quality_checks:
        if check.type == "pattern":
            if not check.pattern:
                raise PlatformConfigError(
                    message=f"Pattern check on '{check.field}' has no pattern",
                    context={"source": source, "field": check.field},
                )
            regexes[f"quality_check:{check.field}"] = check.pattern

    for name, pattern in regexes.items():
        try:
            re.compile(pattern)
        except re.error as exc:
            raise PlatformConfigError(
                message=f"Invalid regex '{name}' in {source}: {exc}",
                context={"source": source, "pattern": pattern},
            ) from exc
    return config


def load_platform_configs(
    directory: Optional[Path] = None,
) -> Dict[str, PlatformConfig]:
    """Load every platform definition from a directory.

    Platforms listed in ``PLATFORM_ORDER`` come first in that order,
    any further ``*.yaml`` files follow alphabetically, and ``other`` is
    always last.

    Args:
        directory: Directory of YAML definitions (packaged set if None).

    Returns:
        Ordered mapping of platform id to PlatformConfig.

    Raises:
        PlatformConfigError: On unreadable or invalid definitions.
    """
    directory = directory or PLATFORMS_DIR
    files = {path.stem: path for path in sorted(directory.glob("*.yaml"))}
    ordered = [name for name in PLATFORM_ORDER if name in files]
    ordered += [name for name in files if name not in PLATFORM_ORDER]

    configs: Dict[str, PlatformConfig] = {}
    for name in ordered:
        path = files[name]
        try:
            definition = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise PlatformConfigError(
                message=f"Could not parse {path.name}: {exc}",
                context={"source": path.name},
            ) from exc
        if not isinstance(definition, dict):
            raise PlatformConfigError(
                message=f"{path.name} does not contain a mapping",
                context={"source": path.name},
            )
        config = _build_config(definition, path.name)
        if config.platform == OTHER_PLATFORM:
            raise PlatformConfigError(
                message="The 'other' platform is built in and cannot be redefined",
                context={"source": path.name},
            )
        configs[config.platform] = config

    configs[OTHER_PLATFORM] = _build_config(_OTHER_DEFINITION, "<builtin>")
    logger.info(
        "Loaded %d platform configs: %s", len(configs), ", ".join(configs),
    )
    return configs


#: Read-only registry of the packaged platforms, loaded once at import.
PLATFORM_CONFIGS: Mapping[str, PlatformConfig] = MappingProxyType(
    load_platform_configs(),
)


def get_platform_config(platform: str) -> PlatformConfig:
    """Return the config for a platform, falling back to ``other``."""
    config = PLATFORM_CONFIGS.get(platform)
    if config is None:
        logger.debug("Unknown platform '%s'; using 'other' config", platform)
        return PLATFORM_CONFIGS[OTHER_PLATFORM]
    return config


def get_supported_platforms() -> List[str]:
    """List recognised platform ids, excluding the ``other`` fallback."""
    return [p for p in PLATFORM_CONFIGS if p != OTHER_PLATFORM]


def get_platforms_by_data_type(data_type: DataTypeCategory) -> List[str]:
    """List platform ids whose configs declare the given data type."""
    return [
        platform
        for platform, config in PLATFORM_CONFIGS.items()
        if config.data_type == data_type
    ]


__all__ = [
    "PLATFORMS_DIR",
    "PLATFORM_ORDER",
    "PLATFORM_CONFIGS",
    "load_platform_configs",
    "get_platform_config",
    "get_supported_platforms",
    "get_platforms_by_data_type",
]
