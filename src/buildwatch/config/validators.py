"""
Configuration validation utilities.

This module turns raw TOML data into validated `BundleConfig` instances.
Problems that make a bundle unusable raise `ValidationError`; problems that
can be worked around are collected as warnings.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

from ..models.config import BundleConfig, InputSpec, WatchOptions
from ..validation import (
    ValidationError,
    validate_boolean,
    validate_input_spec,
    validate_non_empty_string,
    validate_positive_integer,
    validate_string_list,
)

logger = logging.getLogger(__name__)

KNOWN_TOP_LEVEL_KEYS = {"bundles"}
KNOWN_BUNDLE_KEYS = {"name", "input", "output", "command", "cwd", "perf", "watch"}
KNOWN_WATCH_KEYS = {"include", "exclude", "clear_screen", "build_delay"}


def _input_paths(input_spec: InputSpec) -> List[str]:
    if isinstance(input_spec, str):
        return [input_spec]
    if isinstance(input_spec, dict):
        return list(input_spec.values())
    return list(input_spec)


def _warn_unknown_keys(data: Dict[str, Any], known: set, where: str, warnings: List[str]) -> None:
    for key in data:
        if key not in known:
            warnings.append(f"Unknown option '{key}' in {where}")


def validate_watch_options(
    watch_data: Any,
    input_spec: InputSpec,
    cwd: Path,
    field_prefix: str,
    warnings: List[str],
) -> WatchOptions:
    """
    Validate the `watch` table of a bundle.

    When `include` is not given, the directories containing the bundle inputs
    are watched. Include paths that do not exist are dropped with a warning.

    Raises:
        ValidationError: If validation fails
    """
    if watch_data is None:
        watch_data = {}
    if not isinstance(watch_data, dict):
        raise ValidationError(f"{field_prefix}.watch must be a table", field_name=f"{field_prefix}.watch")
    _warn_unknown_keys(watch_data, KNOWN_WATCH_KEYS, f"{field_prefix}.watch", warnings)

    if "include" in watch_data:
        include = validate_string_list(watch_data["include"], field_name=f"{field_prefix}.watch.include")
    else:
        include = sorted({str(Path(path).parent) for path in _input_paths(input_spec)})

    resolved_include = []
    for path in include:
        resolved = Path(path) if Path(path).is_absolute() else cwd / path
        if resolved.exists():
            resolved_include.append(str(resolved.resolve()))
        else:
            warnings.append(f"Watch path '{path}' of {field_prefix} does not exist and is ignored")
    if not resolved_include:
        warnings.append(f"Nothing to watch for {field_prefix}; it will only build once")

    return WatchOptions(
        include=resolved_include,
        exclude=validate_string_list(watch_data.get("exclude", []), field_name=f"{field_prefix}.watch.exclude"),
        clear_screen=validate_boolean(
            watch_data.get("clear_screen", True), field_name=f"{field_prefix}.watch.clear_screen"
        ),
        build_delay=validate_positive_integer(
            watch_data.get("build_delay", 50),
            min_value=0,
            max_value=60000,
            field_name=f"{field_prefix}.watch.build_delay",
        ),
    )


def validate_bundle_config(
    bundle_data: Any,
    index: int,
    base_dir: Path,
    warnings: List[str],
) -> BundleConfig:
    """
    Validate and create a BundleConfig from one `[[bundles]]` entry.

    Args:
        bundle_data: Raw bundle table from TOML
        index: Position of the bundle, used for default names and messages
        base_dir: Directory relative `cwd` values are resolved against
        warnings: List collecting non-fatal problems

    Returns:
        Validated BundleConfig instance

    Raises:
        ValidationError: If validation fails
    """
    field_prefix = f"bundles[{index}]"
    if not isinstance(bundle_data, dict):
        raise ValidationError(f"{field_prefix} must be a table", field_name=field_prefix)
    _warn_unknown_keys(bundle_data, KNOWN_BUNDLE_KEYS, field_prefix, warnings)

    name = validate_non_empty_string(
        bundle_data.get("name", f"bundle-{index + 1}"), field_name=f"{field_prefix}.name"
    )
    if "input" not in bundle_data:
        raise ValidationError(f"{field_prefix}.input is required", field_name=f"{field_prefix}.input")
    input_spec = validate_input_spec(bundle_data["input"], field_name=f"{field_prefix}.input")
    output = validate_string_list(
        bundle_data.get("output", []), field_name=f"{field_prefix}.output", allow_empty=False
    )
    command = validate_non_empty_string(bundle_data.get("command"), field_name=f"{field_prefix}.command")

    cwd_value = Path(validate_non_empty_string(bundle_data.get("cwd", "."), field_name=f"{field_prefix}.cwd"))
    cwd = (cwd_value if cwd_value.is_absolute() else base_dir / cwd_value).resolve()
    if not cwd.is_dir():
        raise ValidationError(
            f"{field_prefix}.cwd does not exist: {cwd}", field_name=f"{field_prefix}.cwd", value=str(cwd)
        )

    perf = validate_boolean(bundle_data.get("perf", False), field_name=f"{field_prefix}.perf")
    watch = validate_watch_options(bundle_data.get("watch"), input_spec, cwd, field_prefix, warnings)

    return BundleConfig(
        name=name,
        input=input_spec,
        output=[str(cwd / path) if not Path(path).is_absolute() else path for path in output],
        command=command,
        cwd=cwd,
        perf=perf,
        watch=watch,
    )


def validate_bundle_configs(config_data: Dict[str, Any], base_dir: Path) -> Tuple[List[BundleConfig], List[str]]:
    """
    Validate the whole configuration document.

    Returns:
        Tuple of (bundle configs, warnings)

    Raises:
        ValidationError: If validation fails
    """
    warnings: List[str] = []
    _warn_unknown_keys(config_data, KNOWN_TOP_LEVEL_KEYS, "configuration", warnings)

    bundles = config_data.get("bundles")
    if not isinstance(bundles, list) or not bundles:
        raise ValidationError("configuration must define at least one [[bundles]] entry", field_name="bundles")

    configs = [validate_bundle_config(bundle, i, base_dir, warnings) for i, bundle in enumerate(bundles)]

    names = [config.name for config in configs]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ValidationError(f"duplicate bundle names: {', '.join(duplicates)}", field_name="bundles")

    logger.debug(f"Validated {len(configs)} bundles with {len(warnings)} warnings")
    return configs, warnings
