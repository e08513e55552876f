# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for SMB CashFlow.

This module is responsible for:
- loading the application configuration from a TOML file,
- resolving the data source paths relative to that file,
- exposing typed dataclasses used by the CLI.
"""

import logging
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .gather import DEFAULT_TIMEOUT_SECONDS
from .tax import VAT_RATE

DEFAULT_CONFIG_FILE = "smb_cashflow_config.toml"

DISPLAY_MODES = ("table", "csv", "both")


@dataclass(frozen=True)
class StoreConfig:
    """Identity of the store the dashboard reports on."""

    id: int
    name: str
    currency: str


@dataclass(frozen=True)
class SourcesConfig:
    """
    CSV files feeding the dashboard.

    ``revenue`` and ``payroll`` are required by the CLI; the other sources
    are optional and count as zero when not configured. ``statuses`` is the
    optional order-status filter applied to order-level revenue rows.
    """

    revenue: Optional[Path]
    vat_deductible_expenses: Optional[Path]
    non_vat_deductible_expenses: Optional[Path]
    payroll: Optional[Path]
    supplier_costs: Optional[Path]
    marketing: Optional[Path]
    statuses: Optional[tuple[str, ...]]


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for SMB CashFlow.

    This aggregates:
    - the store identity and currency,
    - the consumption-tax rate,
    - the data source files,
    - the per-source gathering timeout,
    - display and logging options.
    """

    store: StoreConfig
    vat_rate: float
    sources: SourcesConfig
    timeout_seconds: Optional[float]
    display_mode: str
    decimals: int
    log_level: str


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"Invalid [{name}] section in the configuration.")
    return section


def _parse_store(raw: Mapping[str, Any]) -> StoreConfig:
    section = _section(raw, "store")
    store_id = section.get("id", 1)
    if isinstance(store_id, bool) or not isinstance(store_id, int) or store_id <= 0:
        raise ValueError(
            "Invalid value for 'store.id' in the configuration. "
            "Expected a positive integer."
        )
    return StoreConfig(
        id=store_id,
        name=str(section.get("name") or f"Store {store_id}"),
        currency=str(section.get("currency") or "ILS"),
    )


def _parse_vat_rate(raw: Mapping[str, Any]) -> float:
    section = _section(raw, "tax")
    value = section.get("vat_rate", VAT_RATE)
    try:
        rate = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            "Invalid value for 'tax.vat_rate' in the configuration. "
            "Expected a number."
        ) from exc
    if not 0 <= rate < 1:
        raise ValueError("'tax.vat_rate' must be between 0 and 1 (e.g. 0.18).")
    return rate


def _parse_sources(raw: Mapping[str, Any], base_dir: Path) -> SourcesConfig:
    section = _section(raw, "sources")

    def _resolve_optional(key: str) -> Optional[Path]:
        rel = section.get(key)
        if not rel:
            return None
        return (base_dir / str(rel)).resolve()

    raw_statuses = section.get("statuses")
    statuses: Optional[tuple[str, ...]]
    if raw_statuses is None:
        statuses = None
    elif isinstance(raw_statuses, list):
        statuses = tuple(str(s).strip() for s in raw_statuses)
    else:
        raise ValueError(
            "Invalid value for 'sources.statuses' in the configuration. "
            "Expected a list of order statuses."
        )

    return SourcesConfig(
        revenue=_resolve_optional("revenue"),
        vat_deductible_expenses=_resolve_optional("vat_deductible_expenses"),
        non_vat_deductible_expenses=_resolve_optional("non_vat_deductible_expenses"),
        payroll=_resolve_optional("payroll"),
        supplier_costs=_resolve_optional("supplier_costs"),
        marketing=_resolve_optional("marketing"),
        statuses=statuses,
    )


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the SMB CashFlow application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [store]
        id, name and currency of the store.

    [tax]
        vat_rate: consumption-tax rate (default 0.18).

    [sources]
        Paths of the CSV inputs: revenue, vat_deductible_expenses,
        non_vat_deductible_expenses, payroll, supplier_costs, marketing,
        and an optional list of order statuses to keep.

    [gathering]
        timeout_seconds: per-source timeout (0 disables it).

    [display]
        mode ("table", "csv" or "both") and number of decimals.

    [logging]
        level: logging level name (default "WARNING").

    All file paths are resolved relative to the directory of the TOML file.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML file. Defaults to 'smb_cashflow_config.toml' in the
        current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    store = _parse_store(raw)
    vat_rate = _parse_vat_rate(raw)
    sources = _parse_sources(raw, base_dir)

    gathering_section = _section(raw, "gathering")
    raw_timeout = gathering_section.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)
    try:
        timeout = float(raw_timeout)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            "Invalid value for 'gathering.timeout_seconds' in the configuration. "
            "Expected a number."
        ) from exc
    timeout_seconds: Optional[float] = timeout if timeout > 0 else None

    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid value for 'display.mode': {display_mode!r}. "
            f"Expected one of: {', '.join(DISPLAY_MODES)}."
        )
    try:
        decimals = int(display_section.get("decimals", 2))
    except (TypeError, ValueError):
        decimals = 2

    logging_section = _section(raw, "logging")
    log_level = str(logging_section.get("level", "WARNING")).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"Invalid value for 'logging.level': {log_level!r}.")

    return AppConfig(
        store=store,
        vat_rate=vat_rate,
        sources=sources,
        timeout_seconds=timeout_seconds,
        display_mode=display_mode,
        decimals=decimals,
        log_level=log_level,
    )
