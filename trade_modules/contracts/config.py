"""
Contract Authoring Configuration Schema.

Defines the structure and defaults for the contract authoring engine: the
quota schedule defaults, the "not applicable" formula sentinel, contract
numbering, the default country and the defaults of newly added economic
terms.  Actual values may be loaded from a YAML file at startup.
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from pathlib import Path
from typing import Any, Self

import yaml

from trade_kernel.db.types import decimal_from_input
from trade_kernel.logging_config import get_logger

logger = get_logger("modules.contracts.config")


VALID_SPEC_TYPES = {"range", "minimum", "maximum"}

_DECIMAL_FIELDS = {"default_quota_tmh", "default_quota_tms", "default_quota_h2o"}


@dataclass
class ContractAuthoringConfig:
    """
    Configuration schema for the contracts module.

    Field defaults mirror the concentrate desk's conventions.  Override at
    instantiation or load from YAML:

        config = ContractAuthoringConfig.from_yaml(Path("contracts.yaml"))
    """

    # Quota schedule defaults (per month)
    default_quota_tmh: Decimal = Decimal("330")
    default_quota_tms: Decimal = Decimal("300")
    default_quota_h2o: Decimal = Decimal("10")

    # Catalog conventions
    not_applicable_formula_name: str = "No Aplica"
    default_country_code: str | None = "PE"

    # Persistence
    contract_number_prefix: str = "CTR"
    atomic_commit: bool = True

    # New term defaults
    payable_default_metal: str = "CU"
    payable_default_deduction_unit: str = "%"
    penalty_default_metal: str = "AS"
    penalty_default_limit_unit: str = "%"
    quality_spec_default_metal: str = "CU"
    quality_spec_default_type: str = "range"
    quality_spec_default_unit: str = "%"
    refining_default_metal: str = "AG"
    refining_default_unit: str = "/oz"

    def __post_init__(self) -> None:
        for name in sorted(_DECIMAL_FIELDS):
            raw = getattr(self, name)
            # YAML yields floats for unquoted decimals; use their text form
            try:
                value = decimal_from_input(str(raw) if isinstance(raw, float) else raw)
            except ValueError as exc:
                raise ValueError(f"{name}: {exc}") from exc
            if value is None:
                raise ValueError(f"{name} is required")
            if value < 0:
                raise ValueError(f"{name} cannot be negative")
            setattr(self, name, value)

        if not self.not_applicable_formula_name.strip():
            raise ValueError("not_applicable_formula_name cannot be blank")

        if not self.contract_number_prefix.strip():
            raise ValueError("contract_number_prefix cannot be blank")

        if self.quality_spec_default_type not in VALID_SPEC_TYPES:
            raise ValueError(
                f"quality_spec_default_type must be one of {VALID_SPEC_TYPES}, "
                f"got '{self.quality_spec_default_type}'"
            )

        logger.info(
            "contract_authoring_config_initialized",
            extra={
                "default_quota_tmh": self.default_quota_tmh,
                "default_quota_tms": self.default_quota_tms,
                "default_quota_h2o": self.default_quota_h2o,
                "atomic_commit": self.atomic_commit,
                "default_country_code": self.default_country_code,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the desk defaults."""
        logger.info("contract_authoring_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from dictionary (e.g., loaded from a file).

        Raises:
            ValueError: On keys that are not configuration fields.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown contract authoring config keys: {unknown}")
        logger.info(
            "contract_authoring_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Path) -> Self:
        """Create config from a YAML mapping file.

        An empty file yields the defaults.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            ValueError: If the document is not a mapping or has unknown keys.
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls.from_dict(data)
