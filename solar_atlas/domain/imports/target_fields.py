"""
Target fields for interconnection (PIR) imports.

Declaration order matters: the field mapper walks these in order and the
first field to claim a header keeps it. Pattern order within a field is
significant for the same reason.
"""
from typing import List, Literal, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

ValueKind = Literal["text", "number", "integer", "date"]


class TargetFieldSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    required: bool = False
    patterns: Tuple[str, ...] = ()
    kind: ValueKind = "text"


TARGET_FIELDS: Tuple[TargetFieldSpec, ...] = (
    TargetFieldSpec(
        key="install_date", label="Install Date", required=True, kind="date",
        patterns=("install_date", "install date", "installation date", "date installed", "interconnection"),
    ),
    TargetFieldSpec(
        key="kw_capacity", label="kW Capacity", required=True, kind="number",
        patterns=("kw_capacity", "kw capacity", "capacity", "system_kw", "kw", "kilowatt"),
    ),
    TargetFieldSpec(
        key="installer", label="Installer", required=True, kind="text",
        patterns=("installer", "contractor", "company", "vendor"),
    ),
    TargetFieldSpec(
        key="battery_kwh", label="Battery kWh", kind="number",
        patterns=("battery", "battery_kwh", "battery kwh", "storage"),
    ),
    TargetFieldSpec(
        key="cost", label="Cost", kind="number",
        patterns=("cost", "price", "total_cost", "system_cost"),
    ),
    TargetFieldSpec(
        key="ae_rebate", label="AE Rebate", kind="number",
        patterns=("ae_rebate", "ae rebate", "rebate amount"),
    ),
    TargetFieldSpec(
        key="dollar_per_kw_rebate", label="$/kW Rebate", kind="number",
        patterns=("$/kw", "dollar_per_kw", "dollar per kw", "per kw"),
    ),
    TargetFieldSpec(
        key="percent_rebate", label="% Rebate", kind="number",
        patterns=("%_rebate", "% rebate", "percent_rebate", "percent rebate"),
    ),
    TargetFieldSpec(
        key="fiscal_year", label="Fiscal Year", kind="integer",
        patterns=("fiscal_year", "fiscal year", "fy", "fiscalyear"),
    ),
    TargetFieldSpec(
        key="notes", label="Notes", kind="text",
        patterns=("notes", "comments", "question", "look_into"),
    ),
)


def required_fields(fields: Sequence[TargetFieldSpec] = TARGET_FIELDS) -> List[TargetFieldSpec]:
    return [field for field in fields if field.required]


def field_keys(fields: Sequence[TargetFieldSpec] = TARGET_FIELDS) -> List[str]:
    return [field.key for field in fields]


def ensure_unique_keys(fields: Sequence[TargetFieldSpec]) -> None:
    """Raise ValueError when two target fields share a key."""
    seen = set()
    for field in fields:
        if field.key in seen:
            raise ValueError(f"Duplicate target field key '{field.key}'")
        seen.add(field.key)


ensure_unique_keys(TARGET_FIELDS)
