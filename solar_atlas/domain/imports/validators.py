"""
Go/no-go checks for a column mapping before it may drive an import.

``is_valid`` only reflects required-field coverage. Duplicate mappings and
headers that do not exist in the document block the import separately
(``can_import``); unmapped source columns are advisory only.
"""
from typing import Dict, List, Sequence

from pydantic import BaseModel, Field, computed_field

from solar_atlas.domain.imports.errors import MappingValidationError
from solar_atlas.domain.imports.mapper import ColumnMapping
from solar_atlas.domain.imports.target_fields import TARGET_FIELDS, TargetFieldSpec


class MappingValidation(BaseModel):
    missing_required: List[str] = Field(default_factory=list)
    duplicates: Dict[str, List[str]] = Field(default_factory=dict)
    unmapped_columns: List[str] = Field(default_factory=list)
    unknown_headers: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not self.missing_required

    @computed_field
    @property
    def has_duplicates(self) -> bool:
        return bool(self.duplicates)

    @computed_field
    @property
    def can_import(self) -> bool:
        return self.is_valid and not self.duplicates and not self.unknown_headers


def validate_mapping(
    mapping: ColumnMapping,
    headers: Sequence[str],
    fields: Sequence[TargetFieldSpec] = TARGET_FIELDS,
) -> MappingValidation:
    """
    Compute required coverage, duplicate targets and unmapped columns.

    Args:
        mapping: Proposed or confirmed mapping
        headers: Detected header row, in document order
        fields: Target field declarations

    Returns:
        MappingValidation with missing_required (field keys), duplicates
        (header -> field keys in declaration order), unmapped_columns
        (headers in document order) and unknown_headers
    """
    missing_required = [
        field.key for field in fields
        if field.required and not mapping.header_for(field.key)
    ]

    claims: Dict[str, List[str]] = {}
    for field in fields:
        header = mapping.header_for(field.key)
        if header:
            claims.setdefault(header, []).append(field.key)
    duplicates = {header: keys for header, keys in claims.items() if len(keys) > 1}

    header_set = set(headers)
    unmapped_columns = [header for header in headers if header not in claims]
    unknown_headers = [header for header in claims if header not in header_set]

    return MappingValidation(
        missing_required=missing_required,
        duplicates=duplicates,
        unmapped_columns=unmapped_columns,
        unknown_headers=unknown_headers,
    )


def ensure_importable(validation: MappingValidation) -> None:
    """Raise MappingValidationError unless the mapping may drive an import."""
    if not validation.can_import:
        raise MappingValidationError(
            missing_required=validation.missing_required,
            duplicates=validation.duplicates,
            unknown_headers=validation.unknown_headers,
        )
