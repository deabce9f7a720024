"""
Tests for mapping validation (required coverage, duplicates, unmapped columns).
"""

import pytest

from solar_atlas.domain.imports.errors import MappingValidationError
from solar_atlas.domain.imports.mapper import build_mapping, propose_mapping
from solar_atlas.domain.imports.validators import ensure_importable, validate_mapping

HEADERS = ["Install Date", "kW Capacity", "Installer", "Notes"]


class TestValidateMapping:
    def test_auto_proposal_for_complete_headers_is_valid(self):
        validation = validate_mapping(propose_mapping(HEADERS), HEADERS)
        assert validation.is_valid
        assert validation.missing_required == []
        assert validation.duplicates == {}
        assert validation.unmapped_columns == []
        assert validation.can_import

    def test_missing_required_field(self):
        mapping = build_mapping({"install_date": "Install Date", "kw_capacity": "kW Capacity"})
        validation = validate_mapping(mapping, HEADERS)
        assert validation.missing_required == ["installer"]
        assert not validation.is_valid
        assert validation.unmapped_columns == ["Installer", "Notes"]

    def test_duplicate_mapping_reported_in_declaration_order(self):
        mapping = build_mapping({
            "install_date": "Install Date",
            "kw_capacity": "kW Capacity",
            "installer": "Installer",
            "notes": "Installer",
        })
        validation = validate_mapping(mapping, HEADERS)
        assert validation.duplicates == {"Installer": ["installer", "notes"]}
        assert validation.has_duplicates
        # Duplicates do not affect required coverage but do block the import.
        assert validation.is_valid
        assert not validation.can_import

    def test_unmapped_columns_follow_document_order(self):
        mapping = build_mapping({"installer": "Installer"})
        validation = validate_mapping(mapping, HEADERS)
        assert validation.unmapped_columns == ["Install Date", "kW Capacity", "Notes"]

    def test_header_not_in_document(self):
        mapping = build_mapping({
            "install_date": "Install Date",
            "kw_capacity": "kW Capacity",
            "installer": "Contractor",
        })
        validation = validate_mapping(mapping, HEADERS)
        assert validation.unknown_headers == ["Contractor"]
        assert validation.is_valid
        assert not validation.can_import

    def test_serializes_computed_flags(self):
        payload = validate_mapping(propose_mapping(HEADERS), HEADERS).model_dump()
        assert payload["is_valid"] is True
        assert payload["has_duplicates"] is False
        assert payload["can_import"] is True


class TestEnsureImportable:
    def test_passes_for_valid_mapping(self):
        ensure_importable(validate_mapping(propose_mapping(HEADERS), HEADERS))

    def test_error_message_lists_problems(self):
        mapping = build_mapping({"install_date": "Install Date", "notes": "Install Date"})
        with pytest.raises(MappingValidationError) as exc_info:
            ensure_importable(validate_mapping(mapping, HEADERS))
        error = exc_info.value
        assert error.missing_required == ["kw_capacity", "installer"]
        assert error.duplicates == {"Install Date": ["install_date", "notes"]}
        assert "kw_capacity" in error.message
        assert "duplicate" in error.message
