from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from solar_atlas.domain.imports.importer import ImportRunSummary
from solar_atlas.domain.imports.preview import ParsedDocument
from solar_atlas.domain.imports.sync import SyncSummary
from solar_atlas.domain.imports.target_fields import TargetFieldSpec
from solar_atlas.domain.imports.validators import MappingValidation


class PreviewRequest(BaseModel):
    csv_data: str


class PreviewResponse(BaseModel):
    success: bool
    document: ParsedDocument
    proposed_mapping: Dict[str, Optional[str]]
    validation: MappingValidation
    target_fields: List[TargetFieldSpec]


class ValidateMappingRequest(BaseModel):
    headers: List[str]
    mapping: Dict[str, Optional[str]]


class ValidateMappingResponse(BaseModel):
    success: bool
    validation: MappingValidation


class MappedImportRequest(BaseModel):
    csv_data: str
    # Omitted -> the auto-proposed mapping is accepted as the default.
    mapping: Optional[Dict[str, Optional[str]]] = None


class LegacyImportRequest(BaseModel):
    csv_data: str


class ImportResponse(BaseModel):
    success: bool
    message: str
    summary: ImportRunSummary
    applied_mapping: Optional[Dict[str, Optional[str]]] = None


class SyncResponse(BaseModel):
    success: bool
    message: str
    summary: SyncSummary
    timestamp: datetime = Field(default_factory=datetime.now)
