"""Request and response models for chuk-mcp-relief."""

from .requests import ExportRequest, GeoBounds, build_export_request
from .responses import (
    AreaCheckResponse,
    CapabilitiesResponse,
    ErrorResponse,
    ExportResponse,
    LayerInfo,
    PlanResponse,
    StatusResponse,
    format_response,
)

__all__ = [
    "GeoBounds",
    "ExportRequest",
    "build_export_request",
    "ErrorResponse",
    "StatusResponse",
    "CapabilitiesResponse",
    "AreaCheckResponse",
    "PlanResponse",
    "LayerInfo",
    "ExportResponse",
    "format_response",
]
