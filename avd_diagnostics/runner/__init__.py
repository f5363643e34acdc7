"""Endpoint and suite runners."""

from .endpoint_runner import EndpointTestRunner, https_status_ok
from .advanced import AdvancedDiagnostics
from .suite_runner import DiagnosticSuiteRunner

__all__ = [
    "EndpointTestRunner",
    "https_status_ok",
    "AdvancedDiagnostics",
    "DiagnosticSuiteRunner",
]
