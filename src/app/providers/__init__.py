"""
Document Analyzer Provider Abstraction.

분석 서비스 교체 가능하게 설계. 모델명/제공자는 config만 SSOT.
"""

from .anthropic import ClaudeDocumentAnalyzer
from .base import (
    AnalysisCallError,
    AnalysisResult,
    AnalyzerReply,
    DocumentAnalyzer,
    ProviderError,
    ProviderNotConfiguredError,
    ResponseParseError,
    UploadError,
)
from .openai import OpenAIDocumentAnalyzer

__all__ = [
    "DocumentAnalyzer",
    "AnalysisResult",
    "AnalyzerReply",
    "ProviderError",
    "ProviderNotConfiguredError",
    "UploadError",
    "AnalysisCallError",
    "ResponseParseError",
    "ClaudeDocumentAnalyzer",
    "OpenAIDocumentAnalyzer",
]
