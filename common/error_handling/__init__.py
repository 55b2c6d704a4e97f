"""
エラーハンドリングパッケージ
"""

from .exceptions import (
    FileProcessingError,
    DataValidationError,
    ConfigurationError,
    EncodingDetectionError,
    StoreUnavailableError
)
from .error_handler import ErrorHandler

__all__ = [
    'FileProcessingError',
    'DataValidationError',
    'ConfigurationError',
    'EncodingDetectionError',
    'StoreUnavailableError',
    'ErrorHandler'
]
