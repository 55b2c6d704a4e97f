"""
共通コンポーネントパッケージ
"""

from .file_handlers.csv_handler import CSVHandler
from .error_handling.exceptions import (
    FileProcessingError,
    DataValidationError,
    ConfigurationError,
    EncodingDetectionError,
    StoreUnavailableError
)
from .error_handling.error_handler import ErrorHandler
from .logging.unified_logger import UnifiedLogger
from .config.config_manager import ConfigManager
from .utils.encoding_detector import EncodingDetector

__all__ = [
    'CSVHandler',
    'FileProcessingError',
    'DataValidationError',
    'ConfigurationError',
    'EncodingDetectionError',
    'StoreUnavailableError',
    'ErrorHandler',
    'UnifiedLogger',
    'ConfigManager',
    'EncodingDetector'
]
