"""
ファイルハンドラーパッケージ
"""

from .csv_handler import CSVHandler

__all__ = ['CSVHandler']
