"""
統一例外クラス定義
"""


class FileProcessingError(Exception):
    """ファイル処理関連のエラー"""
    pass


class DataValidationError(Exception):
    """データ検証関連のエラー"""
    pass


class ConfigurationError(Exception):
    """設定関連のエラー"""
    pass


class EncodingDetectionError(Exception):
    """エンコーディング検出関連のエラー"""
    pass


class StoreUnavailableError(Exception):
    """行ストア（参照データ・台帳）に到達できない場合のエラー"""

    def __init__(self, store_name: str, message: str):
        self.store_name = store_name
        super().__init__(f"[{store_name}] {message}")
