"""
エンコーディング検出ユーティリティ
"""
import chardet
from pathlib import Path
from ..error_handling.exceptions import EncodingDetectionError


class EncodingDetector:
    """ファイルのエンコーディングを検出するユーティリティクラス"""

    # chardetが返すASCII系の判定はUTF-8として扱う
    ASCII_COMPATIBLE = {'ascii', 'utf-8', 'utf8'}

    def __init__(self, logger=None):
        self.logger = logger

    def detect_encoding(self, file_path: Path) -> str:
        """ファイルのエンコーディングを検出"""
        try:
            with open(file_path, 'rb') as f:
                raw_data = f.read()
        except OSError as e:
            if self.logger:
                self.logger.error(f"エンコーディング検出エラー: {file_path.name} - {str(e)}")
            raise EncodingDetectionError(f"エンコーディング検出に失敗: {str(e)}")

        if raw_data.startswith(b'\xef\xbb\xbf'):
            return 'utf-8-sig'

        result = chardet.detect(raw_data)
        if not result['encoding']:
            if self.logger:
                self.logger.debug(f"エンコーディング検出失敗、UTF-8を使用: {file_path.name}")
            return 'utf-8'

        detected_encoding = result['encoding'].lower()
        if detected_encoding in self.ASCII_COMPATIBLE:
            detected_encoding = 'utf-8'

        if self.logger:
            self.logger.debug(f"エンコーディング検出: {file_path.name} -> {detected_encoding} (信頼度: {result['confidence']:.2f})")
        return detected_encoding
