"""
統一CSVハンドラー
"""
import pandas as pd
from pathlib import Path
from typing import List, Optional
from ..utils.encoding_detector import EncodingDetector
from ..error_handling.exceptions import FileProcessingError, EncodingDetectionError


class CSVHandler:
    """CSVファイルの統一処理クラス"""

    DEFAULT_ENCODINGS = ['utf-8-sig', 'utf-8', 'cp1252', 'shift_jis', 'cp932']

    def __init__(self, logger=None):
        self.logger = logger
        self.encoding_detector = EncodingDetector(logger)

    def read_csv_with_encoding_detection(self, file_path: Path, **kwargs) -> pd.DataFrame:
        """エンコーディング自動検出でCSVファイルを読み込み"""
        try:
            encoding = self.encoding_detector.detect_encoding(file_path)
            return self._read_csv_with_encoding(file_path, encoding, **kwargs)

        except (EncodingDetectionError, FileProcessingError):
            # 検出失敗時は複数エンコーディングを試行
            return self.try_multiple_encodings(file_path, **kwargs)

    def try_multiple_encodings(self, file_path: Path, encodings: Optional[List[str]] = None, **kwargs) -> pd.DataFrame:
        """複数のエンコーディングを順次試行してCSVを読み込み"""
        if encodings is None:
            encodings = self.DEFAULT_ENCODINGS

        last_error = None

        for encoding in encodings:
            try:
                df = self._read_csv_with_encoding(file_path, encoding, **kwargs)
                if self.logger:
                    self.logger.info(f"CSV読み込み成功: {file_path.name} ({encoding})")
                return df

            except FileProcessingError as e:
                last_error = e
                if self.logger:
                    self.logger.debug(f"CSV読み込み失敗: {file_path.name} ({encoding}) - {str(e)}")
                continue

        error_msg = f"すべてのエンコーディングでCSV読み込みに失敗: {file_path.name}"
        if self.logger:
            self.logger.error(error_msg)
        raise FileProcessingError(f"{error_msg} - 最後のエラー: {str(last_error)}")

    def _read_csv_with_encoding(self, file_path: Path, encoding: str, **kwargs) -> pd.DataFrame:
        """指定されたエンコーディングでCSVを読み込み"""
        try:
            return pd.read_csv(file_path, encoding=encoding, **kwargs)
        except pd.errors.EmptyDataError:
            # ヘッダーすらない空ファイル
            return pd.DataFrame()
        except (UnicodeError, ValueError, OSError) as e:
            raise FileProcessingError(f"CSV読み込みエラー: {file_path.name} ({encoding}) - {str(e)}")

    def read_table(self, file_path: Path, columns: List[str], **kwargs) -> pd.DataFrame:
        """CSVを読み込み、指定列を揃えたDataFrameを返す（ファイルがなければ空）"""
        file_path = Path(file_path)
        if not file_path.exists():
            if self.logger:
                self.logger.debug(f"CSVファイルが存在しないため空テーブルとして扱います: {file_path}")
            return pd.DataFrame(columns=columns)

        df = self.read_csv_with_encoding_detection(file_path, **kwargs)
        if df.empty and len(df.columns) == 0:
            return pd.DataFrame(columns=columns)

        if not self.validate_csv_structure(df, columns):
            raise FileProcessingError(f"CSVの列構成が不正です: {file_path.name}")

        return df[columns]

    def write_csv(self, df: pd.DataFrame, file_path: Path, encoding: str = 'utf-8-sig') -> None:
        """DataFrameをCSVに書き込み"""
        file_path = Path(file_path)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            df.to_csv(file_path, index=False, encoding=encoding)
        except OSError as e:
            raise FileProcessingError(f"CSV書き込みエラー: {file_path.name} - {str(e)}")

        if self.logger:
            self.logger.debug(f"CSV書き込み完了: {file_path.name} ({len(df)}件)")

    def validate_csv_structure(self, df: pd.DataFrame, required_column_names: List[str]) -> bool:
        """CSVの必須列を検証（0行のCSVは許容）"""
        missing_columns = [col for col in required_column_names if col not in df.columns]
        if missing_columns:
            if self.logger:
                self.logger.error(f"必須列が不足: {missing_columns}")
            return False

        return True
