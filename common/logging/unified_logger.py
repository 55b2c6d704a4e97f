"""
統一ロギングシステム
"""
import logging
from pathlib import Path
from typing import Dict, Any, Iterable, Optional


class UnifiedLogger:
    """統一ロギングシステムクラス"""

    def __init__(self, name: str = __name__, level: str = "INFO", log_file: Optional[Path] = None):
        self.logger = self.setup_logger(name, level, log_file)

    def setup_logger(self, name: str, level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
        """ロガーをセットアップ"""
        logger = logging.getLogger(name)
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))

        # 既存のハンドラーをクリア
        logger.handlers.clear()

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        return logger

    def log_error_with_context(self, error: Exception, context: Dict[str, Any]) -> None:
        """コンテキスト情報付きエラーログ"""
        context_str = ", ".join([f"{k}={v}" for k, v in context.items()])
        self.logger.error(f"エラー: {str(error)} | コンテキスト: {context_str}")

    def log_settlement_summary(self, prod_id: int, prod_name: str, figures: Dict[str, float],
                               currency: str = 'EUR') -> None:
        """精算結果サマリーのログ出力"""
        symbol = '¥' if currency == 'JPY' else '€'
        decimals = 0 if currency == 'JPY' else 2

        self.logger.info("="*50)
        self.logger.info(f"イベント精算サマリー: {prod_id} {prod_name}")
        for key, value in figures.items():
            self.logger.info(f"  {key}: {symbol}{value:,.{decimals}f}")
        self.logger.info("="*50)

    def log_data_quality_issues(self, issues: Iterable[Exception]) -> None:
        """データ品質上の問題をログ出力"""
        issues = list(issues)
        if not issues:
            self.logger.info("データ品質: 問題なし")
            return

        self.logger.warning(f"データ品質: {len(issues)}件の問題")
        for issue in issues:
            self.logger.warning(f"  {type(issue).__name__}: {issue}")

    def log_configuration_info(self, config: Dict[str, Any]) -> None:
        """設定情報のログ出力"""
        self.logger.info("設定情報:")
        for key, value in config.items():
            # パスワードや秘密情報をマスク
            if any(secret in key.lower() for secret in ['password', 'secret', 'token']):
                value = '*' * len(str(value)) if value else 'None'
            self.logger.info(f"  {key}: {value}")

    # 既存のロガーメソッドのプロキシ
    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def debug(self, message: str) -> None:
        self.logger.debug(message)
