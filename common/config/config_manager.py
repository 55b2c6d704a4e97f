"""
中央集約設定管理システム
"""
import json
from pathlib import Path
from typing import Dict, Any, Optional
from ..error_handling.exceptions import ConfigurationError


class ConfigManager:
    """設定管理の統一クラス"""

    DEFAULT_CONFIG_FILES = [
        'event_settlement_config.json',
        'config.json',
        'settings.json'
    ]

    DEFAULT_STORE_FILES = {
        'events': 'events.csv',
        'ticket_rows': 'ticket_rows.csv',
        'fee_params': 'fee_params.csv',
        'grace_prices': 'grace_price_conversion.csv',
        'expenses': 'expenses.csv',
        'trainer_splits': 'trainer_splits.csv'
    }

    def __init__(self, config_path: Optional[Path] = None, logger=None):
        self.logger = logger
        self.config_path = config_path
        self.config_data = {}
        self.load_config(config_path)

    def load_config(self, config_path: Optional[Path] = None) -> Dict[str, Any]:
        """設定ファイルを読み込み"""
        if config_path:
            self.config_data = self._merge_with_defaults(self._load_single_config(Path(config_path)))
            return self.config_data

        # デフォルトの設定ファイルを順次試行
        for config_file in self.DEFAULT_CONFIG_FILES:
            candidate = Path(config_file)
            if not candidate.exists():
                continue
            try:
                self.config_data = self._merge_with_defaults(self._load_single_config(candidate))
                self.config_path = candidate
                break
            except ConfigurationError as e:
                if self.logger:
                    self.logger.debug(f"設定ファイル読み込み失敗: {config_file} - {str(e)}")
                continue

        if not self.config_data:
            if self.logger:
                self.logger.warning("設定ファイルが見つかりません。デフォルト設定を使用します。")
            self.config_data = self._get_default_config()

        return self.config_data

    def _load_single_config(self, config_path: Path) -> Dict[str, Any]:
        """単一の設定ファイルを読み込み"""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"設定ファイルが見つかりません: {config_path}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"設定ファイルの形式が無効です: {config_path} - {str(e)}")
        except OSError as e:
            raise ConfigurationError(f"設定ファイル読み込みエラー: {config_path} - {str(e)}")

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"設定ファイルのトップレベルはオブジェクトである必要があります: {config_path}")

        if self.logger:
            self.logger.info(f"設定ファイル読み込み成功: {config_path.name}")

        return config_data

    def _merge_with_defaults(self, loaded: Dict[str, Any]) -> Dict[str, Any]:
        """読み込んだ設定をデフォルト設定に重ねる"""
        merged = self._get_default_config()
        for key, value in loaded.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
        return merged

    def _get_default_config(self) -> Dict[str, Any]:
        """デフォルト設定を取得"""
        return {
            'data_dir': str(Path.cwd() / 'data'),
            'encoding': 'utf-8-sig',
            'log_level': 'INFO',
            'log_file': None,
            'cash_payment_method': 'Cash',
            'lead_trainer_keyword': 'alejandro',
            'japan_country_keywords': ['japan', 'jp'],
            'expense_eur_to_jpy_rate': 165,
            'store_files': dict(self.DEFAULT_STORE_FILES)
        }

    def get(self, key: str, default: Any = None) -> Any:
        """設定値を取得"""
        return self.config_data.get(key, default)

    def get_store_settings(self) -> Dict[str, Any]:
        """行ストア関連の設定を取得"""
        data_dir = Path(self.get('data_dir', '.'))
        store_files = {**self.DEFAULT_STORE_FILES, **self.get('store_files', {})}

        return {
            'data_dir': data_dir,
            'encoding': self.get('encoding', 'utf-8-sig'),
            'paths': {name: data_dir / file_name for name, file_name in store_files.items()}
        }

    def get_calculation_settings(self) -> Dict[str, Any]:
        """精算計算関連の設定を取得"""
        return {
            'cash_payment_method': self.get('cash_payment_method', 'Cash'),
            'lead_trainer_keyword': self.get('lead_trainer_keyword', 'alejandro'),
            'japan_country_keywords': list(self.get('japan_country_keywords', ['japan', 'jp'])),
            'expense_eur_to_jpy_rate': float(self.get('expense_eur_to_jpy_rate', 165))
        }

    def get_logging_settings(self) -> Dict[str, Any]:
        """ログ関連の設定を取得"""
        return {
            'log_level': self.get('log_level', 'INFO'),
            'log_file': self.get('log_file')
        }

    def validate_configuration(self) -> bool:
        """設定の妥当性を検証"""
        data_dir = self.get('data_dir')
        if not data_dir:
            error_msg = "必須設定項目が不足: ['data_dir']"
            if self.logger:
                self.logger.error(error_msg)
            raise ConfigurationError(error_msg)

        if not Path(data_dir).is_dir():
            error_msg = f"data_dirが存在しません: {data_dir}"
            if self.logger:
                self.logger.error(error_msg)
            raise ConfigurationError(error_msg)

        try:
            rate = float(self.get('expense_eur_to_jpy_rate', 165))
        except (TypeError, ValueError):
            raise ConfigurationError(f"expense_eur_to_jpy_rateが数値ではありません: {self.get('expense_eur_to_jpy_rate')}")
        if rate <= 0:
            raise ConfigurationError(f"expense_eur_to_jpy_rateは正の値である必要があります: {rate}")

        if self.logger:
            self.logger.info("設定の妥当性検証完了")

        return True

    def save_config(self, config_path: Optional[Path] = None) -> None:
        """設定をファイルに保存"""
        if config_path is None:
            config_path = self.config_path or Path('event_settlement_config.json')

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                json.dump(self.config_data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            error_msg = f"設定ファイル保存エラー: {config_path} - {str(e)}"
            if self.logger:
                self.logger.error(error_msg)
            raise ConfigurationError(error_msg)

        if self.logger:
            self.logger.info(f"設定ファイル保存完了: {config_path}")

    def update_config(self, updates: Dict[str, Any]) -> None:
        """設定を更新"""
        self.config_data.update(updates)

        if self.logger:
            self.logger.info(f"設定更新: {list(updates.keys())}")
