"""
通貨換算モジュール

日本市場のイベントについて、参照価格ペア (JPY, EUR) から換算レートを求め、
バケットの単価・合計を円に換算します。
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from common.error_handling.error_handler import ErrorHandler
from .data_models import (
    EventClassification, GracePriceConversion, TicketBucket, EUR, JPY
)
from .exceptions import MissingGracePrice


CURRENCY_INFO = {
    EUR: {'symbol': '€', 'decimals': 2},
    JPY: {'symbol': '¥', 'decimals': 0},
}

FREE_TIER = 'Free'
ONLINE_VENUE = 'Online'
ONLINE_SUFFIX = '-Online'


@dataclass(frozen=True)
class GracePriceKey:
    """参照価格の構造化キー

    保存形式の文字列は ``to_storage_key`` でのみ生成する。
    """
    program: str
    category: str
    tier: str
    venue: Optional[str] = None

    def to_storage_key(self) -> str:
        tier_part = '' if self.tier == FREE_TIER else self.tier
        key = f"{self.program}-{self.category}-{tier_part}"
        if self.venue == ONLINE_VENUE:
            key += ONLINE_SUFFIX
        return key


def grace_key_for(classification: EventClassification, tier: str) -> GracePriceKey:
    """イベント分類とティアから参照価格キーを作る"""
    return GracePriceKey(
        program=classification.program,
        category=classification.category,
        tier=tier,
        venue=classification.venue
    )


def find_inconsistent_keys(conversions: Iterable[GracePriceConversion]) -> List[str]:
    """会場区分とキーの ``-Online`` 接尾辞が食い違う参照価格を列挙"""
    inconsistent = []
    for conversion in conversions:
        has_suffix = conversion.event_type_key.endswith(ONLINE_SUFFIX)
        is_online = conversion.venue == ONLINE_VENUE
        if has_suffix != is_online:
            inconsistent.append(conversion.event_type_key)
    return inconsistent


def format_amount(amount: float, currency: str) -> str:
    """通貨記号付きで金額を整形（例: €1,234.50 / ¥12,345 / -€10.00）"""
    info = CURRENCY_INFO.get(currency, CURRENCY_INFO[EUR])
    decimals = info['decimals']
    value = round(amount) if decimals == 0 else amount
    sign = '-' if value < 0 else ''
    return f"{sign}{info['symbol']}{abs(value):,.{decimals}f}"


class CurrencyConversionResolver:
    """参照価格による円換算クラス

    生成時に参照価格一覧のスナップショットを取る。同じキーが複数ある場合は先頭を採用する。
    """

    def __init__(self, conversions: Iterable[GracePriceConversion], error_handler: Optional[ErrorHandler] = None):
        self.logger = logging.getLogger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)
        self._table: Dict[str, GracePriceConversion] = {}
        self.missing_keys: List[str] = []

        conversions = list(conversions)
        for conversion in conversions:
            if conversion.event_type_key in self._table:
                self.logger.debug(f"重複した参照価格キーを無視します: {conversion.event_type_key}")
                continue
            self._table[conversion.event_type_key] = conversion

        for key in find_inconsistent_keys(conversions):
            self.logger.warning(f"参照価格の会場区分とキーが一致しません: {key}")

    @classmethod
    def from_store(cls, store, error_handler: Optional[ErrorHandler] = None) -> 'CurrencyConversionResolver':
        return cls(store.get_all(), error_handler)

    def lookup(self, key: GracePriceKey) -> Optional[GracePriceConversion]:
        return self._table.get(key.to_storage_key())

    def conversion_rate(self, key: GracePriceKey) -> Optional[float]:
        """換算レート (JPY / EUR) を返す。使えない場合はNone"""
        conversion = self.lookup(key)
        if conversion is None:
            self._record_missing(key.to_storage_key(), '未登録')
            return None
        if not conversion.is_usable:
            self._record_missing(key.to_storage_key(), 'EUR価格0')
            return None
        return conversion.jpy_price / conversion.eur_price

    def convert_buckets(self, buckets: List[TicketBucket], classification: EventClassification) -> List[TicketBucket]:
        """ティアが指定されたバケットを円に換算する

        参照価格がない・EUR価格が0のバケットはEURのまま残す。
        """
        converted = 0
        for bucket in buckets:
            if not bucket.has_explicit_tier:
                continue

            rate = self.conversion_rate(grace_key_for(classification, bucket.tier_level))
            if rate is None:
                continue

            bucket.unit_price = bucket.unit_price * rate
            bucket.price_total = bucket.unit_price * bucket.quantity
            bucket.currency = JPY
            converted += 1

        self.logger.info(f"円換算完了: {converted}/{len(buckets)}バケット")
        return buckets

    def _record_missing(self, storage_key: str, reason: str) -> None:
        if storage_key in self.missing_keys:
            return
        self.missing_keys.append(storage_key)
        self.error_handler.log_and_continue(MissingGracePrice(storage_key, reason), "円換算")
