"""
報酬率解決モジュール

(プログラム, カテゴリ, 会場, 出席区分) の複合キーから交渉済みの報酬率を引きます。
キーは大文字小文字を区別する完全一致で、正規化は行いません。
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from common.error_handling.error_handler import ErrorHandler
from .data_models import EventClassification, FeeParam, TicketBucket, build_fee_key
from .exceptions import MissingFeeParam


class FeePercentResolver:
    """報酬率の解決クラス

    生成時に参照テーブルのスナップショットを取り、以降は管理画面側の更新の影響を受けない。
    未登録のキーは 0% として扱い、例外は送出しない。
    """

    def __init__(self, table: Mapping[str, float], error_handler: Optional[ErrorHandler] = None):
        self._table: Dict[str, float] = dict(table)
        self.error_handler = error_handler or ErrorHandler(logging.getLogger(__name__))
        self.missing_keys: List[str] = []

    @classmethod
    def from_params(cls, params: Iterable[FeeParam], error_handler: Optional[ErrorHandler] = None) -> 'FeePercentResolver':
        return cls({param.key: param.percent for param in params}, error_handler)

    @classmethod
    def from_store(cls, store, error_handler: Optional[ErrorHandler] = None) -> 'FeePercentResolver':
        return cls(store.snapshot(), error_handler)

    def resolve(self, program: str, category: str, venue: str, attendance: str) -> float:
        """報酬率（0..100）を返す。未登録なら0"""
        key = build_fee_key(program, category, venue, attendance)
        percent = self._table.get(key)

        if percent is None:
            if key not in self.missing_keys:
                self.missing_keys.append(key)
                self.error_handler.log_and_continue(MissingFeeParam(key), "報酬率解決")
            return 0.0

        return float(percent)

    def apply(self, buckets: List[TicketBucket], classification: EventClassification) -> List[TicketBucket]:
        """各バケットに報酬率（0..1）を設定する"""
        for bucket in buckets:
            percent = self.resolve(
                classification.program,
                classification.category,
                classification.venue,
                bucket.attendance
            )
            bucket.trainer_fee_pct = percent / 100
        return buckets
