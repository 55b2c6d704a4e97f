"""
トレーナー報酬計算モジュール

報酬計算は2つの戦略を切り替えて行います。

- 標準戦略: チケットごとに報酬率を掛けた額を合計し（経費控除前に率を適用）、
  経費を引いた残り（マージン）がそのまま報酬になる。
- リードトレーナー戦略: 全チケット売上の合計から経費を引き、
  マージンに出席チケットの加重平均報酬率を掛ける（経費控除後に率を適用）。

この非対称は業務ルールであり、統一しないこと。
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from .classification import is_lead_trainer, DEFAULT_LEAD_TRAINER_KEYWORD
from .data_models import TicketBucket, TrainerFeeResult, ATTENDED


PerTrainerFeeFn = Callable[[TicketBucket], float]

FULL_PERCENTAGE = 100.0


def default_trainer_fee(bucket: TicketBucket) -> float:
    """バケット1件分のトレーナー報酬（売上合計 × 報酬率）"""
    return bucket.price_total * bucket.trainer_fee_pct


class TrainerFeeStrategy(ABC):
    """報酬計算戦略の基底クラス"""

    name = ''

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    @abstractmethod
    def original_fee(self, buckets: List[TicketBucket]) -> float:
        """経費控除前の報酬額"""

    @abstractmethod
    def fee_percentage(self, buckets: List[TicketBucket]) -> float:
        """マージンに適用する報酬率（0..100）"""

    @abstractmethod
    def adjust(self, margin: float, fee_percentage: float) -> float:
        """マージンから最終的な報酬額を求める"""

    def calculate(self, buckets: List[TicketBucket], total_expenses: float) -> TrainerFeeResult:
        original_fee = self.original_fee(buckets)
        fee_percentage = self.fee_percentage(buckets)
        margin = original_fee - total_expenses
        adjusted_fee = self.adjust(margin, fee_percentage)

        self.logger.debug(
            f"報酬計算 [{self.name}]: 控除前={original_fee:.2f}, 経費={total_expenses:.2f}, "
            f"マージン={margin:.2f}, 率={fee_percentage:.2f}%, 報酬={adjusted_fee:.2f}"
        )

        return TrainerFeeResult(
            strategy=self.name,
            original_fee=original_fee,
            fee_percentage=fee_percentage,
            total_expenses=total_expenses,
            margin=margin,
            adjusted_fee=adjusted_fee
        )


class StandardFeeStrategy(TrainerFeeStrategy):
    """標準戦略（チケット単位で報酬率を適用）"""

    name = 'standard'

    def __init__(self, per_trainer_fee: Optional[PerTrainerFeeFn] = None):
        super().__init__()
        self.per_trainer_fee = per_trainer_fee or default_trainer_fee

    def original_fee(self, buckets: List[TicketBucket]) -> float:
        return sum(self.per_trainer_fee(bucket) for bucket in buckets)

    def fee_percentage(self, buckets: List[TicketBucket]) -> float:
        return FULL_PERCENTAGE

    def adjust(self, margin: float, fee_percentage: float) -> float:
        # 率はoriginal_feeの時点で適用済み
        return margin


class LeadTrainerFeeStrategy(TrainerFeeStrategy):
    """リードトレーナー戦略（マージンに加重平均報酬率を適用）"""

    name = 'lead_trainer'

    def original_fee(self, buckets: List[TicketBucket]) -> float:
        return sum(bucket.price_total for bucket in buckets)

    def fee_percentage(self, buckets: List[TicketBucket]) -> float:
        attended = [bucket for bucket in buckets if bucket.attendance == ATTENDED]
        attended_total = sum(bucket.price_total for bucket in attended)

        if not attended or attended_total == 0:
            self.logger.info("出席チケットの売上がないため報酬率を100%とします")
            return FULL_PERCENTAGE

        weighted = sum(bucket.trainer_fee_pct * bucket.price_total for bucket in attended)
        return weighted / attended_total * 100

    def adjust(self, margin: float, fee_percentage: float) -> float:
        return margin * (fee_percentage / 100)


def select_fee_strategy(trainer_name: Optional[str],
                        lead_trainer_keyword: str = DEFAULT_LEAD_TRAINER_KEYWORD,
                        per_trainer_fee: Optional[PerTrainerFeeFn] = None) -> TrainerFeeStrategy:
    """トレーナー名から報酬計算戦略を選択"""
    if is_lead_trainer(trainer_name, lead_trainer_keyword):
        return LeadTrainerFeeStrategy()
    return StandardFeeStrategy(per_trainer_fee)
