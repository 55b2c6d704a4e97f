"""
イベント概要計算モジュール

バケット単位のサマリー行、列合計、現金売上・残高・回収額を計算します。
receivable が正なら事業側がトレーナーから回収、負なら事業側がトレーナーへ支払う。
"""

from typing import List

from .data_models import (
    EventOverview, GrandTotals, OverviewRow, TicketBucket, TrainerFeeResult, CASH
)


class EventOverviewCalculator:
    """イベント概要計算クラス"""

    def __init__(self, cash_payment_method: str = CASH):
        self.cash_payment_method = cash_payment_method

    def summary_rows(self, buckets: List[TicketBucket]) -> List[OverviewRow]:
        """バケットごとのサマリー行（出席区分・支払方法・ティア順）"""
        rows = [
            OverviewRow(
                attendance=bucket.attendance,
                payment_method=bucket.payment_method,
                tier_level=bucket.tier_level,
                sum_quantity=bucket.quantity,
                unit_price=bucket.unit_price,
                sum_price_total=bucket.price_total,
                trainer_fee_pct=bucket.trainer_fee_pct,
                sum_trainer_fee=bucket.price_total * bucket.trainer_fee_pct
            )
            for bucket in buckets
        ]
        rows.sort(key=lambda row: (row.attendance or '', row.payment_method or '', row.tier_level or ''))
        return rows

    def grand_totals(self, rows: List[OverviewRow]) -> GrandTotals:
        return GrandTotals(
            sum_quantity=sum(row.sum_quantity for row in rows),
            sum_price_total=sum(row.sum_price_total for row in rows),
            sum_trainer_fee=sum(row.sum_trainer_fee for row in rows)
        )

    def cash_sales(self, buckets: List[TicketBucket]) -> float:
        """現金払いバケットの売上合計"""
        return sum(
            bucket.price_total for bucket in buckets
            if bucket.payment_method == self.cash_payment_method
        )

    def calculate(self, buckets: List[TicketBucket], fee_result: TrainerFeeResult) -> EventOverview:
        cash_sales = self.cash_sales(buckets)
        adjusted_fee = fee_result.adjusted_fee

        return EventOverview(
            cash_sales=cash_sales,
            adjusted_trainer_fee=adjusted_fee,
            balance=cash_sales - adjusted_fee,
            receivable=adjusted_fee - cash_sales,
            total_expenses=fee_result.total_expenses,
            margin=fee_result.margin,
            trainer_fee_percentage=fee_result.fee_percentage,
            original_fee=fee_result.original_fee,
            strategy=fee_result.strategy
        )
