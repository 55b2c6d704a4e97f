"""
チケット集計モジュール

注文単位のチケット行を (出席区分, 支払方法, ティア, 単価) で集約し、
価格付きのバケットにまとめます。
"""

import logging
from dataclasses import asdict
from typing import List

import pandas as pd

from common.error_handling.exceptions import DataValidationError
from .data_models import RawTicketRow, TicketBucket, DEFAULT_TIER_LEVEL, EUR


class TicketAggregator:
    """チケット行集計クラス"""

    GROUP_COLUMNS = ['attendance', 'payment_method', 'tier_level', 'price_key']

    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger(__name__)

    def to_dataframe(self, rows: List[RawTicketRow]) -> pd.DataFrame:
        """チケット行をDataFrameに変換"""
        df = pd.DataFrame([asdict(row) for row in rows])

        negative = df[df['quantity'] < 0]
        if not negative.empty:
            order_ids = negative['order_id'].tolist()
            raise DataValidationError(f"数量が負のチケット行があります: OrderID={order_ids}")

        tier = df['tier_level']
        df['has_explicit_tier'] = tier.notna() & (tier.astype(str).str.strip() != '')
        df['tier_level'] = tier.where(df['has_explicit_tier'], DEFAULT_TIER_LEVEL)
        df['attendance'] = df['attendance'].fillna('')
        df['payment_method'] = df['payment_method'].fillna('')
        df['unit_price'] = df['unit_price'].astype(float)
        df['price_key'] = df['unit_price'].round(2)
        return df

    def aggregate(self, rows: List[RawTicketRow]) -> List[TicketBucket]:
        """チケット行をバケットに集約（初出順）"""
        if not rows:
            self.logger.info("チケット行が0件のため空の集計結果を返します")
            return []

        df = self.to_dataframe(rows)

        # 同じキー内では単価は共通なので先頭行の値を使う
        grouped = df.groupby(self.GROUP_COLUMNS, sort=False).agg(
            unit_price=('unit_price', 'first'),
            quantity=('quantity', 'sum'),
            has_explicit_tier=('has_explicit_tier', 'any')
        ).reset_index()

        buckets = []
        for _, group in grouped.iterrows():
            unit_price = float(group['unit_price'])
            quantity = int(group['quantity'])
            buckets.append(TicketBucket(
                attendance=group['attendance'],
                payment_method=group['payment_method'],
                tier_level=group['tier_level'],
                unit_price=unit_price,
                quantity=quantity,
                price_total=unit_price * quantity,
                currency=EUR,
                has_explicit_tier=bool(group['has_explicit_tier'])
            ))

        self.logger.info(f"チケット集計完了: {len(rows)}行 -> {len(buckets)}バケット")
        return buckets
