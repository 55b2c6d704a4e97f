"""
トレーナー配分モジュール

共同トレーナー間の報酬配分行を管理します。
Percent / TrainerFee / CashReceived は経理担当が行ごとに手入力する参考値で、
報酬計算の結果から自動で導出しません。Payable = TrainerFee - CashReceived。
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from .data_models import SplitValidationResult, TrainerSplit
from .exceptions import InvalidSplitRow, InvalidSplitTotal


MAX_TOTAL_PERCENT = 100.0


def compute_payable(split: TrainerSplit) -> TrainerSplit:
    """Payableを再計算した複製を返す"""
    return replace(split, payable=(split.trainer_fee or 0.0) - (split.cash_received or 0.0))


def row_errors(splits: Iterable[TrainerSplit]) -> List[str]:
    """各行の入力値の不備を列挙"""
    errors = []
    for index, split in enumerate(splits, 1):
        if not (split.name or '').strip():
            errors.append(f"{index}行目: 氏名は必須です")
        if split.percent is not None and (split.percent < 0 or split.percent > MAX_TOTAL_PERCENT):
            errors.append(f"{index}行目: 配分率は0〜100%である必要があります")
        if split.cash_received is not None and split.cash_received < 0:
            errors.append(f"{index}行目: 受領済み現金は0以上である必要があります")
    return errors


def validate_split_percentages(splits: Iterable[TrainerSplit]) -> SplitValidationResult:
    """配分率の合計と各行の入力値を検証する（純粋関数）"""
    splits = list(splits)
    errors = []

    total = round(sum(split.percent or 0.0 for split in splits), 6)
    if total > MAX_TOTAL_PERCENT:
        errors.append(f"配分率の合計は100%以下である必要があります（現在{total:g}%）")

    errors.extend(row_errors(splits))
    return SplitValidationResult(valid=not errors, total=total, errors=errors)


def suggest_split_fees(splits: Iterable[TrainerSplit], adjusted_fee: float) -> List[TrainerSplit]:
    """報酬額×配分率で各行のTrainerFee案を作る（保存はしない）"""
    suggestions = []
    for split in splits:
        suggestion = replace(split, trainer_fee=adjusted_fee * ((split.percent or 0.0) / 100))
        suggestions.append(compute_payable(suggestion))
    return suggestions


class TrainerSplitReconciler:
    """トレーナー配分の保存・取得クラス

    保存前に、保存後の全行（既存行に入力行を重ねたもの）で合計を検証する。
    既に保存済みの行が100%を超えていても自動修正はしない。
    """

    def __init__(self, store, logger=None):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def get_splits(self, prod_id: int) -> List[TrainerSplit]:
        splits = sorted(self.store.get_by_event_id(prod_id), key=lambda split: split.row_id)
        return [compute_payable(split) for split in splits]

    def save_splits(self, prod_id: int, splits: List[TrainerSplit]) -> List[TrainerSplit]:
        # 呼び出し元の行は変更しない
        splits = [compute_payable(replace(split, prod_id=prod_id)) for split in splits]

        errors = row_errors(splits)
        if errors:
            raise InvalidSplitRow(prod_id, errors)

        merged: Dict[int, TrainerSplit] = {split.row_id: split for split in self.store.get_by_event_id(prod_id)}
        for split in splits:
            merged[split.row_id] = split

        merged_result = validate_split_percentages(merged.values())
        if merged_result.total > MAX_TOTAL_PERCENT:
            self.logger.warning(f"配分保存をブロック: ProdID={prod_id}, 合計={merged_result.total:g}%")
            raise InvalidSplitTotal(prod_id, merged_result.total)

        for split in splits:
            self.store.upsert(split)

        details = ', '.join(f"{split.name}: {split.percent:g}%" for split in splits)
        self.logger.info(f"配分保存: ProdID={prod_id} - {details}")
        return splits

    def save_split(self, split: TrainerSplit) -> TrainerSplit:
        return self.save_splits(split.prod_id, [split])[0]

    def update_amounts(self, prod_id: int, row_id: int, trainer_fee: Optional[float] = None,
                       cash_received: Optional[float] = None) -> TrainerSplit:
        """TrainerFee / CashReceived を更新してPayableを再計算"""
        current = {split.row_id: split for split in self.store.get_by_event_id(prod_id)}
        if row_id not in current:
            raise KeyError(f"配分行が見つかりません: ProdID={prod_id}, RowId={row_id}")

        split = current[row_id]
        if trainer_fee is not None:
            split = replace(split, trainer_fee=trainer_fee)
        if cash_received is not None:
            split = replace(split, cash_received=cash_received)
        return self.save_split(split)

    def delete_split(self, prod_id: int, row_id: int) -> None:
        self.store.delete(prod_id, row_id)
        self.logger.info(f"配分削除: ProdID={prod_id}, RowId={row_id}")
