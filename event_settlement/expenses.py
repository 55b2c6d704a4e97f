"""
経費台帳モジュール

イベントごとの手入力経費を (ProdID, RowId) 単位で追加・更新・削除します。
同じイベントへの同時書き込みは後勝ちです。
"""

import logging
from dataclasses import replace
from typing import Iterable, List

from .data_models import Expense, EUR, JPY
from .exceptions import InvalidExpenseRow


def validate_expense(expense: Expense) -> None:
    """経費行の入力値を検証（不正ならInvalidExpenseRow）"""
    if not (expense.description or '').strip():
        raise InvalidExpenseRow(expense.prod_id, expense.row_id, "摘要は必須です")
    if expense.amount is None or expense.amount < 0:
        raise InvalidExpenseRow(expense.prod_id, expense.row_id, f"金額は0以上である必要があります: {expense.amount}")


def total_expenses(expenses: Iterable[Expense], report_currency: str = EUR,
                   eur_to_jpy_rate: float = 165.0) -> float:
    """経費合計をレポート通貨で求める

    円建てレポートではJPY以外の経費を固定レートで円に換算する。
    EUR建てレポートでは入力額をそのまま合計する。
    """
    total = 0.0
    for expense in expenses:
        amount = expense.amount or 0.0
        if report_currency == JPY and (expense.currency or EUR) != JPY:
            amount = amount * eur_to_jpy_rate
        total += amount
    return total


class ExpenseLedger:
    """経費台帳クラス"""

    def __init__(self, store, logger=None):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def get_expenses(self, prod_id: int) -> List[Expense]:
        return sorted(self.store.get_by_event_id(prod_id), key=lambda expense: expense.row_id)

    def next_row_id(self, prod_id: int) -> int:
        row_ids = [expense.row_id for expense in self.store.get_by_event_id(prod_id)]
        return max(row_ids, default=0) + 1

    def save_expense(self, expense: Expense) -> Expense:
        """経費行を追加または更新"""
        validate_expense(expense)
        self.store.upsert(expense)
        self.logger.info(f"経費保存: ProdID={expense.prod_id}, RowId={expense.row_id}, {expense.description}: {expense.amount} {expense.currency}")
        return expense

    def save_expenses(self, prod_id: int, expenses: List[Expense]) -> List[Expense]:
        """複数の経費行をまとめて保存（全行を検証してから書き込む）"""
        expenses = [replace(expense, prod_id=prod_id) for expense in expenses]
        for expense in expenses:
            validate_expense(expense)

        for expense in expenses:
            self.store.upsert(expense)

        self.logger.info(f"経費保存: ProdID={prod_id}, {len(expenses)}件")
        return expenses

    def delete_expense(self, prod_id: int, row_id: int) -> None:
        self.store.delete(prod_id, row_id)
        self.logger.info(f"経費削除: ProdID={prod_id}, RowId={row_id}")
