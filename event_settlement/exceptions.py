"""
カスタム例外クラス定義

システムで使用するカスタム例外を定義します。
MissingFeeParam / MissingGracePrice はデータ品質の記録用で、
精算処理の外へ送出されることはありません。
"""

from typing import List, Optional


class EventSettlementError(Exception):
    """イベント精算システムの基本例外クラス"""
    pass


class EventNotFoundError(EventSettlementError):
    """イベントが見つからない場合の例外"""

    def __init__(self, prod_id: int):
        self.prod_id = prod_id
        super().__init__(f"イベントが見つかりません: ProdID={prod_id}")


class InvalidSplitTotal(EventSettlementError):
    """配分率の合計が100%を超える場合の例外（保存をブロックする）"""

    def __init__(self, prod_id: int, total: float):
        self.prod_id = prod_id
        self.total = total
        super().__init__(f"配分率の合計が100%を超えています: ProdID={prod_id}, 合計={total:g}%")


class InvalidSplitRow(EventSettlementError):
    """配分行の入力値が不正な場合の例外"""

    def __init__(self, prod_id: int, errors: List[str]):
        self.prod_id = prod_id
        self.errors = errors
        super().__init__(f"配分行の入力が不正です: ProdID={prod_id} - {'; '.join(errors)}")


class InvalidExpenseRow(EventSettlementError):
    """経費行の入力値が不正な場合の例外"""

    def __init__(self, prod_id: int, row_id: Optional[int], reason: str):
        self.prod_id = prod_id
        self.row_id = row_id
        super().__init__(f"経費行の入力が不正です: ProdID={prod_id}, RowId={row_id} - {reason}")


class DataQualityIssue(EventSettlementError):
    """参照データの欠落（0%・未換算で吸収される）"""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(message)


class MissingFeeParam(DataQualityIssue):
    """報酬率が登録されていない"""

    def __init__(self, key: str):
        super().__init__(key, f"報酬率が未登録のため0%として扱います: {key}")


class MissingGracePrice(DataQualityIssue):
    """円換算用の参照価格が登録されていない、またはEUR価格が0"""

    def __init__(self, key: str, reason: str = '未登録'):
        self.reason = reason
        super().__init__(key, f"円換算用参照価格が{reason}のためEURのまま扱います: {key}")
