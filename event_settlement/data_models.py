"""
データモデル定義

イベント精算で使用するデータクラスを定義します。
金額はすべて float で扱い、通貨は ``currency`` 属性で区別します。
"""

from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any

from .exceptions import MissingFeeParam, MissingGracePrice


# 出席区分
ATTENDED = 'Attended'
UNATTENDED = 'Unattended'
FREE_TICKET = 'Free Ticket'

# 支払方法
PAYPAL = 'Paypal'
CASH = 'Cash'
ONLINE_PAYMENT = 'Online Payment'

# 通貨
EUR = 'EUR'
JPY = 'JPY'

DEFAULT_TIER_LEVEL = 'Standard'


@dataclass
class RawTicketRow:
    """注文単位のチケット行（外部の注文データから供給される、EUR建て）"""
    order_id: int
    event_date: Optional[str]
    prod_id: int
    attendance: str
    payment_method: str
    tier_level: Optional[str]
    unit_price: float
    quantity: int


@dataclass
class EventInfo:
    """イベント基本情報"""
    prod_id: int
    prod_name: str
    event_date: Optional[str] = None
    country: Optional[str] = None
    venue: Optional[str] = None
    trainer_1: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ProdID': self.prod_id,
            'ProdName': self.prod_name,
            'EventDate': self.event_date,
            'Country': self.country,
            'Venue': self.venue,
            'Trainer_1': self.trainer_1
        }


@dataclass(frozen=True)
class EventClassification:
    """イベント名から導出したプログラム・カテゴリ・会場区分"""
    program: str
    category: str
    venue: str


@dataclass
class TicketBucket:
    """出席区分・支払方法・ティア・単価で集約したチケット群"""
    attendance: str
    payment_method: str
    tier_level: str
    unit_price: float
    quantity: int
    price_total: float
    trainer_fee_pct: float = 0.0
    currency: str = EUR
    # 元データでティアが指定されていたか（円換算の対象判定に使う）
    has_explicit_tier: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'Attendance': self.attendance,
            'PaymentMethod': self.payment_method,
            'TierLevel': self.tier_level,
            'UnitPrice': self.unit_price,
            'Quantity': self.quantity,
            'PriceTotal': self.price_total,
            'TrainerFeePct': self.trainer_fee_pct,
            'Currency': self.currency
        }


def build_fee_key(program: str, category: str, venue: str, attendance: str) -> str:
    """報酬率テーブルのキー文字列を組み立てる"""
    return f"{program}-{category}-{venue}-{attendance}"


@dataclass(frozen=True)
class FeeParam:
    """交渉済みトレーナー報酬率（Percent は 0..100）"""
    program: str
    category: str
    venue: str
    attendance: str
    percent: float

    @property
    def key(self) -> str:
        return build_fee_key(self.program, self.category, self.venue, self.attendance)


@dataclass(frozen=True)
class GracePriceConversion:
    """円換算用の参照価格ペア"""
    event_type_key: str
    jpy_price: float
    eur_price: float
    event_type: str = ''
    venue: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        return self.eur_price != 0


@dataclass
class Expense:
    """イベント経費行"""
    prod_id: int
    row_id: int
    description: str
    amount: float
    currency: str = EUR

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ProdID': self.prod_id,
            'RowId': self.row_id,
            'Description': self.description,
            'Amount': self.amount,
            'Currency': self.currency
        }


@dataclass
class TrainerSplit:
    """共同トレーナー間の報酬配分行"""
    prod_id: int
    row_id: int
    name: str
    percent: float
    trainer_fee: float = 0.0
    cash_received: float = 0.0
    payable: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ProdID': self.prod_id,
            'RowId': self.row_id,
            'Name': self.name,
            'Percent': self.percent,
            'TrainerFee': self.trainer_fee,
            'CashReceived': self.cash_received,
            'Payable': self.payable
        }


@dataclass
class SplitValidationResult:
    """配分率検証の結果"""
    valid: bool
    total: float
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class OverviewRow:
    """サマリー表の1行（バケット単位）"""
    attendance: str
    payment_method: str
    tier_level: str
    sum_quantity: int
    unit_price: float
    sum_price_total: float
    trainer_fee_pct: float
    sum_trainer_fee: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'Attendance': self.attendance,
            'PaymentMethod': self.payment_method,
            'TierLevel': self.tier_level,
            'sumQuantity': self.sum_quantity,
            'UnitPrice': self.unit_price,
            'sumPriceTotal': self.sum_price_total,
            'TrainerFeePct': self.trainer_fee_pct,
            'sumTrainerFee': self.sum_trainer_fee
        }


@dataclass
class GrandTotals:
    """サマリー表の列合計"""
    sum_quantity: int = 0
    sum_price_total: float = 0.0
    sum_trainer_fee: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sumQuantity': self.sum_quantity,
            'sumPriceTotal': self.sum_price_total,
            'sumTrainerFee': self.sum_trainer_fee
        }


@dataclass
class TrainerFeeResult:
    """トレーナー報酬計算の結果"""
    strategy: str
    original_fee: float
    fee_percentage: float
    total_expenses: float
    margin: float
    adjusted_fee: float


@dataclass
class EventOverview:
    """イベント精算の概要値（永続化しない）"""
    cash_sales: float
    adjusted_trainer_fee: float
    balance: float
    receivable: float
    total_expenses: float
    margin: float
    trainer_fee_percentage: float
    original_fee: float = 0.0
    strategy: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cashSales': self.cash_sales,
            'adjustedFee': self.adjusted_trainer_fee,
            'balance': self.balance,
            'receivable': self.receivable,
            'totalExpenses': self.total_expenses,
            'margin': self.margin,
            'feePercentage': self.trainer_fee_percentage,
            'originalFee': self.original_fee,
            'strategy': self.strategy
        }


@dataclass
class SettlementReport:
    """1イベント分の精算レポート"""
    event: EventInfo
    classification: EventClassification
    currency: str
    buckets: List[TicketBucket]
    overview_rows: List[OverviewRow]
    grand_totals: GrandTotals
    overview: EventOverview
    expenses: List[Expense] = field(default_factory=list)
    splits: List[TrainerSplit] = field(default_factory=list)
    split_validation: Optional[SplitValidationResult] = None
    issues: List[Exception] = field(default_factory=list)

    @property
    def missing_fee_keys(self) -> List[str]:
        return [issue.key for issue in self.issues if isinstance(issue, MissingFeeParam)]

    @property
    def missing_grace_keys(self) -> List[str]:
        return [issue.key for issue in self.issues if isinstance(issue, MissingGracePrice)]

    def to_dict(self) -> Dict[str, Any]:
        """辞書形式で出力"""
        return {
            'event': self.event.to_dict(),
            'classification': asdict(self.classification),
            'currency': self.currency,
            'buckets': [bucket.to_dict() for bucket in self.buckets],
            'overviewRows': [row.to_dict() for row in self.overview_rows],
            'grandTotals': self.grand_totals.to_dict(),
            'overview': self.overview.to_dict(),
            'expenses': [expense.to_dict() for expense in self.expenses],
            'splits': [split.to_dict() for split in self.splits],
            'splitValidation': self.split_validation.to_dict() if self.split_validation else None,
            'dataQuality': {
                'missingFeeKeys': self.missing_fee_keys,
                'missingGraceKeys': self.missing_grace_keys
            }
        }
