"""
イベント精算パッケージ

ダンス教育イベント1件分のチケット売上からトレーナー報酬・経費・配分を精算します。
"""

from .classification import classify_event, is_japan_market, is_lead_trainer
from .currency import CurrencyConversionResolver, GracePriceKey, format_amount
from .data_models import (
    EventClassification,
    EventInfo,
    EventOverview,
    Expense,
    FeeParam,
    GracePriceConversion,
    GrandTotals,
    OverviewRow,
    RawTicketRow,
    SettlementReport,
    SplitValidationResult,
    TicketBucket,
    TrainerFeeResult,
    TrainerSplit
)
from .exceptions import (
    EventSettlementError,
    EventNotFoundError,
    InvalidSplitTotal,
    InvalidSplitRow,
    InvalidExpenseRow,
    DataQualityIssue,
    MissingFeeParam,
    MissingGracePrice
)
from .expenses import ExpenseLedger, total_expenses
from .fee_params import FeePercentResolver
from .overview import EventOverviewCalculator
from .settlement_service import EventSettlementService
from .ticket_aggregator import TicketAggregator
from .trainer_fee import (
    LeadTrainerFeeStrategy,
    StandardFeeStrategy,
    TrainerFeeStrategy,
    select_fee_strategy
)
from .trainer_splits import TrainerSplitReconciler, suggest_split_fees, validate_split_percentages

__all__ = [
    'classify_event',
    'is_japan_market',
    'is_lead_trainer',
    'CurrencyConversionResolver',
    'GracePriceKey',
    'format_amount',
    'EventClassification',
    'EventInfo',
    'EventOverview',
    'Expense',
    'FeeParam',
    'GracePriceConversion',
    'GrandTotals',
    'OverviewRow',
    'RawTicketRow',
    'SettlementReport',
    'SplitValidationResult',
    'TicketBucket',
    'TrainerFeeResult',
    'TrainerSplit',
    'EventSettlementError',
    'EventNotFoundError',
    'InvalidSplitTotal',
    'InvalidSplitRow',
    'InvalidExpenseRow',
    'DataQualityIssue',
    'MissingFeeParam',
    'MissingGracePrice',
    'ExpenseLedger',
    'total_expenses',
    'FeePercentResolver',
    'EventOverviewCalculator',
    'EventSettlementService',
    'TicketAggregator',
    'LeadTrainerFeeStrategy',
    'StandardFeeStrategy',
    'TrainerFeeStrategy',
    'select_fee_strategy',
    'TrainerSplitReconciler',
    'suggest_split_fees',
    'validate_split_percentages'
]
