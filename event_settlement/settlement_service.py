"""
イベント精算サービスモジュール

1イベント分の精算処理フロー（チケット集計 → 報酬率解決 → 円換算 → 経費控除 →
報酬計算 → 概要計算 → 配分検証）を統合管理します。
"""

import logging
from typing import List, Optional

from common.config.config_manager import ConfigManager
from common.error_handling.error_handler import ErrorHandler
from common.error_handling.exceptions import StoreUnavailableError
from common.file_handlers.csv_handler import CSVHandler
from .classification import classify_event, is_japan_market, DEFAULT_JAPAN_KEYWORDS, DEFAULT_LEAD_TRAINER_KEYWORD
from .currency import CurrencyConversionResolver
from .data_models import Expense, SettlementReport, TrainerSplit, CASH, EUR, JPY
from .exceptions import DataQualityIssue, EventNotFoundError
from .expenses import ExpenseLedger, total_expenses
from .fee_params import FeePercentResolver
from .overview import EventOverviewCalculator
from .stores import (
    CsvEventSource, CsvExpenseStore, CsvFeeParamStore, CsvGracePriceStore,
    CsvTicketSource, CsvTrainerSplitStore
)
from .ticket_aggregator import TicketAggregator
from .trainer_fee import PerTrainerFeeFn, select_fee_strategy
from .trainer_splits import TrainerSplitReconciler, suggest_split_fees, validate_split_percentages


DEFAULT_EXPENSE_EUR_TO_JPY_RATE = 165.0


class EventSettlementService:
    """イベント精算サービスクラス"""

    def __init__(self, event_source, ticket_source, fee_param_store, grace_price_store,
                 expense_store, split_store, config: Optional[ConfigManager] = None,
                 per_trainer_fee: Optional[PerTrainerFeeFn] = None):
        self.logger = logging.getLogger(__name__)

        self.event_source = event_source
        self.ticket_source = ticket_source
        self.fee_param_store = fee_param_store
        self.grace_price_store = grace_price_store
        self.per_trainer_fee = per_trainer_fee

        self.expense_ledger = ExpenseLedger(expense_store, self.logger)
        self.split_reconciler = TrainerSplitReconciler(split_store, self.logger)
        self.aggregator = TicketAggregator(self.logger)

        if config is not None:
            settings = config.get_calculation_settings()
        else:
            settings = {
                'cash_payment_method': CASH,
                'lead_trainer_keyword': DEFAULT_LEAD_TRAINER_KEYWORD,
                'japan_country_keywords': list(DEFAULT_JAPAN_KEYWORDS),
                'expense_eur_to_jpy_rate': DEFAULT_EXPENSE_EUR_TO_JPY_RATE
            }
        self.settings = settings
        self.overview_calculator = EventOverviewCalculator(settings['cash_payment_method'])

    @classmethod
    def from_config(cls, config: ConfigManager, per_trainer_fee: Optional[PerTrainerFeeFn] = None) -> 'EventSettlementService':
        """設定のdata_dirにあるCSVストアからサービスを組み立てる"""
        store_settings = config.get_store_settings()
        paths = store_settings['paths']
        csv_handler = CSVHandler(logging.getLogger(__name__))

        return cls(
            event_source=CsvEventSource(paths['events'], csv_handler),
            ticket_source=CsvTicketSource(paths['ticket_rows'], csv_handler),
            fee_param_store=CsvFeeParamStore(paths['fee_params'], csv_handler),
            grace_price_store=CsvGracePriceStore(paths['grace_prices'], csv_handler),
            expense_store=CsvExpenseStore(paths['expenses'], csv_handler),
            split_store=CsvTrainerSplitStore(paths['trainer_splits'], csv_handler),
            config=config,
            per_trainer_fee=per_trainer_fee
        )

    def settle(self, prod_id: int) -> SettlementReport:
        """1イベント分の精算レポートを作成"""
        # 計算ごとにエラー収集を分ける
        error_handler = ErrorHandler(self.logger)

        try:
            event = self.event_source.get_event(prod_id)
            if event is None:
                raise EventNotFoundError(prod_id)
            rows = self.ticket_source.get_raw_ticket_rows(prod_id)

            # 参照テーブルはバケット処理の前に一度だけ読み込む
            fee_resolver = FeePercentResolver.from_store(self.fee_param_store, error_handler)
            japan_market = is_japan_market(event.country, self.settings['japan_country_keywords'])
            currency_resolver = None
            if japan_market:
                currency_resolver = CurrencyConversionResolver.from_store(self.grace_price_store, error_handler)

            expenses = self.expense_ledger.get_expenses(prod_id)
            splits = self.split_reconciler.get_splits(prod_id)
        except StoreUnavailableError as e:
            error_handler.handle_store_error(e, e.store_name, f"精算データ読み込み ProdID={prod_id}")
            error_handler.log_and_raise(e, "イベント精算")

        self.logger.info(f"イベント精算開始: ProdID={prod_id} {event.prod_name} ({len(rows)}行)")

        classification = classify_event(event)
        self.logger.debug(
            f"イベント分類: program={classification.program}, category={classification.category}, venue={classification.venue}"
        )

        buckets = self.aggregator.aggregate(rows)
        fee_resolver.apply(buckets, classification)

        currency = EUR
        if currency_resolver is not None:
            currency_resolver.convert_buckets(buckets, classification)
            currency = JPY
            unconverted = [bucket for bucket in buckets if bucket.currency != JPY]
            if unconverted:
                self.logger.warning(f"円換算されなかったバケット: {len(unconverted)}件（EURのまま集計されます）")

        expense_total = total_expenses(expenses, currency, self.settings['expense_eur_to_jpy_rate'])

        strategy = select_fee_strategy(event.trainer_1, self.settings['lead_trainer_keyword'], self.per_trainer_fee)
        fee_result = strategy.calculate(buckets, expense_total)

        overview_rows = self.overview_calculator.summary_rows(buckets)
        grand_totals = self.overview_calculator.grand_totals(overview_rows)
        overview = self.overview_calculator.calculate(buckets, fee_result)

        split_validation = validate_split_percentages(splits)
        if splits and not split_validation.valid:
            # 保存済みの行は修正せず警告のみ
            self.logger.warning(f"保存済みの配分に問題があります: ProdID={prod_id} - {'; '.join(split_validation.errors)}")

        issues = [error for error in error_handler.collected_errors if isinstance(error, DataQualityIssue)]

        report = SettlementReport(
            event=event,
            classification=classification,
            currency=currency,
            buckets=buckets,
            overview_rows=overview_rows,
            grand_totals=grand_totals,
            overview=overview,
            expenses=expenses,
            splits=splits,
            split_validation=split_validation,
            issues=issues
        )

        if issues:
            summary = error_handler.create_error_summary(issues)
            self.logger.warning(f"データ品質の問題: {summary['total_errors']}件 {summary['error_types']}")

        self.logger.info(
            f"イベント精算完了: ProdID={prod_id}, 戦略={fee_result.strategy}, "
            f"報酬={overview.adjusted_trainer_fee:.2f} {currency}, 回収額={overview.receivable:.2f} {currency}"
        )
        return report

    # 経費
    def get_expenses(self, prod_id: int) -> List[Expense]:
        return self.expense_ledger.get_expenses(prod_id)

    def save_expenses(self, prod_id: int, expenses: List[Expense]) -> List[Expense]:
        return self.expense_ledger.save_expenses(prod_id, expenses)

    def delete_expense(self, prod_id: int, row_id: int) -> None:
        self.expense_ledger.delete_expense(prod_id, row_id)

    # トレーナー配分
    def get_splits(self, prod_id: int) -> List[TrainerSplit]:
        return self.split_reconciler.get_splits(prod_id)

    def save_splits(self, prod_id: int, splits: List[TrainerSplit]) -> List[TrainerSplit]:
        return self.split_reconciler.save_splits(prod_id, splits)

    def update_split_amounts(self, prod_id: int, row_id: int, trainer_fee: Optional[float] = None,
                             cash_received: Optional[float] = None) -> TrainerSplit:
        return self.split_reconciler.update_amounts(prod_id, row_id, trainer_fee, cash_received)

    def delete_split(self, prod_id: int, row_id: int) -> None:
        self.split_reconciler.delete_split(prod_id, row_id)

    def suggest_splits(self, prod_id: int, adjusted_fee: Optional[float] = None) -> List[TrainerSplit]:
        """配分率から各トレーナーの報酬額案を作る（保存はしない）

        ``adjusted_fee`` を省略した場合はイベントを精算して求める。
        """
        if adjusted_fee is None:
            adjusted_fee = self.settle(prod_id).overview.adjusted_trainer_fee
        return suggest_split_fees(self.split_reconciler.get_splits(prod_id), adjusted_fee)
