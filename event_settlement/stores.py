"""
行ストアモジュール

精算に必要な参照データ・台帳の読み書きを抽象化します。
メモリ上のストア（テスト・組み込み用）と、CSVファイルを使うストアを提供します。
ストアに到達できない場合は StoreUnavailableError を送出します。
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import pandas as pd

from common.error_handling.exceptions import FileProcessingError, StoreUnavailableError
from common.file_handlers.csv_handler import CSVHandler
from .data_models import (
    EventInfo, Expense, FeeParam, GracePriceConversion, RawTicketRow, TrainerSplit, EUR, build_fee_key
)


EVENT_COLUMNS = ['ProdID', 'ProdName', 'EventDate', 'Country', 'Venue', 'Trainer_1']
TICKET_COLUMNS = ['OrderID', 'EventDate', 'ProdID', 'Attendance', 'PaymentMethod',
                  'TierLevel', 'UnitPrice', 'Quantity']
FEE_PARAM_COLUMNS = ['Program', 'Category', 'Venue', 'Attendance', 'Percent']
GRACE_PRICE_COLUMNS = ['EventType', 'EventTypeKey', 'Venue', 'JPYPrice', 'EURPrice']
EXPENSE_COLUMNS = ['ProdID', 'RowId', 'Description', 'Amount', 'Currency']
SPLIT_COLUMNS = ['ProdID', 'RowId', 'Name', 'Percent', 'TrainerFee', 'CashReceived']


def _value(value: Any) -> Any:
    """欠損値をNoneに揃える"""
    if value is None:
        return None
    if not isinstance(value, (list, dict)) and pd.isna(value):
        return None
    return value


def _text(value: Any) -> Optional[str]:
    value = _value(value)
    return None if value is None else str(value)


def _int(value: Any) -> Optional[int]:
    value = _value(value)
    return None if value is None else int(float(value))


def _float(value: Any, default: Optional[float] = None) -> Optional[float]:
    value = _value(value)
    return default if value is None else float(value)


# ------------------------------------------------------------
# 抽象インターフェース
# ------------------------------------------------------------

class EventSource(ABC):
    """イベント情報の供給元"""

    @abstractmethod
    def get_event(self, prod_id: int) -> Optional[EventInfo]:
        """イベント情報を返す。存在しなければNone"""


class TicketSource(ABC):
    """注文単位チケット行の供給元"""

    @abstractmethod
    def get_raw_ticket_rows(self, prod_id: int) -> List[RawTicketRow]:
        """イベントのチケット行を返す"""


class FeeParamStore(ABC):
    """報酬率テーブル"""

    @abstractmethod
    def get(self, program: str, category: str, venue: str, attendance: str) -> Optional[float]:
        """(プログラム, カテゴリ, 会場, 出席区分) に対応する報酬率（0..100）"""

    @abstractmethod
    def snapshot(self) -> Dict[str, float]:
        """テーブル全体の複製"""


class GracePriceStore(ABC):
    """円換算用参照価格テーブル"""

    @abstractmethod
    def get_all(self) -> List[GracePriceConversion]:
        """全行（登録順）"""


class LedgerStore(ABC):
    """(ProdID, RowId) をキーとする台帳"""

    @abstractmethod
    def get_by_event_id(self, prod_id: int) -> list:
        """イベントの全行"""

    @abstractmethod
    def upsert(self, row) -> None:
        """行を追加または置換（後勝ち）"""

    @abstractmethod
    def delete(self, prod_id: int, row_id: int) -> None:
        """行を削除（存在しなければ何もしない）"""


class ExpenseStore(LedgerStore):
    """経費台帳"""


class TrainerSplitStore(LedgerStore):
    """トレーナー配分台帳"""


# ------------------------------------------------------------
# メモリ上のストア
# ------------------------------------------------------------

class InMemoryEventSource(EventSource):

    def __init__(self, events: Iterable[EventInfo] = ()):
        self._events = {event.prod_id: event for event in events}

    def add(self, event: EventInfo) -> None:
        self._events[event.prod_id] = event

    def get_event(self, prod_id: int) -> Optional[EventInfo]:
        event = self._events.get(prod_id)
        return replace(event) if event else None


class InMemoryTicketSource(TicketSource):

    def __init__(self, rows: Iterable[RawTicketRow] = ()):
        self._rows = list(rows)

    def add(self, row: RawTicketRow) -> None:
        self._rows.append(row)

    def get_raw_ticket_rows(self, prod_id: int) -> List[RawTicketRow]:
        return [replace(row) for row in self._rows if row.prod_id == prod_id]


class InMemoryFeeParamStore(FeeParamStore):

    def __init__(self, params: Iterable[FeeParam] = ()):
        self._lock = threading.Lock()
        self._table = {param.key: param.percent for param in params}

    def put(self, param: FeeParam) -> None:
        with self._lock:
            self._table[param.key] = param.percent

    def get(self, program: str, category: str, venue: str, attendance: str) -> Optional[float]:
        with self._lock:
            return self._table.get(build_fee_key(program, category, venue, attendance))

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._table)


class InMemoryGracePriceStore(GracePriceStore):

    def __init__(self, conversions: Iterable[GracePriceConversion] = ()):
        self._lock = threading.Lock()
        self._conversions = list(conversions)

    def add(self, conversion: GracePriceConversion) -> None:
        with self._lock:
            self._conversions.append(conversion)

    def get_all(self) -> List[GracePriceConversion]:
        with self._lock:
            return list(self._conversions)


class _InMemoryLedger(LedgerStore):

    def __init__(self, rows: Iterable = ()):
        self._lock = threading.Lock()
        self._rows = {}
        for row in rows:
            self._rows[(row.prod_id, row.row_id)] = copy.copy(row)

    def get_by_event_id(self, prod_id: int) -> list:
        with self._lock:
            rows = [copy.copy(row) for key, row in self._rows.items() if key[0] == prod_id]
        return sorted(rows, key=lambda row: row.row_id)

    def upsert(self, row) -> None:
        with self._lock:
            self._rows[(row.prod_id, row.row_id)] = copy.copy(row)

    def delete(self, prod_id: int, row_id: int) -> None:
        with self._lock:
            self._rows.pop((prod_id, row_id), None)


class InMemoryExpenseStore(_InMemoryLedger, ExpenseStore):
    pass


class InMemoryTrainerSplitStore(_InMemoryLedger, TrainerSplitStore):
    pass


# ------------------------------------------------------------
# CSVファイルのストア
# ------------------------------------------------------------

class _CsvTable:
    """CSVファイル1つ分の読み書き"""

    def __init__(self, name: str, file_path: Path, columns: List[str],
                 csv_handler: Optional[CSVHandler] = None, encoding: str = 'utf-8-sig'):
        self.name = name
        self.file_path = Path(file_path)
        self.columns = columns
        self.encoding = encoding
        self.logger = logging.getLogger(__name__)
        self.csv_handler = csv_handler or CSVHandler(self.logger)

    def read(self) -> pd.DataFrame:
        try:
            return self.csv_handler.read_table(self.file_path, self.columns)
        except (FileProcessingError, OSError) as e:
            raise StoreUnavailableError(self.name, f"読み込みに失敗しました: {self.file_path} - {str(e)}")

    def write(self, df: pd.DataFrame) -> None:
        try:
            self.csv_handler.write_csv(df[self.columns], self.file_path, encoding=self.encoding)
        except (FileProcessingError, OSError) as e:
            raise StoreUnavailableError(self.name, f"書き込みに失敗しました: {self.file_path} - {str(e)}")

    def records(self) -> List[Dict[str, Any]]:
        return self.read().to_dict('records')


class CsvEventSource(EventSource):

    def __init__(self, file_path: Path, csv_handler: Optional[CSVHandler] = None):
        self.table = _CsvTable('events', file_path, EVENT_COLUMNS, csv_handler)

    def get_event(self, prod_id: int) -> Optional[EventInfo]:
        for record in self.table.records():
            if _int(record['ProdID']) != prod_id:
                continue
            return EventInfo(
                prod_id=prod_id,
                prod_name=_text(record['ProdName']) or '',
                event_date=_text(record['EventDate']),
                country=_text(record['Country']),
                venue=_text(record['Venue']),
                trainer_1=_text(record['Trainer_1'])
            )
        return None


class CsvTicketSource(TicketSource):

    def __init__(self, file_path: Path, csv_handler: Optional[CSVHandler] = None):
        self.table = _CsvTable('ticket_rows', file_path, TICKET_COLUMNS, csv_handler)

    def get_raw_ticket_rows(self, prod_id: int) -> List[RawTicketRow]:
        rows = []
        for record in self.table.records():
            if _int(record['ProdID']) != prod_id:
                continue
            rows.append(RawTicketRow(
                order_id=_int(record['OrderID']),
                event_date=_text(record['EventDate']),
                prod_id=prod_id,
                attendance=_text(record['Attendance']) or '',
                payment_method=_text(record['PaymentMethod']) or '',
                tier_level=_text(record['TierLevel']),
                unit_price=_float(record['UnitPrice'], 0.0),
                quantity=_int(record['Quantity']) or 0
            ))
        return rows


class CsvFeeParamStore(FeeParamStore):

    def __init__(self, file_path: Path, csv_handler: Optional[CSVHandler] = None):
        self.table = _CsvTable('fee_params', file_path, FEE_PARAM_COLUMNS, csv_handler)

    def _params(self) -> List[FeeParam]:
        return [
            FeeParam(
                program=_text(record['Program']) or '',
                category=_text(record['Category']) or '',
                venue=_text(record['Venue']) or '',
                attendance=_text(record['Attendance']) or '',
                percent=_float(record['Percent'], 0.0)
            )
            for record in self.table.records()
        ]

    def get(self, program: str, category: str, venue: str, attendance: str) -> Optional[float]:
        return self.snapshot().get(build_fee_key(program, category, venue, attendance))

    def snapshot(self) -> Dict[str, float]:
        return {param.key: param.percent for param in self._params()}


class CsvGracePriceStore(GracePriceStore):

    def __init__(self, file_path: Path, csv_handler: Optional[CSVHandler] = None):
        self.table = _CsvTable('grace_prices', file_path, GRACE_PRICE_COLUMNS, csv_handler)

    def get_all(self) -> List[GracePriceConversion]:
        return [
            GracePriceConversion(
                event_type_key=_text(record['EventTypeKey']) or '',
                jpy_price=_float(record['JPYPrice'], 0.0),
                eur_price=_float(record['EURPrice'], 0.0),
                event_type=_text(record['EventType']) or '',
                venue=_text(record['Venue'])
            )
            for record in self.table.records()
        ]


class _CsvLedger(LedgerStore):
    """(ProdID, RowId) キーのCSV台帳"""

    def __init__(self, table: _CsvTable, from_record: Callable[[Dict[str, Any]], Any],
                 to_record: Callable[[Any], Dict[str, Any]]):
        self.table = table
        self._from_record = from_record
        self._to_record = to_record
        self._lock = threading.Lock()

    def get_by_event_id(self, prod_id: int) -> list:
        rows = [
            self._from_record(record) for record in self.table.records()
            if _int(record['ProdID']) == prod_id
        ]
        return sorted(rows, key=lambda row: row.row_id)

    def _without(self, df: pd.DataFrame, prod_id: int, row_id: int) -> pd.DataFrame:
        if df.empty:
            return df
        prod_ids = df['ProdID'].map(_int)
        row_ids = df['RowId'].map(_int)
        return df[~((prod_ids == prod_id) & (row_ids == row_id))]

    def upsert(self, row) -> None:
        with self._lock:
            df = self._without(self.table.read(), row.prod_id, row.row_id)
            new_row = pd.DataFrame([self._to_record(row)], columns=self.table.columns)
            df = new_row if df.empty else pd.concat([df, new_row], ignore_index=True)
            df = df.sort_values(['ProdID', 'RowId'], kind='stable')
            self.table.write(df)

    def delete(self, prod_id: int, row_id: int) -> None:
        with self._lock:
            df = self.table.read()
            remaining = self._without(df, prod_id, row_id)
            if len(remaining) != len(df):
                self.table.write(remaining)


def _expense_from_record(record: Dict[str, Any]) -> Expense:
    return Expense(
        prod_id=_int(record['ProdID']),
        row_id=_int(record['RowId']),
        description=_text(record['Description']) or '',
        amount=_float(record['Amount'], 0.0),
        currency=_text(record['Currency']) or EUR
    )


def _expense_to_record(expense: Expense) -> Dict[str, Any]:
    record = expense.to_dict()
    return {column: record[column] for column in EXPENSE_COLUMNS}


def _split_from_record(record: Dict[str, Any]) -> TrainerSplit:
    return TrainerSplit(
        prod_id=_int(record['ProdID']),
        row_id=_int(record['RowId']),
        name=_text(record['Name']) or '',
        percent=_float(record['Percent'], 0.0),
        trainer_fee=_float(record['TrainerFee'], 0.0),
        cash_received=_float(record['CashReceived'], 0.0)
    )


def _split_to_record(split: TrainerSplit) -> Dict[str, Any]:
    record = split.to_dict()
    # Payableは保存せず読み込み時に再計算する
    return {column: record[column] for column in SPLIT_COLUMNS}


class CsvExpenseStore(_CsvLedger, ExpenseStore):

    def __init__(self, file_path: Path, csv_handler: Optional[CSVHandler] = None):
        super().__init__(
            _CsvTable('expenses', file_path, EXPENSE_COLUMNS, csv_handler),
            _expense_from_record,
            _expense_to_record
        )


class CsvTrainerSplitStore(_CsvLedger, TrainerSplitStore):

    def __init__(self, file_path: Path, csv_handler: Optional[CSVHandler] = None):
        super().__init__(
            _CsvTable('trainer_splits', file_path, SPLIT_COLUMNS, csv_handler),
            _split_from_record,
            _split_to_record
        )
