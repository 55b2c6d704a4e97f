#!/usr/bin/env python3
"""
イベント精算システム メイン実行スクリプト

使用方法:
    python run_event_settlement.py 1234
    python run_event_settlement.py 1234 --data-dir ./data
    python run_event_settlement.py 1234 --config event_settlement_config.json --json
    python run_event_settlement.py 1234 --data-dir ./data --save-config event_settlement_config.json
"""

import sys
import json
import argparse
from pathlib import Path

# プロジェクトルートをパスに追加
sys.path.insert(0, str(Path(__file__).parent))

from common.config.config_manager import ConfigManager
from common.error_handling.exceptions import ConfigurationError, DataValidationError, StoreUnavailableError
from common.logging.unified_logger import UnifiedLogger
from event_settlement.currency import format_amount
from event_settlement.exceptions import EventNotFoundError
from event_settlement.settlement_service import EventSettlementService


def parse_arguments(argv=None):
    """コマンドライン引数を解析"""
    parser = argparse.ArgumentParser(
        description="イベント精算システム",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用例:
  %(prog)s 1234                        # ProdID 1234 の精算サマリーを表示
  %(prog)s 1234 --data-dir ./data      # CSVストアのディレクトリを指定
  %(prog)s 1234 --json                 # 精算レポートをJSONで出力
  %(prog)s 1234 --log-level DEBUG      # デバッグレベルでログ出力
  %(prog)s 1234 --data-dir ./data --save-config event_settlement_config.json  # 上書きした設定を保存
        """
    )

    parser.add_argument(
        'prod_id',
        type=int,
        help='精算対象イベントのProdID'
    )

    parser.add_argument(
        '--config',
        type=str,
        help='設定ファイルのパス（省略時は既定の設定ファイルを探索）'
    )

    parser.add_argument(
        '--data-dir',
        type=str,
        help='CSVストアのディレクトリ（設定ファイルのdata_dirを上書き）'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='ログレベル（省略時は設定ファイルの値）'
    )

    parser.add_argument(
        '--save-config',
        type=str,
        metavar='PATH',
        help='実際に使用した設定（--data-dir の上書きを含む）をJSONファイルに保存'
    )

    parser.add_argument(
        '--json',
        action='store_true',
        help='精算レポートをJSON形式で標準出力に出力'
    )

    return parser.parse_args(argv)


def print_report(report) -> None:
    """精算レポートを表形式で表示"""
    currency = report.currency
    event = report.event

    print("=" * 60)
    print(f"イベント精算: {event.prod_id} {event.prod_name}")
    print(f"開催日: {event.event_date or '-'} / 国: {event.country or '-'} / トレーナー: {event.trainer_1 or '-'}")
    print(f"分類: {report.classification.program} / {report.classification.category} / {report.classification.venue}")
    print(f"通貨: {currency}")
    print("=" * 60)

    print(f"{'出席区分':<12}{'支払方法':<16}{'ティア':<14}{'数量':>6}{'単価':>14}{'売上':>16}{'率':>8}{'報酬':>16}")
    for row in report.overview_rows:
        print(
            f"{row.attendance:<12}{row.payment_method:<16}{row.tier_level:<14}{row.sum_quantity:>6}"
            f"{format_amount(row.unit_price, currency):>14}{format_amount(row.sum_price_total, currency):>16}"
            f"{row.trainer_fee_pct * 100:>7.1f}%{format_amount(row.sum_trainer_fee, currency):>16}"
        )
    totals = report.grand_totals
    print("-" * 60)
    print(
        f"{'合計':<42}{totals.sum_quantity:>6}{'':>14}"
        f"{format_amount(totals.sum_price_total, currency):>16}{'':>8}"
        f"{format_amount(totals.sum_trainer_fee, currency):>16}"
    )

    overview = report.overview
    print("\n概要:")
    print(f"  報酬計算方式: {overview.strategy}")
    print(f"  控除前報酬: {format_amount(overview.original_fee, currency)}")
    print(f"  経費合計: {format_amount(overview.total_expenses, currency)}")
    print(f"  マージン: {format_amount(overview.margin, currency)}")
    print(f"  報酬率: {overview.trainer_fee_percentage:.2f}%")
    print(f"  トレーナー報酬: {format_amount(overview.adjusted_trainer_fee, currency)}")
    print(f"  現金売上: {format_amount(overview.cash_sales, currency)}")
    print(f"  残高: {format_amount(overview.balance, currency)}")
    print(f"  回収額: {format_amount(overview.receivable, currency)}")

    if report.splits:
        print("\nトレーナー配分:")
        for split in report.splits:
            print(
                f"  {split.row_id}. {split.name}: {split.percent:g}% "
                f"報酬 {format_amount(split.trainer_fee, currency)} / "
                f"受領済み現金 {format_amount(split.cash_received, currency)} / "
                f"支払額 {format_amount(split.payable, currency)}"
            )
        if report.split_validation and not report.split_validation.valid:
            for error in report.split_validation.errors:
                print(f"  ⚠ {error}")

    if report.issues:
        print("\nデータ品質:")
        for key in report.missing_fee_keys:
            print(f"  報酬率未登録: {key}")
        for key in report.missing_grace_keys:
            print(f"  円換算参照価格なし: {key}")
    print("=" * 60)


def main(argv=None):
    """メイン関数"""
    args = parse_arguments(argv)
    unified_logger = None

    try:
        config = ConfigManager(Path(args.config) if args.config else None)
        if args.data_dir:
            config.update_config({'data_dir': args.data_dir})

        logging_settings = config.get_logging_settings()
        log_level = args.log_level or logging_settings['log_level']
        unified_logger = UnifiedLogger('event_settlement', log_level, logging_settings['log_file'])
        config.logger = unified_logger.logger

        unified_logger.log_configuration_info({
            'data_dir': config.get('data_dir'),
            'log_level': log_level,
            'config_path': config.config_path
        })
        config.validate_configuration()

        if args.save_config:
            config.save_config(Path(args.save_config))

        service = EventSettlementService.from_config(config)
        report = service.settle(args.prod_id)

        unified_logger.log_data_quality_issues(report.issues)
        unified_logger.log_settlement_summary(
            report.event.prod_id,
            report.event.prod_name,
            {
                'トレーナー報酬': report.overview.adjusted_trainer_fee,
                '現金売上': report.overview.cash_sales,
                '回収額': report.overview.receivable
            },
            report.currency
        )

        if args.json:
            print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
        else:
            print_report(report)

        return 0

    except EventNotFoundError as e:
        print(f"エラー: {e}")
        return 1
    except (ConfigurationError, StoreUnavailableError, DataValidationError) as e:
        if unified_logger:
            unified_logger.log_error_with_context(e, {
                'prod_id': args.prod_id,
                'config': args.config,
                'data_dir': args.data_dir
            })
        print(f"エラー: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n\n処理が中断されました。")
        return 1


if __name__ == '__main__':
    sys.exit(main())
