"""
トレーナー配分のテスト
"""
import unittest
from pathlib import Path
import sys

# プロジェクトルートをパスに追加
sys.path.insert(0, str(Path(__file__).parent.parent))

from event_settlement.data_models import TrainerSplit
from event_settlement.exceptions import InvalidSplitRow, InvalidSplitTotal
from event_settlement.stores import InMemoryTrainerSplitStore
from event_settlement.trainer_splits import (
    TrainerSplitReconciler, compute_payable, suggest_split_fees, validate_split_percentages
)


def split(row_id, percent, name=None, trainer_fee=0.0, cash_received=0.0, prod_id=1):
    if name is None:
        name = f"Trainer {row_id}"
    return TrainerSplit(prod_id, row_id, name, percent, trainer_fee, cash_received)


class TestValidateSplitPercentages(unittest.TestCase):
    """配分率検証のテスト"""

    def test_over_hundred_rejected(self):
        result = validate_split_percentages([split(1, 60), split(2, 41)])

        self.assertFalse(result.valid)
        self.assertEqual(result.total, 101)

    def test_exactly_hundred_accepted(self):
        result = validate_split_percentages([split(1, 60), split(2, 40)])

        self.assertTrue(result.valid)
        self.assertEqual(result.total, 100)
        self.assertEqual(result.errors, [])

    def test_float_noise_does_not_reject(self):
        result = validate_split_percentages([split(1, 33.3), split(2, 33.3), split(3, 33.4)])

        self.assertTrue(result.valid)

    def test_row_errors(self):
        result = validate_split_percentages([split(1, 50, name=' '), split(2, -5), split(3, 10, cash_received=-1)])

        self.assertFalse(result.valid)
        self.assertEqual(len(result.errors), 3)
        self.assertTrue(result.errors[0].startswith('1行目'))

    def test_empty_is_valid(self):
        result = validate_split_percentages([])

        self.assertTrue(result.valid)
        self.assertEqual(result.total, 0)


class TestTrainerSplitReconciler(unittest.TestCase):
    """TrainerSplitReconcilerのテスト"""

    def setUp(self):
        self.store = InMemoryTrainerSplitStore()
        self.reconciler = TrainerSplitReconciler(self.store)

    def test_payable_computed(self):
        self.assertEqual(compute_payable(split(1, 50, trainer_fee=500.0, cash_received=120.0)).payable, 380.0)

    def test_save_and_get(self):
        self.reconciler.save_splits(1, [split(1, 60, trainer_fee=600.0), split(2, 40, trainer_fee=400.0, cash_received=100.0)])

        splits = self.reconciler.get_splits(1)

        self.assertEqual([s.payable for s in splits], [600.0, 300.0])

    def test_save_over_hundred_blocked(self):
        self.reconciler.save_splits(1, [split(1, 60)])

        with self.assertRaises(InvalidSplitTotal) as context:
            self.reconciler.save_splits(1, [split(2, 41)])

        self.assertEqual(context.exception.total, 101)
        self.assertEqual([s.row_id for s in self.reconciler.get_splits(1)], [1])

    def test_replacing_row_uses_merged_total(self):
        """既存行の置換は置換後の合計で判定する"""
        self.reconciler.save_splits(1, [split(1, 60), split(2, 40)])

        self.reconciler.save_splits(1, [split(2, 30)])

        self.assertEqual([s.percent for s in self.reconciler.get_splits(1)], [60, 30])

    def test_invalid_row_blocked(self):
        with self.assertRaises(InvalidSplitRow):
            self.reconciler.save_splits(1, [split(1, 50, name='')])

        self.assertEqual(self.reconciler.get_splits(1), [])

    def test_persisted_overflow_is_not_corrected(self):
        """保存済みの行が100%超でも自動修正しない"""
        self.store.upsert(split(1, 70))
        self.store.upsert(split(2, 50))

        splits = self.reconciler.get_splits(1)

        self.assertEqual([s.percent for s in splits], [70, 50])
        self.assertFalse(validate_split_percentages(splits).valid)

    def test_save_does_not_modify_input(self):
        """渡した配分行はそのままで、保存結果は複製になる"""
        original = split(1, 60, trainer_fee=600.0, cash_received=100.0, prod_id=0)

        saved = self.reconciler.save_splits(5, [original])

        self.assertEqual(original.prod_id, 0)
        self.assertEqual(original.payable, 0.0)
        self.assertEqual(saved[0].prod_id, 5)
        self.assertEqual(saved[0].payable, 500.0)
        self.assertEqual(self.reconciler.get_splits(5)[0].payable, 500.0)

    def test_update_amounts_recomputes_payable(self):
        self.reconciler.save_splits(1, [split(1, 60, trainer_fee=600.0)])

        updated = self.reconciler.update_amounts(1, 1, cash_received=250.0)

        self.assertEqual(updated.payable, 350.0)
        self.assertEqual(self.reconciler.get_splits(1)[0].cash_received, 250.0)

    def test_update_amounts_unknown_row(self):
        with self.assertRaises(KeyError):
            self.reconciler.update_amounts(1, 9, trainer_fee=1.0)

    def test_delete(self):
        self.reconciler.save_splits(1, [split(1, 60), split(2, 40)])

        self.reconciler.delete_split(1, 1)

        self.assertEqual([s.row_id for s in self.reconciler.get_splits(1)], [2])

    def test_suggest_split_fees(self):
        """提案額は報酬額×配分率で、保存はしない"""
        splits = [split(1, 60, cash_received=100.0), split(2, 40)]

        suggestions = suggest_split_fees(splits, 1000.0)

        self.assertEqual([s.trainer_fee for s in suggestions], [600.0, 400.0])
        self.assertEqual(suggestions[0].payable, 500.0)
        self.assertEqual(splits[0].trainer_fee, 0.0)


if __name__ == '__main__':
    unittest.main()
