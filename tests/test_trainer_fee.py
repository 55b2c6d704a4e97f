"""
トレーナー報酬計算のテスト
"""
import unittest
from pathlib import Path
import sys

# プロジェクトルートをパスに追加
sys.path.insert(0, str(Path(__file__).parent.parent))

from event_settlement.data_models import TicketBucket
from event_settlement.trainer_fee import (
    LeadTrainerFeeStrategy, StandardFeeStrategy, default_trainer_fee, select_fee_strategy
)


def bucket(attendance, price_total, pct, payment_method='Paypal'):
    return TicketBucket(attendance, payment_method, 'Regular', price_total, 1, price_total, trainer_fee_pct=pct)


class TestStrategySelection(unittest.TestCase):

    def test_lead_trainer_selected_by_name(self):
        self.assertIsInstance(select_fee_strategy('Alejandro Angulo'), LeadTrainerFeeStrategy)
        self.assertIsInstance(select_fee_strategy('Maria'), StandardFeeStrategy)
        self.assertIsInstance(select_fee_strategy(None), StandardFeeStrategy)

    def test_custom_keyword(self):
        self.assertIsInstance(select_fee_strategy('Head Coach', lead_trainer_keyword='head'), LeadTrainerFeeStrategy)


class TestStandardFeeStrategy(unittest.TestCase):
    """標準戦略: 率はチケット単位で経費控除前に適用"""

    def setUp(self):
        self.buckets = [bucket('Attended', 100.0, 0.7), bucket('Unattended', 300.0, 0.5)]

    def test_margin_identity_without_expenses(self):
        """経費0なら報酬は控除前報酬と完全に一致"""
        result = StandardFeeStrategy().calculate(self.buckets, 0.0)

        self.assertEqual(result.adjusted_fee, result.original_fee)
        self.assertAlmostEqual(result.original_fee, 220.0)
        self.assertEqual(result.fee_percentage, 100.0)
        self.assertEqual(result.strategy, 'standard')

    def test_expenses_deducted_after_percentage(self):
        result = StandardFeeStrategy().calculate(self.buckets, 20.0)

        self.assertAlmostEqual(result.margin, 200.0)
        self.assertAlmostEqual(result.adjusted_fee, 200.0)

    def test_per_trainer_fee_override(self):
        """報酬額の関数は差し替えられる"""
        strategy = StandardFeeStrategy(per_trainer_fee=lambda b: b.price_total * 0.1)

        result = strategy.calculate(self.buckets, 0.0)

        self.assertAlmostEqual(result.original_fee, 40.0)

    def test_default_fee_function(self):
        self.assertAlmostEqual(default_trainer_fee(bucket('Attended', 100.0, 0.7)), 70.0)


class TestLeadTrainerFeeStrategy(unittest.TestCase):
    """リードトレーナー戦略: 率は経費控除後のマージンに適用"""

    def test_weighted_percentage(self):
        """出席チケットの売上で重み付けした平均率"""
        # (100×0.7 + 300×0.5) / 400 × 100
        buckets = [bucket('Attended', 100.0, 0.7), bucket('Attended', 300.0, 0.5)]
        self.assertAlmostEqual(LeadTrainerFeeStrategy().fee_percentage(buckets), 55.0)

        # (100×0.7 + 300×0.4) / 400 × 100
        buckets = [bucket('Attended', 100.0, 0.7), bucket('Attended', 300.0, 0.4)]
        self.assertAlmostEqual(LeadTrainerFeeStrategy().fee_percentage(buckets), 47.5)

    def test_unattended_excluded_from_weighting(self):
        buckets = [bucket('Attended', 100.0, 0.7), bucket('Unattended', 300.0, 0.1)]

        self.assertAlmostEqual(LeadTrainerFeeStrategy().fee_percentage(buckets), 70.0)

    def test_no_attended_tickets_defaults_to_full(self):
        buckets = [bucket('Unattended', 300.0, 0.5)]

        self.assertEqual(LeadTrainerFeeStrategy().fee_percentage(buckets), 100.0)
        self.assertEqual(LeadTrainerFeeStrategy().fee_percentage([]), 100.0)

    def test_zero_attended_revenue_defaults_to_full(self):
        buckets = [bucket('Attended', 0.0, 0.7)]

        self.assertEqual(LeadTrainerFeeStrategy().fee_percentage(buckets), 100.0)

    def test_percentage_applied_to_margin(self):
        """売上全体から経費を引いた後に率を掛ける"""
        buckets = [bucket('Attended', 100.0, 0.7), bucket('Attended', 300.0, 0.4), bucket('Unattended', 100.0, 0.0)]

        result = LeadTrainerFeeStrategy().calculate(buckets, 100.0)

        self.assertAlmostEqual(result.original_fee, 500.0)
        self.assertAlmostEqual(result.margin, 400.0)
        self.assertAlmostEqual(result.fee_percentage, 47.5)
        self.assertAlmostEqual(result.adjusted_fee, 190.0)
        self.assertEqual(result.strategy, 'lead_trainer')


if __name__ == '__main__':
    unittest.main()
