"""
報酬率解決・イベント分類のテスト
"""
import unittest
from pathlib import Path
import sys

# プロジェクトルートをパスに追加
sys.path.insert(0, str(Path(__file__).parent.parent))

from common.error_handling.error_handler import ErrorHandler
from event_settlement.classification import (
    classify_category, classify_event, classify_program, classify_venue,
    is_japan_market, is_lead_trainer
)
from event_settlement.data_models import EventClassification, EventInfo, FeeParam, TicketBucket
from event_settlement.exceptions import MissingFeeParam
from event_settlement.fee_params import FeePercentResolver, build_fee_key
from event_settlement.stores import InMemoryFeeParamStore


class TestFeePercentResolver(unittest.TestCase):
    """FeePercentResolverのテスト"""

    def setUp(self):
        self.params = [
            FeeParam('Salsation', 'Workshops', 'Venue', 'Attended', 70),
            FeeParam('Salsation', 'Workshops', 'Online', 'Attended', 60),
        ]
        self.error_handler = ErrorHandler()
        self.resolver = FeePercentResolver.from_params(self.params, self.error_handler)

    def test_key_format(self):
        self.assertEqual(build_fee_key('Kid', 'Seminar', 'Online', 'Unattended'), 'Kid-Seminar-Online-Unattended')
        self.assertEqual(self.params[0].key, 'Salsation-Workshops-Venue-Attended')

    def test_resolve_hit(self):
        self.assertEqual(self.resolver.resolve('Salsation', 'Workshops', 'Venue', 'Attended'), 70.0)

    def test_resolve_is_repeatable(self):
        """同じテーブル・同じキーなら何度呼んでも同じ結果"""
        results = {self.resolver.resolve('Salsation', 'Workshops', 'Online', 'Attended') for _ in range(5)}
        self.assertEqual(results, {60.0})

    def test_match_is_case_sensitive(self):
        """大文字小文字は区別し、正規化しない"""
        self.assertEqual(self.resolver.resolve('Salsation', 'Workshops', 'online', 'Attended'), 0.0)
        self.assertIn('Salsation-Workshops-online-Attended', self.resolver.missing_keys)

    def test_missing_key_returns_zero_without_raising(self):
        """未登録キーは0%で、データ品質の問題として1回だけ記録される"""
        for _ in range(3):
            self.assertEqual(self.resolver.resolve('Kid', 'Seminar', 'Venue', 'Attended'), 0.0)

        self.assertEqual(self.resolver.missing_keys, ['Kid-Seminar-Venue-Attended'])
        self.assertEqual(len(self.error_handler.collected_errors), 1)
        self.assertIsInstance(self.error_handler.collected_errors[0], MissingFeeParam)
        self.assertEqual(self.error_handler.collected_errors[0].key, 'Kid-Seminar-Venue-Attended')

    def test_apply_sets_fraction(self):
        """バケットには0..1の率を設定する"""
        buckets = [
            TicketBucket('Attended', 'Paypal', 'Regular', 65.0, 2, 130.0),
            TicketBucket('Unattended', 'Paypal', 'Regular', 65.0, 1, 65.0),
        ]
        classification = EventClassification('Salsation', 'Workshops', 'Venue')

        self.resolver.apply(buckets, classification)

        self.assertAlmostEqual(buckets[0].trainer_fee_pct, 0.7)
        self.assertEqual(buckets[1].trainer_fee_pct, 0.0)

    def test_snapshot_isolated_from_store_updates(self):
        """生成後のストア更新は解決結果に影響しない"""
        store = InMemoryFeeParamStore(self.params)
        resolver = FeePercentResolver.from_store(store)

        store.put(FeeParam('Salsation', 'Workshops', 'Venue', 'Attended', 10))

        self.assertEqual(resolver.resolve('Salsation', 'Workshops', 'Venue', 'Attended'), 70.0)
        self.assertEqual(store.get('Salsation', 'Workshops', 'Venue', 'Attended'), 10)


class TestClassification(unittest.TestCase):
    """イベント分類のテスト"""

    def test_program(self):
        self.assertEqual(classify_program('Choreology Instructor Training Madrid'), 'Choreology')
        self.assertEqual(classify_program('SALSATION KID Workshop'), 'Kid')
        self.assertEqual(classify_program('Rootz Seminar'), 'Rootz')
        self.assertEqual(classify_program('Salsation Instructor Training Tokyo'), 'Salsation')

    def test_category(self):
        self.assertEqual(classify_category('Salsation Workshop Berlin'), 'Workshops')
        self.assertEqual(classify_category('Salsation Seminar'), 'Seminar')
        self.assertEqual(classify_category('Salsation Method Training'), 'Method Training')
        self.assertEqual(classify_category('Salsation On Demand'), 'On Demand')
        self.assertEqual(classify_category('Salsation Instructor Training'), 'Instructor training')

    def test_venue(self):
        self.assertEqual(classify_venue('Salsation Online Global Workshop'), 'OnlineGlobal')
        self.assertEqual(classify_venue('Salsation Workshop en línea'), 'Online')
        self.assertEqual(classify_venue('Salsation Workshop Online'), 'Online')
        self.assertEqual(classify_venue('Salsation On Demand'), 'On Demand')
        self.assertEqual(classify_venue('ON DEMAND! Salsation Choreo'), 'On Demand')
        self.assertEqual(classify_venue('Salsation Workshop Paris'), 'Venue')

    def test_venue_markers(self):
        """「Venue,」「Presencial」は対面イベント"""
        self.assertEqual(classify_venue('SALSATION Workshop with X, Venue, Berlin'), 'Venue')
        self.assertEqual(classify_venue('Salsation Seminario Presencial On Demand'), 'Venue')

    def test_classify_event_ignores_vendor_name(self):
        """EventInfo.venueの主催者名は会場区分に使わない"""
        event = EventInfo(1, 'SALSATION Workshop with X, Venue, Berlin', venue='Dance Studio Berlin')
        self.assertEqual(classify_event(event), EventClassification('Salsation', 'Workshops', 'Venue'))

        event = EventInfo(2, 'Salsation Workshop Online', venue='Dance Studio Berlin')
        self.assertEqual(classify_event(event).venue, 'Online')

    def test_japan_market(self):
        self.assertTrue(is_japan_market('Japan'))
        self.assertTrue(is_japan_market('JP'))
        self.assertFalse(is_japan_market('Germany'))
        self.assertFalse(is_japan_market(None))

    def test_lead_trainer(self):
        self.assertTrue(is_lead_trainer('Alejandro Angulo'))
        self.assertTrue(is_lead_trainer('ALEJANDRO'))
        self.assertFalse(is_lead_trainer('Maria Lopez'))
        self.assertFalse(is_lead_trainer(None))


if __name__ == '__main__':
    unittest.main()
