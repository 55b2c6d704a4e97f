"""
イベント分類モジュール

イベント名・国名・トレーナー名からの分類ルールをまとめます。
キーワード判定は大文字小文字を区別しない部分一致です。
"""

from typing import Iterable, List, Optional, Tuple

from .data_models import EventClassification, EventInfo


# (キーワード, 値) の順に評価し、最初に一致したものを採用する
PROGRAM_RULES: List[Tuple[str, str]] = [
    ('choreology', 'Choreology'),
    ('kid', 'Kid'),
    ('rootz', 'Rootz'),
]
DEFAULT_PROGRAM = 'Salsation'

CATEGORY_RULES: List[Tuple[str, str]] = [
    ('workshop', 'Workshops'),
    ('seminar', 'Seminar'),
    ('method training', 'Method Training'),
    ('on demand', 'On Demand'),
]
DEFAULT_CATEGORY = 'Instructor training'

ONLINE_KEYWORDS = ('online', 'en linea', 'en línea')
# オンライン判定の後、この順に評価する
VENUE_MARKERS = ('venue,', 'presencial')
ON_DEMAND_PREFIX = 'on demand!'
DEFAULT_VENUE = 'Venue'

DEFAULT_JAPAN_KEYWORDS = ('japan', 'jp')
DEFAULT_LEAD_TRAINER_KEYWORD = 'alejandro'


def _first_match(text: str, rules: List[Tuple[str, str]], default: str) -> str:
    lowered = (text or '').lower()
    for keyword, value in rules:
        if keyword in lowered:
            return value
    return default


def classify_program(event_name: str) -> str:
    """イベント名からプログラムを判定"""
    return _first_match(event_name, PROGRAM_RULES, DEFAULT_PROGRAM)


def classify_category(event_name: str) -> str:
    """イベント名からカテゴリを判定"""
    return _first_match(event_name, CATEGORY_RULES, DEFAULT_CATEGORY)


def classify_venue(event_name: str) -> str:
    """イベント名から会場区分（Online / OnlineGlobal / On Demand / Venue）を判定"""
    lowered = (event_name or '').lower()
    is_online = any(keyword in lowered for keyword in ONLINE_KEYWORDS)

    if is_online and 'global' in lowered:
        return 'OnlineGlobal'
    if is_online:
        return 'Online'
    if any(marker in lowered for marker in VENUE_MARKERS):
        return DEFAULT_VENUE
    if lowered.startswith(ON_DEMAND_PREFIX) or 'on demand' in lowered:
        return 'On Demand'
    return DEFAULT_VENUE


def classify_event(event: EventInfo) -> EventClassification:
    """イベントのプログラム・カテゴリ・会場区分をまとめて判定

    会場区分は常にイベント名から判定する。
    EventInfo.venue は主催者（ベンダー）名なので報酬率キーには使わない。
    """
    return EventClassification(
        program=classify_program(event.prod_name),
        category=classify_category(event.prod_name),
        venue=classify_venue(event.prod_name)
    )


def is_japan_market(country: Optional[str], keywords: Iterable[str] = DEFAULT_JAPAN_KEYWORDS) -> bool:
    """国名が日本市場に該当するか"""
    lowered = (country or '').lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def is_lead_trainer(trainer_name: Optional[str], keyword: str = DEFAULT_LEAD_TRAINER_KEYWORD) -> bool:
    """トレーナー名がリードトレーナーに該当するか"""
    return keyword.lower() in (trainer_name or '').lower()
