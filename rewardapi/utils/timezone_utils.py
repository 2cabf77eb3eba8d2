"""
타임존 유틸리티

일일 초기화(휠 스핀), 연속 스핀 판단 등 "하루"의 경계는 설정된 타임존
(EconomySettings.timezone, 기본 Europe/Istanbul) 기준으로 계산합니다.
DB 에는 항상 UTC 시간을 저장하며, timezone 정보가 없는 값은 UTC 로 간주합니다.
"""

from datetime import datetime, time, timedelta, timezone
from typing import Optional

import pytz


def utc_now() -> datetime:
    """현재 UTC 시간을 반환합니다."""
    return datetime.now(timezone.utc)


def get_zone(tz_name: str):
    return pytz.timezone(tz_name)


def to_local(dt: datetime, tz_name: str) -> datetime:
    """datetime 을 설정 타임존으로 변환합니다. naive datetime 은 UTC 로 간주합니다."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(get_zone(tz_name))


def to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def start_of_day(tz_name: str, now: Optional[datetime] = None) -> datetime:
    """설정 타임존 기준 오늘 00:00 (UTC 로 반환)"""
    now = now or utc_now()
    zone = get_zone(tz_name)
    local_date = to_local(now, tz_name).date()
    local_midnight = zone.localize(datetime.combine(local_date, time()))
    return local_midnight.astimezone(timezone.utc)


def start_of_yesterday(tz_name: str, now: Optional[datetime] = None) -> datetime:
    """설정 타임존 기준 어제 00:00 (UTC 로 반환)"""
    now = now or utc_now()
    zone = get_zone(tz_name)
    local_date = to_local(now, tz_name).date() - timedelta(days=1)
    return zone.localize(datetime.combine(local_date, time())).astimezone(timezone.utc)


def parse_reset_time(value: str) -> time:
    """"HH:MM" 형식의 초기화 시각을 파싱합니다."""
    try:
        hour_str, minute_str = value.strip().split(":")
        return time(hour=int(hour_str), minute=int(minute_str))
    except ValueError as e:
        raise ValueError(f"Invalid reset time '{value}', expected HH:MM") from e


def last_reset_boundary(
    tz_name: str, reset_time: str, now: Optional[datetime] = None
) -> datetime:
    """now 이전(포함)의 가장 최근 일일 초기화 시각 (UTC 로 반환)

    예: reset_time="00:00", now=현지 15:00 → 오늘 00:00
        reset_time="18:00", now=현지 15:00 → 어제 18:00
    """
    now = now or utc_now()
    zone = get_zone(tz_name)
    local_now = to_local(now, tz_name)
    boundary = zone.localize(
        datetime.combine(local_now.date(), parse_reset_time(reset_time))
    )
    if boundary > local_now:
        boundary = zone.localize(
            datetime.combine(local_now.date() - timedelta(days=1), parse_reset_time(reset_time))
        )
    return boundary.astimezone(timezone.utc)


def is_same_local_day(a: datetime, b: datetime, tz_name: str) -> bool:
    return to_local(a, tz_name).date() == to_local(b, tz_name).date()
