"""
기본 데이터 시드 스크립트
휠 상품과 랭크를 초기 데이터로 설정 (이미 존재하면 건너뜀)
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rewardapi.database.connection import SessionLocal
from rewardapi.models.rank import Rank
from rewardapi.models.wheel import WheelPrize

DEFAULT_WHEEL_PRIZES = [
    {"name": "100 Points", "points": 100, "probability": 10, "color": "#3B82F6", "order": 0},
    {"name": "250 Points", "points": 250, "probability": 5, "color": "#8B5CF6", "order": 1},
    {"name": "500 Points", "points": 500, "probability": 1, "color": "#EC4899", "order": 2},
    {"name": "1000 Points", "points": 1000, "probability": 0.3, "color": "#F59E0B", "order": 3},
    {"name": "2500 Points", "points": 2500, "probability": 0.2, "color": "#10B981", "order": 4},
    {"name": "5000 Points", "points": 5000, "probability": 0.1, "color": "#EF4444", "order": 5},
]

DEFAULT_RANKS = [
    {"name": "Rookie", "min_xp": 1000, "icon": "⚡", "color": "#60A5FA", "points_reward": 500},
    {"name": "Experienced", "min_xp": 2500, "icon": "🔥", "color": "#A78BFA", "points_reward": 1000},
    {"name": "Master", "min_xp": 5000, "icon": "💎", "color": "#F472B6", "points_reward": 2000},
    {"name": "Elite", "min_xp": 10000, "icon": "👑", "color": "#FBBF24", "points_reward": 4000},
    {"name": "Legend", "min_xp": 20000, "icon": "⭐", "color": "#34D399", "points_reward": 8000},
    {"name": "Dragon", "min_xp": 40000, "icon": "🌟", "color": "#EF4444", "points_reward": 16000},
]


def seed_wheel_prizes():
    """기본 휠 상품 시드"""
    db = SessionLocal()
    try:
        for prize_data in DEFAULT_WHEEL_PRIZES:
            existing = (
                db.query(WheelPrize).filter(WheelPrize.name == prize_data["name"]).first()
            )
            if existing:
                print(f"⏭️  이미 존재하는 휠 상품: {prize_data['name']}")
                continue
            db.add(WheelPrize(**prize_data))
            print(f"✅ 휠 상품 추가: {prize_data['name']}")

        db.commit()
    except Exception as e:
        db.rollback()
        print(f"❌ 휠 상품 시드 실패: {str(e)}")
        raise
    finally:
        db.close()


def seed_ranks():
    """기본 랭크 시드"""
    db = SessionLocal()
    try:
        for rank_data in DEFAULT_RANKS:
            existing = db.query(Rank).filter(Rank.min_xp == rank_data["min_xp"]).first()
            if existing:
                print(f"⏭️  이미 존재하는 랭크: {rank_data['name']}")
                continue
            db.add(Rank(**rank_data))
            print(f"✅ 랭크 추가: {rank_data['name']} ({rank_data['min_xp']} XP)")

        db.commit()
    except Exception as e:
        db.rollback()
        print(f"❌ 랭크 시드 실패: {str(e)}")
        raise
    finally:
        db.close()


def main():
    print("🌱 기본 데이터 시드 시작")
    seed_wheel_prizes()
    seed_ranks()
    print("🎉 시드 완료")


if __name__ == "__main__":
    main()
