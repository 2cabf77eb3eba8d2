from rewardapi.database.connection import SessionLocal


def get_db():
    """요청 범위 세션

    커밋은 서비스가 rewardapi.database.transaction 으로 직접 수행합니다.
    여기서는 요청이 끝날 때 남은 읽기 트랜잭션을 정리하고 세션을 닫기만 합니다.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        if db.in_transaction():
            db.rollback()
        db.close()
