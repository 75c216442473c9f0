from eduportal.db.session import SessionLocal


# one session per request; anything left uncommitted by a failing handler is rolled back
def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
