from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from eduportal.core.config import IDENTITY_HEADER
from eduportal.core.deps import get_db
from eduportal.models.user import User


def get_current_user(
    x_user_id: int | None = Header(default=None, alias=IDENTITY_HEADER),
    db: Session = Depends(get_db),
) -> User:
    # the identity header is set by the upstream auth layer
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity",
        )

    user = db.query(User).filter(User.id == x_user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown caller",
        )
    return user
