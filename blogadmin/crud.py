from typing import Optional

from sqlalchemy.orm import Session

from . import models, schemas
from .auth import hash_password, verify_password


def get_user_by_username(db: Session, username: str):
    return db.query(models.User).filter(models.User.username == username).first()


def create_user(db: Session, user: schemas.UserCreate):
    db_user = models.User(username=user.username, password=hash_password(user.password), nickname=user.nickname)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def authenticate(db: Session, username: str, password: str) -> Optional[models.User]:
    """用户名密码匹配时返回用户，否则返回 None"""
    user = get_user_by_username(db, username)
    if not user or not verify_password(password, user.password):
        return None
    return user


def get_users(db: Session):
    return db.query(models.User).order_by(models.User.id).all()


def delete_user(db: Session, user_id: int) -> Optional[models.User]:
    """删除用户；不存在时返回 None"""
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        return None
    db.delete(user)
    db.commit()
    return user
