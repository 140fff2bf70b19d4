"""
Repository for User database operations
"""

from sqlalchemy.exc import SQLAlchemyError

from notesync.db import db
from notesync.models.user import User


class UserRepository:
    """Repository for User database operations"""

    @staticmethod
    def get_by_id(id):
        """Get User by ID"""
        return db.session.get(User, id)

    @staticmethod
    def get_by_username(username):
        """Get User by username"""
        return User.query.filter_by(username=username).first()

    @staticmethod
    def create(**kwargs):
        """Create new User record"""
        try:
            item = User(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def update(id, **kwargs):
        """Update User record"""
        item = db.session.get(User, id)
        if not item:
            return None

        try:
            for key, value in kwargs.items():
                if hasattr(item, key):
                    setattr(item, key, value)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
        return item

