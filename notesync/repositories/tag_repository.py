"""
Repository for Tag database operations
"""

from sqlalchemy.exc import SQLAlchemyError

from notesync.db import db
from notesync.models.tag import Tag


class TagRepository:
    """Repository for Tag database operations"""

    @staticmethod
    def get_all_by_user(user_id):
        """Get all Tag records for a user"""
        return Tag.query.filter_by(user_id=user_id).order_by(Tag.created_at.asc(), Tag.id.asc()).all()

    @staticmethod
    def get_by_id(id):
        """Get Tag by ID"""
        return db.session.get(Tag, id)

    @staticmethod
    def get_by_user_and_id(user_id, id):
        """Get Tag for a specific user and ID"""
        return Tag.query.filter_by(user_id=user_id, id=id).first()

    @staticmethod
    def create(**kwargs):
        """Create new Tag record"""
        try:
            item = Tag(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def update(id, **kwargs):
        """Update Tag record"""
        item = db.session.get(Tag, id)
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

    @staticmethod
    def delete(id):
        """Delete Tag record"""
        item = db.session.get(Tag, id)
        if not item:
            return False

        try:
            db.session.delete(item)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
        return True
