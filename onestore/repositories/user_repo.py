# onestore/repositories/user_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from onestore.models.user import User, UserData


class UserRepository:
    """
    Data access layer for User and UserData.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    # ----- Users -----

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        """Return a User by primary key, or None if not found."""
        return session.get(User, user_id)

    def get_by_email(self, session: Session, email: str) -> User | None:
        """Return a User by unique email, or None if not found."""
        stmt = select(User).where(User.email == email)
        return session.exec(stmt).first()

    def list_with_data(
        self, session: Session, skip: int = 0, limit: int = 50
    ) -> list[tuple[User, UserData | None]]:
        """
        Paginated user listing, newest first, left-joined to UserData.
        """
        stmt = (
            select(User, UserData)
            .join(UserData, UserData.user_id == User.id, isouter=True)
            .order_by(User.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def count(self, session: Session) -> int:
        return session.exec(select(func.count()).select_from(User)).one()

    def add(self, session: Session, user: User) -> User:
        """Stage a User without committing."""
        session.add(user)
        session.flush()
        return user

    def delete(self, session: Session, user: User) -> None:
        """Stage deletion of a User without committing."""
        session.delete(user)
        session.flush()

    # ----- User data -----

    def get_data(self, session: Session, user_id: uuid.UUID) -> UserData | None:
        stmt = select(UserData).where(UserData.user_id == user_id)
        return session.exec(stmt).first()

    def add_data(self, session: Session, data: UserData) -> UserData:
        """Stage a UserData row without committing."""
        session.add(data)
        session.flush()
        return data

    def delete_data(self, session: Session, user_id: uuid.UUID) -> None:
        """Stage deletion of a user's UserData row, if any."""
        data = self.get_data(session, user_id)
        if data is not None:
            session.delete(data)
            session.flush()
