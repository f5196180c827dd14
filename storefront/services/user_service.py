from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.domain.schemas import UserCreate, UserRead
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    """Konta klientów - właściciele koszyków, zamówień i importów."""

    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        username = payload.username.strip()
        if self.repo.get_by_username(username):
            raise ValueError(f"Username {username} is already taken")

        created = self.repo.create_user(UserModel(username=username, email=payload.email.strip().lower()))
        logger.info(f"User {created.id} registered as {username}")
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise LookupError(f"User {user_id} not found")
        return UserRead.model_validate(user)

    def get_by_username(self, username: str) -> UserRead:
        user = self.repo.get_by_username(username)
        if not user:
            raise LookupError(f"User {username} not found")
        return UserRead.model_validate(user)
