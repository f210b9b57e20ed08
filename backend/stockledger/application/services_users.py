import logging
from typing import Optional

from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.enums import UserRole
from ..domain.models import User
from .dtos import OperationResult
from .errors import ForbiddenError, NotFoundError
from .services_ledger import require_actor

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, uow: UnitOfWork, actor: Optional[User] = None):
        self.uow = uow
        self.actor = actor

    def update_user_role(self, user_id: int, role: UserRole) -> OperationResult:
        """Cambia el rol de un usuario. Solo un administrador puede hacerlo."""
        require_actor(self.actor)
        if self.actor.role != UserRole.ADMIN.value:
            raise ForbiddenError("El cambio de rol solo lo puede hacer un administrador")

        with self.uow.atomic():
            user = self.uow.users.get(user_id)
            if user is None:
                raise NotFoundError(f"Usuario {user_id} no encontrado")
            user.role = UserRole(role).value

        logger.info("Rol del usuario %s cambiado a %s por %s", user_id, UserRole(role).value, self.actor.id)
        return OperationResult(message="Rol actualizado")
