"""Staff directory and position management"""
import logging
from uuid import UUID
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from app.db.models import User, Position
from app.employees.repository import UserRepository, PositionRepository
from app.employees.exceptions import (
    EmployeeNotFoundException,
    DuplicateEmailException,
    PositionNotFoundException,
    DuplicatePositionException,
    PositionInUseException,
)

logger = logging.getLogger(__name__)


class EmployeeService:
    """Service layer for staff members"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def list_employees(
        self,
        search: Optional[str] = None,
        include_inactive: bool = False,
        employees_only: bool = False,
    ) -> List[User]:
        async with self.session_factory() as db:
            return await UserRepository(db).list(
                role="employee" if employees_only else None,
                search=search,
                include_inactive=include_inactive,
            )

    async def get_employee(self, employee_id: UUID) -> User:
        async with self.session_factory() as db:
            user = await UserRepository(db).get_by_id(employee_id)
        if not user:
            raise EmployeeNotFoundException(str(employee_id))
        return user

    async def create_employee(self, data: dict) -> User:
        """
        Add a staff member.

        Raises:
            DuplicateEmailException: Email already used
            PositionNotFoundException: Unknown position_id
        """
        async with self.session_factory() as db:
            users = UserRepository(db)
            if await users.get_by_email(data["email"]):
                raise DuplicateEmailException(data["email"])
            await self._check_position(db, data.get("position_id"))
            user = await users.add(User(**data))
            logger.info("Employee %s created", user.id)
            return user

    async def update_employee(self, employee_id: UUID, data: dict) -> User:
        """Apply a partial update to a staff member"""
        async with self.session_factory() as db:
            users = UserRepository(db)
            user = await users.get_by_id(employee_id)
            if not user:
                raise EmployeeNotFoundException(str(employee_id))

            email = data.get("email")
            if email and email.lower() != user.email.lower():
                existing = await users.get_by_email(email)
                if existing and existing.id != user.id:
                    raise DuplicateEmailException(email)
            if "position_id" in data:
                await self._check_position(db, data["position_id"])

            for field, value in data.items():
                setattr(user, field, value)
            return await users.save(user)

    async def deactivate_employee(self, employee_id: UUID) -> User:
        return await self.update_employee(employee_id, {"is_active": False})

    async def delete_employee(self, employee_id: UUID) -> None:
        """Hard delete; ratings keep pointing at the removed id"""
        async with self.session_factory() as db:
            users = UserRepository(db)
            user = await users.get_by_id(employee_id)
            if not user:
                raise EmployeeNotFoundException(str(employee_id))
            await users.remove(user)
            logger.info("Employee %s deleted", employee_id)

    async def _check_position(self, db: AsyncSession, position_id: Optional[UUID]) -> None:
        if position_id is None:
            return
        if not await PositionRepository(db).get_by_id(position_id):
            raise PositionNotFoundException(str(position_id))


class PositionService:
    """Service layer for job titles"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def list_positions(self) -> List[Position]:
        async with self.session_factory() as db:
            return await PositionRepository(db).list()

    async def get_position(self, position_id: UUID) -> Position:
        async with self.session_factory() as db:
            position = await PositionRepository(db).get_by_id(position_id)
        if not position:
            raise PositionNotFoundException(str(position_id))
        return position

    async def find_by_title(self, title: str) -> Optional[Position]:
        async with self.session_factory() as db:
            return await PositionRepository(db).get_by_title(title)

    async def create_position(self, title: str) -> Position:
        title = title.strip()
        async with self.session_factory() as db:
            positions = PositionRepository(db)
            if await positions.get_by_title(title):
                raise DuplicatePositionException(title)
            return await positions.add(Position(title=title))

    async def update_position(self, position_id: UUID, title: str) -> Position:
        title = title.strip()
        async with self.session_factory() as db:
            positions = PositionRepository(db)
            position = await positions.get_by_id(position_id)
            if not position:
                raise PositionNotFoundException(str(position_id))
            existing = await positions.get_by_title(title)
            if existing and existing.id != position.id:
                raise DuplicatePositionException(title)
            position.title = title
            return await positions.save(position)

    async def is_position_in_use(self, position_id: UUID) -> bool:
        async with self.session_factory() as db:
            return await UserRepository(db).count_by_position(position_id) > 0

    async def delete_position(self, position_id: UUID) -> None:
        """
        Delete a position.

        Raises:
            PositionNotFoundException: Unknown position
            PositionInUseException: Still assigned to an employee
        """
        async with self.session_factory() as db:
            positions = PositionRepository(db)
            position = await positions.get_by_id(position_id)
            if not position:
                raise PositionNotFoundException(str(position_id))
            if await UserRepository(db).count_by_position(position_id) > 0:
                raise PositionInUseException(position.title)
            await positions.remove(position)
