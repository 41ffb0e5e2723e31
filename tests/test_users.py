import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from curateurs.models import User
from curateurs.permissions import ADMIN_PERMISSIONS, CONTRIBUTOR_PERMISSIONS, UserRole, permissions_for_role
from curateurs.schemas import ActionResult, AdminUserCreate, AdminUserUpdate
from curateurs.services import users as svc


def _payload(**overrides) -> AdminUserCreate:
    data = {
        "name": "Jeanne Martin",
        "email": "Jeanne.Martin@lescurateurs.fr",
        "password": "motdepasse-solide",
        "role": UserRole.contributor,
    }
    data.update(overrides)
    return AdminUserCreate(**data)


async def _by_email(db, email: str) -> User:
    return (
        await db.execute(select(User).where(User.email == email).execution_options(populate_existing=True))
    ).scalars().one()


class TestRolePermissions:
    def test_contributor_set(self) -> None:
        assert permissions_for_role(UserRole.contributor) == [
            "read:articles",
            "create:articles",
            "update:articles",
            "validate:articles",
        ]

    def test_admin_set(self) -> None:
        perms = permissions_for_role("admin")
        assert len(perms) == 10
        assert "enable:maintenance" in perms
        assert "ship:articles" in perms

    def test_unknown_role_falls_back_to_contributor(self) -> None:
        assert permissions_for_role("editor-in-chief") == list(CONTRIBUTOR_PERMISSIONS)

    def test_fresh_list_each_call(self) -> None:
        perms = permissions_for_role(UserRole.admin)
        perms.append("extra")
        assert permissions_for_role(UserRole.admin) == list(ADMIN_PERMISSIONS)


@pytest.mark.asyncio
class TestUserAdministration:
    async def test_create_user(self, db_session) -> None:
        result = await svc.create_user(db_session, _payload())

        assert result.is_success
        assert result.status == 201
        assert result.message == "User created successfully"
        user = await _by_email(db_session, "jeanne.martin@lescurateurs.fr")
        assert user.role == UserRole.contributor
        assert user.permissions == list(CONTRIBUTOR_PERMISSIONS)
        assert user.is_superuser is False
        assert user.hashed_password != "motdepasse-solide"
        verified, _ = svc.password_helper.verify_and_update("motdepasse-solide", user.hashed_password)
        assert verified

    async def test_create_admin(self, db_session) -> None:
        await svc.create_user(db_session, _payload(role=UserRole.admin))
        user = await _by_email(db_session, "jeanne.martin@lescurateurs.fr")
        assert user.permissions == list(ADMIN_PERMISSIONS)
        assert user.is_superuser is True

    async def test_duplicate_email_fails_generically(self, db_session) -> None:
        await svc.create_user(db_session, _payload())

        result = await svc.create_user(db_session, _payload(name="Autre"))

        assert not result.is_success
        assert result.message == "Failed to create user"

    async def test_update_user(self, db_session) -> None:
        await svc.create_user(db_session, _payload())
        user = await _by_email(db_session, "jeanne.martin@lescurateurs.fr")

        result = await svc.update_user(
            db_session,
            AdminUserUpdate(
                id=user.id,
                name="Jeanne M.",
                email="jeanne@lescurateurs.fr",
                role=UserRole.admin,
                permissions=permissions_for_role(UserRole.admin),
            ),
        )

        assert result.is_success
        assert result.message == "User updated successfully"
        updated = await _by_email(db_session, "jeanne@lescurateurs.fr")
        assert updated.name == "Jeanne M."
        assert updated.role == UserRole.admin
        assert updated.permissions == list(ADMIN_PERMISSIONS)

    async def test_update_defaults_permissions_to_role(self, db_session) -> None:
        await svc.create_user(db_session, _payload())
        user = await _by_email(db_session, "jeanne.martin@lescurateurs.fr")

        result = await svc.update_user(
            db_session,
            AdminUserUpdate(id=user.id, name="Jeanne Martin", email=user.email, role=UserRole.admin),
        )

        assert result.is_success
        updated = await _by_email(db_session, user.email)
        assert updated.permissions == list(ADMIN_PERMISSIONS)
        assert updated.is_superuser is True

    async def test_update_without_id_fails(self, db_session) -> None:
        result = await svc.update_user(
            db_session,
            AdminUserUpdate(name="Jeanne Martin", email="jeanne@lescurateurs.fr", role=UserRole.admin),
        )

        assert not result.is_success
        assert result.message == "Failed to update user"

    async def test_delete_user(self, db_session) -> None:
        await svc.create_user(db_session, _payload())
        user = await _by_email(db_session, "jeanne.martin@lescurateurs.fr")

        result = await svc.delete_user(db_session, user.id)

        assert result.is_success
        assert result.message == "User deleted successfully"
        assert await svc.get_all_users(db_session) == []

    async def test_get_all_users(self, db_session) -> None:
        await svc.create_user(db_session, _payload())
        await svc.create_user(db_session, _payload(email="paul@lescurateurs.fr", name="Paul"))

        users = await svc.get_all_users(db_session)

        assert {u.email for u in users} == {"jeanne.martin@lescurateurs.fr", "paul@lescurateurs.fr"}

    async def test_get_all_users_failure(self, db_session, monkeypatch) -> None:
        async def broken_execute(*args, **kwargs):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(db_session, "execute", broken_execute)

        result = await svc.get_all_users(db_session)

        assert isinstance(result, ActionResult)
        assert result.status == 500
        assert result.message == "Failed to fetch users"
