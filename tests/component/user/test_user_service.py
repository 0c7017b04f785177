"""
User Service Component Tests
"""
import pytest

from microservices.user_service.models import UserRole
from tests.fixtures import make_address, make_user

pytestmark = [pytest.mark.component, pytest.mark.asyncio]


class TestCreateUser:

    async def test_create(self, user_service, user_repo):
        result = await user_service.create_user({
            "id": "usr_1", "email": "shopper@example.com", "display_name": "Shopper",
        })

        assert result.success is True
        assert result.data.role == UserRole.USER
        user_repo.assert_called_with("create_user", user_id="usr_1")

    async def test_duplicate_id(self, user_service, user_repo):
        user_repo.set_user(make_user("usr_1"))

        result = await user_service.create_user({
            "id": "usr_1", "email": "other@example.com", "display_name": "Other",
        })

        assert result.error == "User already exists"

    async def test_duplicate_email(self, user_service, user_repo):
        user_repo.set_user(make_user("usr_1", email="taken@example.com"))

        result = await user_service.create_user({
            "id": "usr_2", "email": "Taken@example.com", "display_name": "Other",
        })

        assert result.error == "A user with this email already exists"


class TestUpdateUser:

    async def test_requires_fields(self, user_service):
        assert (await user_service.update_user("usr_1", {})).error == "No fields to update"

    async def test_missing_user(self, user_service):
        result = await user_service.update_user("usr_missing", {"display_name": "X"})

        assert result.is_not_found

    async def test_email_owned_by_someone_else(self, user_service, user_repo):
        user_repo.set_user(make_user("usr_1", email="one@example.com"))
        user_repo.set_user(make_user("usr_2", email="two@example.com"))

        result = await user_service.update_user("usr_1", {"email": "two@example.com"})

        assert result.error == "A user with this email already exists"

    async def test_keeping_own_email(self, user_service, user_repo):
        user_repo.set_user(make_user("usr_1", email="one@example.com"))

        result = await user_service.update_user("usr_1", {"email": "one@example.com", "display_name": "New"})

        assert result.data.display_name == "New"

    async def test_update_address(self, user_service, user_repo):
        user_repo.set_user(make_user("usr_1"))

        result = await user_service.update_user_address("usr_1", make_address(city="Oakland"))

        assert result.data.address.city == "Oakland"


class TestActivation:

    async def test_deactivate_and_reactivate(self, user_service, user_repo):
        user_repo.set_user(make_user("usr_1"))

        assert (await user_service.deactivate_user("usr_1")).data.is_active is False
        assert await user_repo.resolve_role("usr_1") is None
        assert (await user_service.reactivate_user("usr_1")).data.is_active is True

    async def test_active_users_page(self, user_service, user_repo):
        user_repo.set_user(make_user("usr_1"))
        user_repo.set_user(make_user("usr_2", is_active=False))

        page = (await user_service.get_active_users()).data

        assert page.total == 1
        assert [u.id for u in page.data] == ["usr_1"]

    async def test_delete(self, user_service, user_repo):
        user_repo.set_user(make_user("usr_1"))

        assert (await user_service.delete_user("usr_1")).data == {"id": "usr_1", "deleted": True}
        assert (await user_service.delete_user("usr_1")).error == "User not found"

    async def test_resolve_role(self, user_repo):
        user_repo.set_user(make_user("adm_1", role=UserRole.ADMIN))

        assert await user_repo.resolve_role("adm_1") == "admin"
