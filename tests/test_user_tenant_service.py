import pytest

from promptdepot.core.exceptions import ConflictError
from promptdepot.schemas.user import UserCreate
from promptdepot.services.tenant_service import TenantService
from promptdepot.services.user_service import UserService

pytestmark = pytest.mark.anyio


async def test_create_user_then_look_up(session):
    user, created = await UserService.create_user(
        session, UserCreate(external_id="ext-ada", email="Ada@acme.io", name="Ada")
    )

    assert created is True

    assert user.email == "ada@acme.io"
    assert (await UserService.get_user_by_external_id(session, "ext-ada")).id == user.id
    assert (await UserService.get_user_by_email(session, "ADA@acme.io")).id == user.id
    assert await UserService.get_user_by_external_id(session, "ext-nobody") is None


async def test_create_user_twice_returns_same_row(session):
    data = UserCreate(external_id="ext-ada", email="ada@acme.io")
    first, first_created = await UserService.create_user(session, data)
    second, second_created = await UserService.create_user(session, data)

    assert first.id == second.id
    assert (first_created, second_created) == (True, False)


async def test_email_taken_by_another_identity(session):
    await UserService.create_user(session, UserCreate(external_id="ext-1", email="dup@acme.io"))
    with pytest.raises(ConflictError) as exc_info:
        await UserService.create_user(session, UserCreate(external_id="ext-2", email="dup@acme.io"))
    assert exc_info.value.message.startswith("Failed to create user:")


async def test_tenant_membership(session, make_user):
    user = await make_user("ada")
    tenant = await TenantService.create_tenant(session, "Acme")

    first = await TenantService.add_user_to_tenant(session, user.id, tenant.id, is_super_user=True)
    again = await TenantService.add_user_to_tenant(session, user.id, tenant.id)

    assert again.id == first.id
    assert again.is_super_user is True
    assert (await TenantService.get_tenant_by_id(session, tenant.id)).name == "Acme"

    memberships = await TenantService.get_user_tenants(session, user.id)
    assert [(m.tenant.name, m.is_super_user) for m in memberships] == [("Acme", True)]


async def test_owned_tenant_is_the_super_user_membership(session, make_user):
    user = await make_user("ada")
    member_of = await TenantService.create_tenant(session, "Guests")
    owned = await TenantService.create_tenant(session, "Acme")
    await TenantService.add_user_to_tenant(session, user.id, member_of.id)
    await TenantService.add_user_to_tenant(session, user.id, owned.id, is_super_user=True)

    assert (await TenantService.get_owned_tenant(session, user.id)).id == owned.id


async def test_no_owned_tenant(session, make_user):
    user = await make_user("bob")
    assert await TenantService.get_owned_tenant(session, user.id) is None
