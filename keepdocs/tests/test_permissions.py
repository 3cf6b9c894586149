import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.core.exceptions import (
    ForbiddenException,
    MissingRoleException,
    UnauthenticatedException,
    UnknownActionException,
)
from keepdocs.models.role import Permission, Role
from keepdocs.models.user import User
from keepdocs.services.permissions import (
    ACTION_VERBS,
    authorize,
    get_permission_names,
    has_all_permissions,
    has_any_permission,
    has_permission,
    required_permission,
)

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def editor(db_session: AsyncSession, make_user) -> User:
    role = Role(name="editor")
    role.permissions = [Permission(name="roles.view"), Permission(name="roles.edit")]
    db_session.add(role)
    await db_session.commit()
    return await make_user("editor@example.com", role)


async def test_action_verb_table():
    assert ACTION_VERBS == {
        "index": "view",
        "show": "view",
        "store": "create",
        "update": "edit",
        "destroy": "delete",
    }
    assert required_permission("roles", "index") == "roles.view"
    assert required_permission("roles", "show") == "roles.view"
    assert required_permission("documents", "store") == "documents.create"
    assert required_permission("documents", "destroy") == "documents.delete"


async def test_unknown_action_is_a_gateway_error():
    with pytest.raises(UnknownActionException) as exc:
        required_permission("roles", "publish")
    assert exc.value.status_code == 502


async def test_anonymous_request_is_unauthenticated():
    with pytest.raises(UnauthenticatedException):
        await authorize(None, "roles", "index")


async def test_authorize_loads_role_lazily(editor: User, db_session: AsyncSession):
    # Recarrega o usuário sem o papel, apenas com role_id
    db_session.expunge(editor)
    user = await db_session.get(User, editor.id)
    assert "role" not in user.__dict__

    assert await authorize(user, "roles", "update") == "roles.edit"


async def test_forbidden_carries_the_missing_permission(editor: User):
    with pytest.raises(ForbiddenException) as exc:
        await authorize(editor, "roles", "destroy")
    assert exc.value.permission == "roles.delete"


async def test_user_without_role(make_user):
    user = await make_user("norole@example.com")
    with pytest.raises(MissingRoleException) as exc:
        await authorize(user, "roles", "index")
    assert exc.value.code == "E_USER_NO_ROLE"


async def test_unknown_action_checked_before_role(make_user):
    user = await make_user("norole@example.com")
    with pytest.raises(UnknownActionException):
        await authorize(user, "roles", "publish")


async def test_permission_helpers(editor: User):
    assert await get_permission_names(editor) == {"roles.view", "roles.edit"}
    assert await has_permission(editor, "roles.view")
    assert not await has_permission(editor, "roles.delete")
    assert await has_all_permissions(editor, ["roles.view", "roles.edit"])
    assert not await has_all_permissions(editor, ["roles.view", "roles.delete"])
    assert await has_any_permission(editor, ["roles.delete", "roles.edit"])
    assert not await has_any_permission(editor, ["users.view"])
