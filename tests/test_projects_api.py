import pytest

pytestmark = pytest.mark.anyio


@pytest.fixture
async def owner(signup):
    return await signup("owner", tenant_name="Acme")


@pytest.fixture
async def project(client, owner):
    response = await client.post(
        "/api/projects",
        json={"name": "Support bot", "description": "Prompts for support", "tenantId": owner.tenant["id"]},
        headers=owner.headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["project"]


async def create_directory(client, headers, project_id, name, parent_id=None):
    body = {"name": name}
    if parent_id:
        body["parentId"] = parent_id
    response = await client.post(
        f"/api/projects/{project_id}/directories", json=body, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()["directory"]


async def details(client, headers, project_id):
    response = await client.get(f"/api/projects/{project_id}/details", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["project"]


async def test_ping(client):
    response = await client.get("/api/ping")
    assert response.status_code == 200
    assert response.json() == {"message": "Pong"}
    assert response.headers["X-Request-ID"]

    traced = await client.get("/api/ping", headers={"X-Request-ID": "trace-123"})
    assert traced.headers["X-Request-ID"] == "trace-123"


# ── Scenario A: creator sees the project, a stranger does not ────────────────

async def test_creator_and_stranger(client, owner, project, signup):
    assert project["permissions"] == ["VIEW", "EDIT", "DELETE", "MANAGE_USERS", "MANAGE_SETTINGS"]
    assert project["tenantId"] == owner.tenant["id"]
    assert project["users"] == [{"userId": owner.user["id"], "permissions": project["permissions"]}]

    mine = await client.get(f"/api/projects/{project['id']}", headers=owner.headers)
    assert mine.status_code == 200
    assert mine.json()["project"]["name"] == "Support bot"

    stranger = await signup("stranger")
    theirs = await client.get(f"/api/projects/{project['id']}", headers=stranger.headers)
    assert theirs.status_code == 404
    assert theirs.json() == {"message": "Project not found or access denied"}

    missing = await client.get("/api/projects/no-such-project", headers=stranger.headers)
    assert missing.status_code == 404
    assert missing.json() == theirs.json()


async def test_list_projects(client, owner, project, signup):
    response = await client.get("/api/projects", headers=owner.headers)
    assert response.status_code == 200
    assert [p["id"] for p in response.json()["projects"]] == [project["id"]]

    stranger = await signup("stranger")
    response = await client.get("/api/projects", headers=stranger.headers)
    assert response.json()["projects"] == []


# ── Scenarios B to E: the directory tree ─────────────────────────────────────

async def test_root_directory(client, owner, project):
    root = await create_directory(client, owner.headers, project["id"], "Root")

    assert root["isRoot"] is True
    assert root["type"] == "directory"
    assert root["children"] == []
    assert root["prompts"] == []


async def test_child_appears_under_root(client, owner, project):
    root = await create_directory(client, owner.headers, project["id"], "Root")
    child = await create_directory(client, owner.headers, project["id"], "Child", root["id"])
    assert child["isRoot"] is False

    tree = (await details(client, owner.headers, project["id"]))["directories"]

    assert [d["name"] for d in tree] == ["Root"]
    assert [c["id"] for c in tree[0]["children"]] == [child["id"]]


async def test_prompt_appears_under_root(client, owner, project):
    root = await create_directory(client, owner.headers, project["id"], "Root")
    response = await client.post(
        f"/api/projects/{project['id']}/prompts",
        json={"name": "Greeting", "directoryId": root["id"], "content": "Hello {{name}}"},
        headers=owner.headers,
    )
    assert response.status_code == 201
    assert response.json()["prompt"]["type"] == "prompt"

    tree = (await details(client, owner.headers, project["id"]))["directories"]

    assert [p["name"] for p in tree[0]["prompts"]] == ["Greeting"]


async def test_deep_chain_is_cut_at_four_levels(client, owner, project):
    parent_id = None
    for level in range(5):
        d = await create_directory(client, owner.headers, project["id"], f"level-{level}", parent_id)
        parent_id = d["id"]

    tree = (await details(client, owner.headers, project["id"]))["directories"]

    names = []
    nodes = tree
    while nodes:
        names.append(nodes[0]["name"])
        nodes = nodes[0]["children"]
    assert names == ["level-0", "level-1", "level-2", "level-3"]


async def test_details_hidden_from_stranger(client, project, signup):
    stranger = await signup("stranger")
    response = await client.get(f"/api/projects/{project['id']}/details", headers=stranger.headers)
    assert response.status_code == 404
    assert response.json() == {"message": "Project not found or no access"}


# ── Directories and prompts ───────────────────────────────────────────────────

async def test_directory_options(client, owner, project, signup):
    root = await create_directory(client, owner.headers, project["id"], "Root")
    await create_directory(client, owner.headers, project["id"], "Drafts", root["id"])

    response = await client.get(f"/api/projects/{project['id']}/directories", headers=owner.headers)
    assert response.status_code == 200
    options = response.json()["directories"]
    assert [(o["name"], o["isRoot"], o["parentId"]) for o in options] == [
        ("Root", True, None),
        ("Drafts", False, root["id"]),
    ]

    stranger = await signup("stranger")
    response = await client.get(f"/api/projects/{project['id']}/directories", headers=stranger.headers)
    assert response.status_code == 200
    assert response.json()["directories"] == []


async def test_directory_details(client, owner, project):
    root = await create_directory(client, owner.headers, project["id"], "Root")
    await create_directory(client, owner.headers, project["id"], "Child", root["id"])

    response = await client.get(
        f"/api/projects/{project['id']}/directories/{root['id']}", headers=owner.headers
    )
    assert response.status_code == 200
    assert [c["name"] for c in response.json()["directory"]["children"]] == ["Child"]

    missing = await client.get(
        f"/api/projects/{project['id']}/directories/nope", headers=owner.headers
    )
    assert missing.status_code == 404


async def test_cross_project_parent_is_rejected(client, owner, project):
    other = await client.post(
        "/api/projects",
        json={"name": "Other", "tenantId": owner.tenant["id"]},
        headers=owner.headers,
    )
    other_id = other.json()["project"]["id"]
    root = await create_directory(client, owner.headers, project["id"], "Root")

    response = await client.post(
        f"/api/projects/{other_id}/directories",
        json={"name": "Intruder", "parentId": root["id"]},
        headers=owner.headers,
    )

    assert response.status_code == 404
    assert response.json() == {
        "message": "Failed to create directory",
        "error": "Failed to create directory: "
        "Parent directory not found or does not belong to this project",
    }


async def test_prompt_read_and_update(client, owner, project):
    root = await create_directory(client, owner.headers, project["id"], "Root")
    created = await client.post(
        f"/api/projects/{project['id']}/prompts",
        json={"name": "Greeting", "directoryId": root["id"], "content": "Hi"},
        headers=owner.headers,
    )
    prompt_id = created.json()["prompt"]["id"]

    response = await client.get(
        f"/api/projects/{project['id']}/prompts/{prompt_id}", headers=owner.headers
    )
    assert response.status_code == 200
    prompt = response.json()["prompt"]
    assert prompt["directoryName"] == "Root"
    assert prompt["content"] == "Hi"

    response = await client.patch(
        f"/api/projects/{project['id']}/prompts/{prompt_id}",
        json={"content": "Hello there"},
        headers=owner.headers,
    )
    assert response.status_code == 200
    assert response.json()["prompt"]["content"] == "Hello there"
    assert response.json()["prompt"]["name"] == "Greeting"

    missing = await client.get(f"/api/projects/{project['id']}/prompts/nope", headers=owner.headers)
    assert missing.status_code == 404
    assert missing.json() == {"message": "Prompt not found or no access"}


# ── Collaborators and deletion ────────────────────────────────────────────────

async def test_share_then_revoke(client, owner, project, signup):
    member = await signup("member")
    url = f"/api/projects/{project['id']}/users"

    added = await client.post(
        url, json={"userId": member.user["id"], "permissions": ["VIEW"]}, headers=owner.headers
    )
    assert added.status_code == 201
    assert added.json()["grant"]["permissions"] == ["VIEW"]

    again = await client.post(
        url, json={"userId": member.user["id"], "permissions": ["VIEW", "EDIT"]}, headers=owner.headers
    )
    assert again.status_code == 201
    assert again.json()["grant"]["id"] == added.json()["grant"]["id"]

    seen = await client.get(f"/api/projects/{project['id']}", headers=member.headers)
    assert seen.json()["project"]["permissions"] == ["VIEW"]

    updated = await client.patch(
        f"{url}/{member.user['id']}", json={"permissions": ["VIEW", "EDIT"]}, headers=owner.headers
    )
    assert updated.json()["grant"]["permissions"] == ["VIEW", "EDIT"]

    removed = await client.delete(f"{url}/{member.user['id']}", headers=owner.headers)
    assert removed.status_code == 200

    gone = await client.get(f"/api/projects/{project['id']}", headers=member.headers)
    assert gone.status_code == 404


async def test_member_without_manage_users_cannot_share(client, owner, project, signup):
    member = await signup("member")
    newcomer = await signup("newcomer")
    url = f"/api/projects/{project['id']}/users"
    await client.post(
        url, json={"userId": member.user["id"], "permissions": ["VIEW", "EDIT"]}, headers=owner.headers
    )

    response = await client.post(url, json={"userId": newcomer.user["id"]}, headers=member.headers)

    assert response.status_code == 403
    assert response.json()["message"] == "Failed to add user to project"


async def test_delete_requires_permission_then_cascades(client, owner, project, signup):
    member = await signup("member")
    await client.post(
        f"/api/projects/{project['id']}/users",
        json={"userId": member.user["id"], "permissions": ["VIEW", "EDIT"]},
        headers=owner.headers,
    )
    await create_directory(client, owner.headers, project["id"], "Root")

    denied = await client.delete(f"/api/projects/{project['id']}", headers=member.headers)
    assert denied.status_code == 403
    assert denied.json() == {
        "message": "Failed to delete project",
        "error": "Failed to delete project: User does not have permission to delete this project",
    }

    deleted = await client.delete(f"/api/projects/{project['id']}", headers=owner.headers)
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Project deleted successfully"}

    after = await client.get(f"/api/projects/{project['id']}", headers=owner.headers)
    assert after.status_code == 404


async def test_create_project_validation(client, owner):
    response = await client.post("/api/projects", json={"name": "No tenant"}, headers=owner.headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


async def test_create_project_in_unknown_tenant(client, owner):
    response = await client.post(
        "/api/projects", json={"name": "Lost", "tenantId": "no-such-tenant"}, headers=owner.headers
    )
    assert response.status_code == 500
    assert response.json()["message"] == "Failed to create project"
