from datetime import timedelta

import pytest
from conftest import auth_headers, make_token

pytestmark = pytest.mark.anyio


async def test_signup_with_tenant(client):
    response = await client.post(
        "/api/auth/users",
        json={"externalId": "ext-ada", "email": "Ada@Acme.io", "name": "Ada", "tenantName": "  Acme  "},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    assert body["user"]["email"] == "ada@acme.io"
    assert "externalId" not in body["user"]
    assert body["tenant"]["name"] == "Acme"


async def test_signup_without_tenant_omits_it(client):
    response = await client.post(
        "/api/auth/users", json={"externalId": "ext-bob", "email": "bob@acme.io", "name": "Bob"}
    )
    assert response.status_code == 201
    assert "tenant" not in response.json()


async def test_signup_is_idempotent_on_external_id(client):
    body = {"externalId": "ext-cy", "email": "cy@acme.io", "name": "Cy"}
    first = await client.post("/api/auth/users", json=body)
    second = await client.post("/api/auth/users", json=body)

    assert first.status_code == second.status_code == 201
    assert first.json()["user"]["id"] == second.json()["user"]["id"]


async def test_repeated_signup_keeps_one_tenant(client):
    body = {"externalId": "ext-dup", "email": "dup@acme.io", "tenantName": "Acme"}
    first = await client.post("/api/auth/users", json=body)
    second = await client.post("/api/auth/users", json=body)

    assert first.status_code == second.status_code == 201
    assert second.json()["tenant"]["id"] == first.json()["tenant"]["id"]

    me = await client.get("/api/auth/me", headers=auth_headers("ext-dup", "dup@acme.io"))
    assert me.status_code == 200
    assert [t["name"] for t in me.json()["tenants"]] == ["Acme"]


async def test_signup_with_taken_email_conflicts(client):
    await client.post("/api/auth/users", json={"externalId": "ext-1", "email": "dup@acme.io"})
    response = await client.post("/api/auth/users", json={"externalId": "ext-2", "email": "dup@acme.io"})

    assert response.status_code == 409
    body = response.json()
    assert body["message"] == "Failed to create user"
    assert "already registered" in body["error"]


async def test_signup_rejects_bad_email(client):
    response = await client.post("/api/auth/users", json={"externalId": "ext-x", "email": "nope"})
    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


async def test_me(client, signup):
    ada = await signup("ada", tenant_name="Acme")

    response = await client.get("/api/auth/me", headers=ada.headers)

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["id"] == ada.user["id"]
    assert [(t["name"], t["isSuperUser"]) for t in body["tenants"]] == [("Acme", True)]
    assert body["identityUser"] == {"id": "ext-ada", "email": "ada@acme.io", "emailConfirmed": False}


async def test_me_without_local_user(client):
    response = await client.get("/api/auth/me", headers=auth_headers("ext-ghost", "ghost@acme.io"))

    assert response.status_code == 404
    assert response.json() == {"message": "User not found in database. Please complete signup process."}


async def test_missing_authorization_header(client):
    response = await client.get("/api/projects")

    assert response.status_code == 403
    assert response.json() == {
        "message": "No or invalid Authorization Header format. Expected Bearer token."
    }


async def test_non_bearer_scheme(client):
    response = await client.get("/api/projects", headers={"Authorization": "Basic dXNlcjpwdw=="})
    assert response.status_code == 403


async def test_expired_token(client, signup):
    await signup("ada")
    token = make_token("ext-ada", "ada@acme.io", expires_in=timedelta(seconds=-30))

    response = await client.get("/api/projects", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403
    assert response.json() == {"message": "Invalid Token: token has expired"}


async def test_token_signed_with_wrong_secret(client, signup):
    await signup("ada")
    token = make_token("ext-ada", "ada@acme.io", secret="not-the-secret")

    response = await client.get("/api/projects", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403
    assert response.json()["message"].startswith("Invalid Token")


async def test_token_without_subject(client):
    token = make_token(None, "anon@acme.io")
    response = await client.get("/api/auth", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403
    assert response.json() == {"message": "Invalid Token: User not found for token."}


async def test_auth_info_returns_claims(client):
    response = await client.get("/api/auth", headers=auth_headers("ext-ada", "ada@acme.io"))

    assert response.status_code == 200
    assert response.json()["sub"] == "ext-ada"
    assert response.json()["aud"] == "authenticated"


async def test_logout(client):
    response = await client.delete("/api/auth/logout", headers=auth_headers("ext-ada"))

    assert response.status_code == 200
    assert response.json() == {"message": "Logout successful. Please remove token from client storage."}


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
