"""Request helpers shared by the route tests."""

from __future__ import annotations

from typing import Any

from fastapi.testclient import TestClient

PASSWORD = "Secret123"  # pragma: allowlist secret


def register(client: TestClient, subdomain: str = "acme", name: str = "Acme") -> dict[str, Any]:
    """Register a tenant and return the response data."""
    response = client.post(
        "/api/auth/register-tenant",
        json={
            "tenantName": name,
            "subdomain": subdomain,
            "adminEmail": f"admin@{subdomain}.com",
            "adminPassword": PASSWORD,
            "adminFullName": f"{name} Admin",
        },
    )
    assert response.status_code == 201, response.text
    data: dict[str, Any] = response.json()["data"]
    return data


def login(
    client: TestClient,
    email: str,
    password: str = PASSWORD,
    subdomain: str | None = None,
) -> dict[str, str]:
    """Log in and return bearer headers."""
    body: dict[str, Any] = {"email": email, "password": password}
    if subdomain:
        body["tenantSubdomain"] = subdomain
    response = client.post("/api/auth/login", json=body)
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}


def admin_headers(client: TestClient, subdomain: str = "acme") -> dict[str, str]:
    """Bearer headers of a registered tenant's admin."""
    return login(client, f"admin@{subdomain}.com", subdomain=subdomain)


def add_user(
    client: TestClient,
    headers: dict[str, str],
    tenant_id: str,
    email: str,
    role: str = "user",
) -> dict[str, Any]:
    """Add a user as a tenant admin and return it."""
    response = client.post(
        f"/api/tenants/{tenant_id}/users",
        headers=headers,
        json={"email": email, "password": PASSWORD, "fullName": email.split("@")[0], "role": role},
    )
    assert response.status_code == 201, response.text
    data: dict[str, Any] = response.json()["data"]
    return data
