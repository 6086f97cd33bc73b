from fastapi import status

SIGNUP = {
    "email": "marie@example.com",
    "password": "radium-1898",
    "name": "Marie Curie",
    "role": "learner",
}


def _signup(client, **overrides):
    return client.post("/auth/signup", json={**SIGNUP, **overrides})


def _login(client, email=SIGNUP["email"], password=SIGNUP["password"]):
    return client.post("/auth/login", json={"email": email, "password": password})


def _bearer(response) -> dict:
    return {"Authorization": f"Bearer {response.json()['data']['accessToken']}"}


def test_signup_returns_session_and_sets_cookie(client):
    response = _signup(client)

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Account created successfully"
    assert "timestamp" in body
    assert body["data"]["user"]["email"] == "marie@example.com"
    assert body["data"]["user"]["role"] == "learner"
    assert "password_hash" not in body["data"]["user"]
    assert body["data"]["accessToken"]
    assert body["data"]["expiresIn"] == 30 * 60

    # The refresh token only travels in the cookie
    assert "refreshToken" not in body["data"]
    cookie = response.headers["set-cookie"]
    assert cookie.startswith("refreshToken=")
    assert "HttpOnly" in cookie
    assert "Path=/auth" in cookie
    assert "samesite=lax" in cookie.lower()


def test_signup_duplicate_email_conflicts(client):
    _signup(client)
    response = _signup(client, name="Someone Else")

    assert response.status_code == status.HTTP_409_CONFLICT
    body = response.json()
    assert body["error"] == "Conflict"
    assert body["statusCode"] == 409


def test_signup_validation_error_envelope(client):
    response = _signup(client, email="not-an-email", role="admin")

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "Validation Error"
    assert "email" in body["message"]
    assert "role" in body["message"]


def test_login_success(client):
    _signup(client)
    client.cookies.clear()

    response = _login(client)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["user"]["name"] == "Marie Curie"
    assert client.cookies.get("refreshToken")


def test_login_failures_are_indistinguishable(client):
    _signup(client)

    wrong_password = _login(client, password="polonium-1898")
    unknown_email = _login(client, email="pierre@example.com")

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json()["message"] == unknown_email.json()["message"]
    assert wrong_password.json()["message"] == "Invalid email or password"


def test_me_requires_token(client):
    response = client.get("/auth/me")

    assert response.status_code == 401
    assert response.json()["message"] == "No token provided"


def test_me_returns_current_user(client):
    session = _signup(client)

    response = client.get("/auth/me", headers=_bearer(session))

    assert response.status_code == 200
    assert response.json()["data"]["user"]["id"] == session.json()["data"]["user"]["id"]


def test_me_rejects_garbage_token(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer nonsense"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_refresh_with_cookie_rotates(client):
    _signup(client)
    first_refresh = client.cookies.get("refreshToken")

    response = client.post("/auth/refresh")

    assert response.status_code == 200
    assert response.json()["data"]["accessToken"]
    second_refresh = client.cookies.get("refreshToken")
    assert second_refresh and second_refresh != first_refresh

    # The rotated-away token is dead
    client.cookies.clear()
    replay = client.post("/auth/refresh", json={"refreshToken": first_refresh})
    assert replay.status_code == 401
    assert replay.json()["message"] == "Refresh token expired or invalid"


def test_refresh_with_body_token(client):
    _signup(client)
    refresh_token = client.cookies.get("refreshToken")
    client.cookies.clear()

    response = client.post("/auth/refresh", json={"refreshToken": refresh_token})

    assert response.status_code == 200
    assert client.cookies.get("refreshToken")


def test_rejected_refresh_clears_cookie(client):
    _signup(client)
    stale = client.cookies.get("refreshToken")
    client.post("/auth/refresh")
    client.cookies.clear()

    response = client.post("/auth/refresh", json={"refreshToken": stale})

    assert response.status_code == 401
    assert response.json()["message"] == "Refresh token expired or invalid"
    assert 'refreshToken=""' in response.headers["set-cookie"]
    assert "Max-Age=0" in response.headers["set-cookie"]


def test_refresh_without_token(client):
    response = client.post("/auth/refresh")

    assert response.status_code == 401
    assert response.json()["message"] == "Refresh token is required"


def test_new_access_token_carries_same_identity(client):
    session = _signup(client, role="trainer")

    refreshed = client.post("/auth/refresh")
    me = client.get("/auth/me", headers=_bearer(refreshed))

    assert me.json()["data"]["user"]["id"] == session.json()["data"]["user"]["id"]
    assert me.json()["data"]["user"]["role"] == "trainer"


def test_logout_revokes_and_clears_cookie(client):
    _signup(client)
    refresh_token = client.cookies.get("refreshToken")

    response = client.post("/auth/logout")

    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"
    assert 'refreshToken=""' in response.headers["set-cookie"]
    assert "Max-Age=0" in response.headers["set-cookie"]

    client.cookies.clear()
    replay = client.post("/auth/refresh", json={"refreshToken": refresh_token})
    assert replay.status_code == 401


def test_logout_is_idempotent(client):
    assert client.post("/auth/logout").status_code == 200
    assert client.post("/auth/logout").status_code == 200


def test_password_reset_request(client):
    _signup(client)

    known = client.post("/auth/password-reset/request", json={"email": SIGNUP["email"]})
    unknown = client.post(
        "/auth/password-reset/request", json={"email": "nobody@example.com"}
    )

    assert known.status_code == unknown.status_code == 200
    assert known.json()["data"] == unknown.json()["data"]
