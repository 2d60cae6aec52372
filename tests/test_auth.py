from routes.auth import hash_password, verify_password


def no_users(db):
    return db.on("COUNT(*) AS count FROM users", [{"count": 0}])


def one_user(db):
    return db.on("COUNT(*) AS count FROM users", [{"count": 1}])


def test_password_hashing():
    hashed = hash_password("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)


def test_protected_page_redirects_to_setup_before_first_account(client, fake_db):
    no_users(fake_db)
    resp = client.get("/projects")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/setup"


def test_protected_page_redirects_to_login(client, fake_db):
    one_user(fake_db)
    resp = client.get("/clients")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login"


def test_setup_page_closed_once_account_exists(client, fake_db):
    one_user(fake_db)
    resp = client.get("/setup")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login"


def test_setup_rejects_mismatched_passwords(client, fake_db):
    no_users(fake_db)
    resp = client.post("/setup", data={
        "username": "admin", "email": "a@b.c", "full_name": "Admin",
        "password": "secret1", "confirm_password": "secret2",
    })
    assert resp.status_code == 400
    assert "Passwords do not match." in resp.text
    assert not fake_db.queries("INSERT INTO users")


def test_setup_rejects_short_password(client, fake_db):
    no_users(fake_db)
    resp = client.post("/setup", data={
        "username": "admin", "email": "a@b.c", "full_name": "Admin",
        "password": "abc", "confirm_password": "abc",
    })
    assert resp.status_code == 400
    assert "at least 6 characters" in resp.text


def test_setup_creates_admin_with_hashed_password(client, fake_db):
    no_users(fake_db)
    resp = client.post("/setup", data={
        "username": " admin ", "email": "a@b.c", "full_name": "Admin",
        "password": "secret1", "confirm_password": "secret1",
    })
    assert resp.status_code == 303
    assert resp.headers["location"] == "/login?registered=true"

    [(sql, params)] = fake_db.queries("INSERT INTO users")
    assert params[0] == "admin"
    assert params[2] != "secret1"
    assert verify_password("secret1", params[2])


def test_login_page_sends_to_setup_without_accounts(client, fake_db):
    no_users(fake_db)
    resp = client.get("/login")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/setup"


def test_login_with_wrong_password(client, fake_db):
    fake_db.on("FROM users WHERE username = %s OR email = %s",
               [{"id": 1, "username": "admin", "hashed_password": hash_password("secret1")}])
    resp = client.post("/login", data={"username": "admin", "password": "nope"})
    assert resp.status_code == 401
    assert "Invalid username or password." in resp.text


def test_login_requires_both_fields(client):
    resp = client.post("/login", data={"username": "", "password": ""})
    assert resp.status_code == 400


def test_login_sets_session_and_logout_clears_it(client, fake_db):
    fake_db.on("FROM users WHERE username = %s OR email = %s",
               [{"id": 1, "username": "admin", "hashed_password": hash_password("secret1")}])
    fake_db.on("FROM users WHERE id = %s",
               [{"id": 1, "username": "admin", "email": "a@b.c", "full_name": "Admin"}])
    one_user(fake_db)

    resp = client.post("/login", data={"username": "a@b.c", "password": "secret1"})
    assert resp.status_code == 303
    assert resp.headers["location"] == "/"

    # the session cookie now identifies the user
    resp = client.get("/login")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/"

    resp = client.get("/logout")
    assert resp.status_code == 303
    assert resp.headers["location"] == "/login"

    resp = client.get("/login")
    assert resp.status_code == 200
