class TestRegistration:
    def test_create_user(self, client, factory) -> None:
        res = client.post("/users", json={"username": "Jules", "email": "jules@x.com", "password": "Test1234"})
        assert res.status_code == 201
        body = res.json()
        assert body["username"] == "Jules"
        assert body["is_admin"] is False
        assert "password" not in body
        assert factory.count("users") == 1

    def test_duplicate_username(self, client, factory) -> None:
        factory.user("Jules")
        res = client.post("/users", json={"username": "Jules", "email": "other@x.com", "password": "Test1234"})
        assert res.status_code == 400
        assert res.text == "User validation failed: username: Username is already taken"

    def test_short_password(self, client) -> None:
        res = client.post("/users", json={"username": "Jules", "email": "jules@x.com", "password": "123"})
        assert res.status_code == 400
        assert "Password is too short" in res.text

    def test_options(self, client) -> None:
        res = client.options("/users")
        assert res.status_code == 204
        assert res.headers["Allow"] == "GET, POST, PATCH, DELETE, OPTIONS"


class TestLogin:
    def test_login(self, client) -> None:
        client.post("/users", json={"username": "Jules", "email": "jules@x.com", "password": "Test1234"})
        res = client.post("/auth/login", json={"email": "jules@x.com", "password": "Test1234"})
        assert res.status_code == 200
        token = res.json()["token"]
        listing = client.get("/users", headers={"Authorization": f"Bearer {token}"})
        assert listing.status_code == 200

    def test_wrong_password(self, client, factory) -> None:
        factory.user("Jules", "jules@x.com")
        res = client.post("/auth/login", json={"email": "jules@x.com", "password": "Wrong1234"})
        assert res.status_code == 401

    def test_unknown_email(self, client) -> None:
        res = client.post("/auth/login", json={"email": "nobody@x.com", "password": "Test1234"})
        assert res.status_code == 401

    def test_admin_token_carries_role(self, client, factory) -> None:
        factory.user("Boss", "boss@x.com", admin=True)
        token = client.post("/auth/login", json={"email": "boss@x.com", "password": "Test1234"}).json()["token"]
        res = client.post(
            "/categories",
            json={"name": "Nature", "color": "#00ff00"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert res.status_code == 201


class TestReadUsers:
    def test_requires_token(self, client) -> None:
        res = client.get("/users")
        assert res.status_code == 401
        assert res.text == "Authorization header is missing"

    def test_list_and_get(self, client, factory, headers) -> None:
        jules = factory.user("Jules")
        factory.user("Stephane")
        res = client.get("/users", headers=headers(jules))
        assert [u["username"] for u in res.json()] == ["Jules", "Stephane"]
        res = client.get("/users/Stephane", headers=headers(jules))
        assert res.json()["username"] == "Stephane"
        assert client.get("/users/ghost", headers=headers(jules)).status_code == 404


class TestUpdateUser:
    def test_update_own_email(self, client, factory, headers) -> None:
        jules = factory.user("Jules")
        res = client.patch("/users/Jules", json={"email": "new@x.com"}, headers=headers(jules))
        assert res.status_code == 200
        assert res.json()["email"] == "new@x.com"

    def test_username_is_immutable(self, client, factory, headers) -> None:
        jules = factory.user("Jules")
        res = client.patch("/users/Jules", json={"username": "Julius"}, headers=headers(jules))
        assert res.status_code == 401
        assert res.text == "Username cannot be modified"

    def test_short_password_rejected(self, client, factory, headers) -> None:
        jules = factory.user("Jules")
        res = client.patch("/users/Jules", json={"password": "1234"}, headers=headers(jules))
        assert res.status_code == 400

    def test_password_change_allows_login(self, client, factory, headers) -> None:
        jules = factory.user("Jules", "jules@x.com")
        client.patch("/users/Jules", json={"password": "Another123"}, headers=headers(jules))
        res = client.post("/auth/login", json={"email": "jules@x.com", "password": "Another123"})
        assert res.status_code == 200

    def test_other_user_is_refused(self, client, factory, headers) -> None:
        factory.user("Jules")
        stephane = factory.user("Stephane")
        res = client.patch("/users/Jules", json={"email": "x@x.com"}, headers=headers(stephane))
        assert res.status_code == 401

    def test_admin_can_update(self, client, factory, headers) -> None:
        factory.user("Jules")
        boss = factory.user("Boss", admin=True)
        res = client.patch("/users/Jules", json={"email": "fixed@x.com"}, headers=headers(boss))
        assert res.status_code == 200

    def test_missing_user_before_authorization(self, client, factory, headers) -> None:
        stephane = factory.user("Stephane")
        res = client.patch("/users/ghost", json={"email": "x@x.com"}, headers=headers(stephane))
        assert res.status_code == 404


class TestDeleteUser:
    def test_cascade(self, client, factory, headers) -> None:
        jules = factory.user("Jules")
        stephane = factory.user("Stephane")
        nature = factory.category("Nature")
        s1 = factory.sound(jules["id"], nature)
        s2 = factory.sound(jules["id"], nature)
        s3 = factory.sound(stephane["id"], nature)
        factory.comment(s1, stephane["id"])
        factory.comment(s2, stephane["id"])
        factory.comment(s2, jules["id"])
        factory.comment(s3, jules["id"])
        kept = factory.comment(s3, stephane["id"])

        res = client.delete("/users/Jules", headers=headers(jules))
        assert res.status_code == 200
        assert res.text == "User successfully deleted"
        assert factory.count("users", "id = ?", (jules["id"],)) == 0
        assert factory.count("sounds") == 1
        assert factory.count("comments") == 1
        assert factory.count("comments", "id = ?", (kept,)) == 1

    def test_other_user_is_refused(self, client, factory, headers) -> None:
        factory.user("Jules")
        stephane = factory.user("Stephane")
        res = client.delete("/users/Jules", headers=headers(stephane))
        assert res.status_code == 401
        assert factory.count("users") == 2

    def test_repeated_delete_by_admin(self, client, factory, headers) -> None:
        factory.user("Jules")
        boss = factory.user("Boss", admin=True)
        assert client.delete("/users/Jules", headers=headers(boss)).status_code == 200
        res = client.delete("/users/Jules", headers=headers(boss))
        assert res.status_code == 404
        assert res.text == "User not found"
