class TestCategories:
    def test_admin_creates(self, client, factory, headers) -> None:
        boss = factory.user("Boss", admin=True)
        res = client.post("/categories", json={"name": "Nature", "color": "#00ff00"}, headers=headers(boss))
        assert res.status_code == 201
        assert res.json()["name"] == "Nature"

    def test_non_admin_is_refused(self, client, factory, headers) -> None:
        jules = factory.user("Jules")
        res = client.post("/categories", json={"name": "Nature", "color": "#00ff00"}, headers=headers(jules))
        assert res.status_code == 401
        assert res.text == "Unauthorized"
        assert factory.count("categories") == 0

    def test_duplicate_name(self, client, factory, headers) -> None:
        boss = factory.user("Boss", admin=True)
        factory.category("Nature")
        res = client.post("/categories", json={"name": "Nature", "color": "red"}, headers=headers(boss))
        assert res.status_code == 400

    def test_list_sorted_by_name(self, client, factory, headers) -> None:
        jules = factory.user("Jules")
        factory.category("Nature")
        factory.category("Car")
        res = client.get("/categories", headers=headers(jules))
        assert [c["name"] for c in res.json()] == ["Car", "Nature"]

    def test_get_by_name(self, client, factory, headers) -> None:
        jules = factory.user("Jules")
        car = factory.category("Car", "red")
        res = client.get("/categories/Car", headers=headers(jules))
        assert res.json() == {"id": car, "name": "Car", "color": "red"}
        missing = client.get("/categories/Boat", headers=headers(jules))
        assert missing.status_code == 404
        assert missing.text == "Category not found"

    def test_delete(self, client, factory, headers) -> None:
        boss = factory.user("Boss", admin=True)
        factory.category("Car")
        res = client.delete("/categories/Car", headers=headers(boss))
        assert res.status_code == 200
        assert res.json()["name"] == "Car"
        assert client.delete("/categories/Car", headers=headers(boss)).status_code == 404

    def test_delete_requires_admin(self, client, factory, headers) -> None:
        jules = factory.user("Jules")
        factory.category("Car")
        assert client.delete("/categories/Car", headers=headers(jules)).status_code == 401

    def test_category_in_use_is_kept(self, client, factory, headers) -> None:
        boss = factory.user("Boss", admin=True)
        nature = factory.category("Nature")
        factory.sound(boss["id"], nature)
        res = client.delete("/categories/Nature", headers=headers(boss))
        assert res.status_code == 400
        assert factory.count("categories") == 1

    def test_options(self, client) -> None:
        res = client.options("/categories")
        assert res.status_code == 204
        assert res.headers["Allow"] == "GET, POST, DELETE, OPTIONS"
