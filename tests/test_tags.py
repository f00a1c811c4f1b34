"""Tag API tests."""


def test_create_tag(client, auth_headers):
    """Test creating a tag with and without a color."""
    response = client.post(
        "/api/v1/tags", headers=auth_headers, json={"name": " Quick ", "color": "#FF0000"}
    )
    assert response.status_code == 201
    assert response.json()["tag"]["name"] == "Quick"
    assert response.json()["tag"]["color"] == "#FF0000"

    response = client.post("/api/v1/tags", headers=auth_headers, json={"name": "Easy"})
    assert response.json()["tag"]["color"] == "#3B82F6"


def test_create_tag_requires_auth(client):
    response = client.post("/api/v1/tags", json={"name": "Quick"})
    assert response.status_code == 401


def test_create_tag_validation(client, auth_headers):
    """Test tag name and color validation."""
    response = client.post("/api/v1/tags", headers=auth_headers, json={"name": ""})
    assert response.status_code == 400
    assert response.json()["error"] == "Tag name is required"

    response = client.post(
        "/api/v1/tags", headers=auth_headers, json={"name": "Red", "color": "red"}
    )
    assert response.status_code == 400


def test_create_duplicate_tag(client, auth_headers):
    client.post("/api/v1/tags", headers=auth_headers, json={"name": "Quick"})
    response = client.post("/api/v1/tags", headers=auth_headers, json={"name": "Quick"})
    assert response.status_code == 409
    assert response.json()["error"] == "Tag already exists"


def test_list_tags(client, auth_headers):
    """Test listing tags alphabetically with search."""
    for name in ["Dinner", "Breakfast", "Dessert"]:
        client.post("/api/v1/tags", headers=auth_headers, json={"name": name})

    response = client.get("/api/v1/tags")
    assert response.status_code == 200
    assert [t["name"] for t in response.json()["tags"]] == ["Breakfast", "Dessert", "Dinner"]
    assert response.json()["pagination"]["limit"] == 50

    response = client.get("/api/v1/tags", params={"search": "d"})
    assert [t["name"] for t in response.json()["tags"]] == ["Dessert", "Dinner"]


def test_get_tag_with_usage_count(client, create_recipe):
    recipe = create_recipe(tags=["Brunch"])
    tag_id = recipe["tags"][0]["id"]

    response = client.get(f"/api/v1/tags/{tag_id}")
    assert response.status_code == 200
    assert response.json()["tag"]["usage_count"] == 1

    assert client.get("/api/v1/tags/99999").status_code == 404


def test_update_tag(client, auth_headers):
    """Test renaming a tag and name conflicts."""
    first = client.post("/api/v1/tags", headers=auth_headers, json={"name": "Quick"}).json()["tag"]
    client.post("/api/v1/tags", headers=auth_headers, json={"name": "Slow"})

    response = client.put(
        f"/api/v1/tags/{first['id']}",
        headers=auth_headers,
        json={"name": "Fast", "color": "#00F"},
    )
    assert response.status_code == 200
    assert response.json()["tag"] == {"id": first["id"], "name": "Fast", "color": "#00F"}

    response = client.put(
        f"/api/v1/tags/{first['id']}", headers=auth_headers, json={"name": "Slow"}
    )
    assert response.status_code == 409


def test_delete_tag_in_use(client, auth_headers, create_recipe):
    """Test that tags referenced by recipes cannot be deleted."""
    recipe = create_recipe(tags=["Keep"])
    tag_id = recipe["tags"][0]["id"]

    response = client.delete(f"/api/v1/tags/{tag_id}", headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "Cannot delete tag that is used in recipes"

    client.put(f"/api/v1/recipes/{recipe['id']}", headers=auth_headers, json={"tags": []})
    response = client.delete(f"/api/v1/tags/{tag_id}", headers=auth_headers)
    assert response.status_code == 200


def test_popular_tags(client, create_recipe):
    """Test tags ordered by usage."""
    create_recipe(title="A", tags=["Common", "Rare"])
    create_recipe(title="B", tags=["Common"])

    response = client.get("/api/v1/tags/popular", params={"limit": 1})
    tags = response.json()["tags"]
    assert [(t["name"], t["usage_count"]) for t in tags] == [("Common", 2)]


def test_tag_usage(client, create_recipe):
    """Test usage statistics list only public recipes."""
    public = create_recipe(title="Public", tags=["Shared"])
    create_recipe(title="Private", tags=["Shared"], is_public=False)
    tag_id = public["tags"][0]["id"]

    data = client.get(f"/api/v1/tags/{tag_id}/usage").json()
    assert data["total_usage"] == 2
    assert data["public_usage"] == 1
    assert [r["title"] for r in data["recipes"]] == ["Public"]


def test_tag_recipes(client, auth_headers, create_recipe):
    """Test public recipes carrying a tag."""
    public = create_recipe(title="Public", tags=["Shared"])
    create_recipe(title="Private", tags=["Shared"], is_public=False)
    create_recipe(title="Untagged")
    tag_id = public["tags"][0]["id"]

    data = client.get(f"/api/v1/tags/{tag_id}/recipes", headers=auth_headers).json()
    assert [r["title"] for r in data["recipes"]] == ["Public"]
    assert data["pagination"]["total"] == 1


def test_bulk_create_tags(client, auth_headers):
    """Test bulk creation reports created, existing and failed items."""
    client.post("/api/v1/tags", headers=auth_headers, json={"name": "Existing"})

    response = client.post(
        "/api/v1/tags/bulk",
        headers=auth_headers,
        json={
            "tags": [
                {"name": "New", "color": "not-a-color"},
                {"name": "Existing"},
                {"name": ""},
                {"name": "   "},
            ]
        },
    )
    assert response.status_code == 201
    results = response.json()["results"]
    assert [t["name"] for t in results["created"]] == ["New"]
    assert results["created"][0]["color"] == "#3B82F6"
    assert [t["name"] for t in results["existing"]] == ["Existing"]
    assert [e["error"] for e in results["errors"]] == ["Name is required"] * 2


def test_bulk_create_tags_requires_list(client, auth_headers):
    response = client.post("/api/v1/tags/bulk", headers=auth_headers, json={"tags": []})
    assert response.status_code == 400
