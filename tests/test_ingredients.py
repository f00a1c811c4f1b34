"""Ingredient API tests."""


def _create(client, headers, name, category=None):
    response = client.post(
        "/api/v1/ingredients", headers=headers, json={"name": name, "category": category}
    )
    assert response.status_code == 201
    return response.json()["ingredient"]


def test_create_ingredient(client, auth_headers):
    response = client.post(
        "/api/v1/ingredients",
        headers=auth_headers,
        json={"name": "  Basil ", "category": " Herbs "},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Ingredient created successfully"
    assert data["ingredient"]["name"] == "Basil"
    assert data["ingredient"]["category"] == "Herbs"


def test_create_ingredient_validation(client, auth_headers):
    response = client.post("/api/v1/ingredients", headers=auth_headers, json={"name": " "})
    assert response.status_code == 400
    assert response.json()["error"] == "Ingredient name is required"


def test_create_duplicate_ingredient(client, auth_headers):
    _create(client, auth_headers, "Salt")
    response = client.post("/api/v1/ingredients", headers=auth_headers, json={"name": "Salt"})
    assert response.status_code == 409


def test_list_ingredients(client, auth_headers):
    """Test listing, searching and filtering ingredients."""
    _create(client, auth_headers, "Thyme", "Herbs")
    _create(client, auth_headers, "Basil", "Herbs")
    _create(client, auth_headers, "Carrot", "Vegetables")

    data = client.get("/api/v1/ingredients").json()
    assert [i["name"] for i in data["ingredients"]] == ["Basil", "Carrot", "Thyme"]
    assert data["pagination"]["total"] == 3

    data = client.get("/api/v1/ingredients", params={"category": "Herbs"}).json()
    assert [i["name"] for i in data["ingredients"]] == ["Basil", "Thyme"]

    data = client.get("/api/v1/ingredients", params={"search": "ROT", "limit": 1}).json()
    assert [i["name"] for i in data["ingredients"]] == ["Carrot"]


def test_ingredient_categories(client, auth_headers):
    _create(client, auth_headers, "Thyme", "Herbs")
    _create(client, auth_headers, "Basil", "Herbs")
    _create(client, auth_headers, "Carrot", "Vegetables")
    _create(client, auth_headers, "Mystery")

    response = client.get("/api/v1/ingredients/categories")
    assert response.json()["categories"] == ["Herbs", "Vegetables"]


def test_get_ingredient(client, auth_headers):
    ingredient = _create(client, auth_headers, "Salt")
    response = client.get(f"/api/v1/ingredients/{ingredient['id']}")
    assert response.status_code == 200
    assert response.json()["ingredient"]["name"] == "Salt"

    assert client.get("/api/v1/ingredients/99999").status_code == 404


def test_update_ingredient(client, auth_headers):
    salt = _create(client, auth_headers, "Salt")
    _create(client, auth_headers, "Pepper")

    response = client.put(
        f"/api/v1/ingredients/{salt['id']}",
        headers=auth_headers,
        json={"name": "Sea Salt", "category": "Seasoning"},
    )
    assert response.status_code == 200
    assert response.json()["ingredient"]["name"] == "Sea Salt"

    response = client.put(
        f"/api/v1/ingredients/{salt['id']}", headers=auth_headers, json={"name": "Pepper"}
    )
    assert response.status_code == 409
    assert response.json()["error"] == "An ingredient with this name already exists"


def test_delete_ingredient_in_use(client, auth_headers, create_recipe):
    """Test that ingredients referenced by recipes cannot be deleted."""
    recipe = create_recipe(ingredients=[{"name": "Saffron"}])
    ingredient_id = recipe["ingredients"][0]["ingredient_id"]

    response = client.delete(f"/api/v1/ingredients/{ingredient_id}", headers=auth_headers)
    assert response.status_code == 409

    unused = _create(client, auth_headers, "Unused")
    response = client.delete(f"/api/v1/ingredients/{unused['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert client.get(f"/api/v1/ingredients/{unused['id']}").status_code == 404


def test_ingredient_usage(client, create_recipe):
    public = create_recipe(
        title="Public", ingredients=[{"name": "Rice", "quantity": 1, "unit": "cup"}]
    )
    create_recipe(title="Private", ingredients=[{"name": "Rice"}], is_public=False)
    ingredient_id = public["ingredients"][0]["ingredient_id"]

    data = client.get(f"/api/v1/ingredients/{ingredient_id}/usage").json()
    assert data["total_usage"] == 2
    assert data["public_usage"] == 1
    assert data["recipes"] == [
        {"id": public["id"], "title": "Public", "quantity": 1.0, "unit": "cup"}
    ]


def test_bulk_create_ingredients(client, auth_headers):
    _create(client, auth_headers, "Salt")

    response = client.post(
        "/api/v1/ingredients/bulk",
        headers=auth_headers,
        json={
            "ingredients": [
                {"name": "Pepper", "category": "Spices"},
                {"name": " Salt "},
                {"category": "Nameless"},
            ]
        },
    )
    assert response.status_code == 201
    results = response.json()["results"]
    assert [i["name"] for i in results["created"]] == ["Pepper"]
    assert [i["name"] for i in results["existing"]] == ["Salt"]
    assert len(results["errors"]) == 1


def test_bulk_create_ingredients_requires_list(client, auth_headers):
    response = client.post("/api/v1/ingredients/bulk", headers=auth_headers, json={})
    assert response.status_code == 400
    assert response.json()["error"] == "Ingredients array is required"
