"""HTTP tests for /api/categories."""
from bson import ObjectId

from catalog import CATEGORIES, SUBCATEGORIES

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def test_lists_only_active_categories(client, make_category):
    make_category("Silk Sarees")
    make_category("Retired", is_active=False)

    res = client.get("/api/categories")

    assert res.status_code == 200
    assert [c["name"] for c in res.json()] == ["Silk Sarees"]


def test_create_category_with_image(client, db, admin, headers_for, upload_dir):
    res = client.post(
        "/api/categories",
        data={"name": "Net Sarees", "description": "Light and airy"},
        files={"image": ("net.webp", PNG, "image/webp")},
        headers=headers_for(admin),
    )

    assert res.status_code == 201
    body = res.json()
    assert body["name"] == "Net Sarees"
    assert body["is_active"] is True
    assert body["image"].startswith("/uploads/image-")
    assert db[CATEGORIES].count_documents({}) == 1


def test_create_category_needs_name(client, admin, headers_for):
    res = client.post("/api/categories", data={"description": "x"}, headers=headers_for(admin))
    assert res.status_code == 400
    assert res.json() == {"message": "Category name is required"}


def test_create_category_requires_admin(client, customer, headers_for):
    res = client.post("/api/categories", data={"name": "x"}, headers=headers_for(customer))
    assert res.status_code == 403


def test_subcategories(client, admin, headers_for, make_category, make_subcategory):
    cat = make_category()
    make_subcategory(cat, "Retired", is_active=False)

    created = client.post(
        "/api/categories/sub",
        json={"name": "Patola Silk", "category_id": str(cat)},
        headers=headers_for(admin),
    )
    assert created.status_code == 201
    assert created.json()["category"] == str(cat)

    listed = client.get(f"/api/categories/{cat}/sub").json()
    assert [s["name"] for s in listed] == ["Patola Silk"]


def test_subcategory_needs_existing_category(client, admin, headers_for):
    for category_id in (str(ObjectId()), "bogus"):
        res = client.post(
            "/api/categories/sub",
            json={"name": "Orphan", "category_id": category_id},
            headers=headers_for(admin),
        )
        assert res.status_code == 400
        assert res.json() == {"message": "Invalid category"}


def test_delete_category_and_subcategory(client, db, admin, headers_for, make_category, make_subcategory):
    cat = make_category()
    sub = make_subcategory(cat)
    headers = headers_for(admin)

    assert client.delete(f"/api/categories/sub/{sub}", headers=headers).json() == {"message": "SubCategory removed"}
    assert client.delete(f"/api/categories/{cat}", headers=headers).json() == {"message": "Category removed"}
    assert db[SUBCATEGORIES].count_documents({}) == 0
    assert db[CATEGORIES].count_documents({}) == 0

    again = client.delete(f"/api/categories/{cat}", headers=headers)
    assert again.status_code == 404
    assert again.json() == {"message": "Category not found"}
