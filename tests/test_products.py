from decimal import Decimal


async def test_list_active_products(client, make_product):
    await make_product(slug="bal", name="Bal", price=Decimal("320.00"))
    await make_product(slug="pekmez", name="Dut Pekmezi", price=Decimal("180.00"))
    await make_product(slug="eski", name="Eski Ürün", is_active=False)

    response = await client.get("/api/products")

    assert response.status_code == 200
    assert [p["slug"] for p in response.json()] == ["bal", "pekmez"]
    assert response.json()[0]["price"] == 320.0


async def test_search_is_case_insensitive(client, make_product):
    await make_product(slug="bal", name="Bal")
    await make_product(slug="pekmez", name="Dut Pekmezi")

    response = await client.get("/api/products", params={"q": "PEKMEZ"})

    assert [p["slug"] for p in response.json()] == ["pekmez"]


async def test_get_by_slug(client, make_product):
    product = await make_product()

    response = await client.get(f"/api/products/{product.slug}")

    assert response.status_code == 200
    assert response.json()["id"] == product.id


async def test_inactive_product_is_hidden(client, make_product):
    await make_product(slug="eski", is_active=False)

    response = await client.get("/api/products/eski")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Ürün bulunamadı"}
