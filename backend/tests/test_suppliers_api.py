from conftest import create_product

API = "/api/v1"


def test_supplier_endpoints(client, auth_headers):
    r = client.post(f"{API}/suppliers", json={"name": "Acme", "phone": "+48 123-456", "email": "hi@acme.example.com"},
                    headers=auth_headers)
    assert r.status_code == 201
    supplier = r.json()["data"]

    dup = client.post(f"{API}/suppliers", json={"name": "acme"}, headers=auth_headers)
    assert dup.status_code == 400

    create_product(client, auth_headers, supplierId=supplier["id"])
    r = client.get(f"{API}/suppliers/{supplier['id']}", headers=auth_headers)
    assert r.json()["data"]["productCount"] == 1

    r = client.delete(f"{API}/suppliers/{supplier['id']}", headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"] == {"dependents": 1}

    r = client.put(f"{API}/suppliers/{supplier['id']}", json={"contact": "Jan"}, headers=auth_headers)
    assert r.json()["data"]["contact"] == "Jan"

    listing = client.get(f"{API}/suppliers", params={"search": "acm"}, headers=auth_headers).json()
    assert listing["pagination"]["total"] == 1


def test_supplier_validation(client, auth_headers):
    r = client.post(f"{API}/suppliers", json={"name": "Acme", "phone": "call me"}, headers=auth_headers)
    assert r.status_code == 400
    r = client.post(f"{API}/suppliers", json={"name": "Acme", "email": "nope"}, headers=auth_headers)
    assert r.status_code == 400
    assert client.get(f"{API}/suppliers/42", headers=auth_headers).status_code == 404


def test_brand_endpoints(client, auth_headers):
    r = client.post(f"{API}/marcas", json={"name": "Bosch"}, headers=auth_headers)
    assert r.status_code == 201
    brand = r.json()["data"]

    r = client.put(f"{API}/marcas/{brand['id']}", json={"description": "Tools"}, headers=auth_headers)
    assert r.json()["data"]["description"] == "Tools"

    r = client.delete(f"{API}/marcas/{brand['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["data"]["active"] is False

    assert client.get(f"{API}/marcas/999", headers=auth_headers).status_code == 404


def test_updates_reject_null_for_required_fields(client, auth_headers):
    supplier = client.post(f"{API}/suppliers", json={"name": "Acme"}, headers=auth_headers).json()["data"]
    brand = client.post(f"{API}/marcas", json={"name": "Bosch"}, headers=auth_headers).json()["data"]

    for path, field in ((f"suppliers/{supplier['id']}", "active"), (f"suppliers/{supplier['id']}", "name"),
                        (f"marcas/{brand['id']}", "active"), (f"marcas/{brand['id']}", "name")):
        r = client.put(f"{API}/{path}", json={field: None}, headers=auth_headers)
        assert r.status_code == 400, (path, field)
        assert r.json()["success"] is False

    assert client.get(f"{API}/marcas/{brand['id']}", headers=auth_headers).json()["data"]["active"] is True
