from tests.conftest import auth_headers


def _create(client, headers, **fields):
    payload = {"name": "Escuela Normal 1", "address": "Av. Siempre Viva 123", "phone": "+54 11 4444-5555"}
    payload.update(fields)
    return client.post("/api/institutions", json=payload, headers=headers)


def test_admin_creates_institution(client, admin):
    resp = _create(client, admin, email="contacto@normal1.edu")
    assert resp.status_code == 201
    body = resp.json()
    assert body["name"] == "Escuela Normal 1"
    assert body["email"] == "contacto@normal1.edu"
    assert body["created_by"] == "user_admin"

    fetched = client.get(f"/api/institutions/{body['id']}", headers=admin)
    assert fetched.status_code == 200
    assert fetched.json()["id"] == body["id"]


def test_teacher_cannot_create(client, teacher):
    resp = _create(client, teacher)
    assert resp.status_code == 403
    assert resp.json()["code"] == "FORBIDDEN"


def test_duplicate_name_is_case_insensitive(client, admin):
    _create(client, admin)
    resp = _create(client, admin, name="escuela normal 1")
    assert resp.status_code == 409
    assert resp.json()["fieldErrors"] == {"name": "Ya existe una institución con este nombre"}


def test_duplicate_email(client, admin):
    _create(client, admin, email="a@b.edu")
    resp = _create(client, admin, name="Otra", email="a@b.edu")
    assert resp.status_code == 409
    assert "email" in resp.json()["fieldErrors"]


def test_field_validation(client, admin):
    resp = _create(client, admin, name="X", phone="abc", email="no-es-email")
    assert resp.status_code == 400
    errors = resp.json()["fieldErrors"]
    assert set(errors) == {"name", "phone", "email"}


def test_blank_optional_fields_become_null(client, admin):
    resp = _create(client, admin, address="  ", phone="", email="")
    assert resp.status_code == 201
    assert resp.json()["address"] is None
    assert resp.json()["email"] is None


def test_list_search_and_pagination(client, admin):
    for name in ["Colegio Norte", "Colegio Sur", "Instituto Central"]:
        assert _create(client, admin, name=name).status_code == 201

    page = client.get("/api/institutions", params={"search": "colegio", "limit": 1, "sortBy": "name", "sortOrder": "asc"}, headers=admin).json()
    assert page["total"] == 2
    assert page["hasMore"] is True
    assert [i["name"] for i in page["institutions"]] == ["Colegio Norte"]
    assert page["institutions"][0]["courses_count"] == 0

    page2 = client.get("/api/institutions", params={"search": "colegio", "limit": 1, "page": 2, "sortBy": "name", "sortOrder": "asc"}, headers=admin).json()
    assert [i["name"] for i in page2["institutions"]] == ["Colegio Sur"]
    assert page2["hasMore"] is False


def test_list_rejects_bad_limit(client, admin):
    resp = client.get("/api/institutions", params={"limit": 500}, headers=admin)
    assert resp.status_code == 400
    assert "limit" in resp.json()["fieldErrors"]


def test_update_institution(client, admin):
    inst = _create(client, admin).json()
    _create(client, admin, name="Ocupado")

    resp = client.put(f"/api/institutions/{inst['id']}", json={"name": "Escuela Renombrada"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Escuela Renombrada"
    assert resp.json()["address"] == "Av. Siempre Viva 123"

    clash = client.put(f"/api/institutions/{inst['id']}", json={"name": "ocupado"}, headers=admin)
    assert clash.status_code == 409

    # mismo nombre propio no es duplicado
    same = client.put(f"/api/institutions/{inst['id']}", json={"name": "Escuela Renombrada"}, headers=admin)
    assert same.status_code == 200


def test_missing_institution(client, admin):
    assert client.get("/api/institutions/nope", headers=admin).status_code == 404
    assert client.put("/api/institutions/nope", json={"name": "Nueva"}, headers=admin).status_code == 404


def test_delete_requires_delete_capability(client, admin, teacher):
    inst = _create(client, admin).json()
    assert client.delete(f"/api/institutions/{inst['id']}", headers=teacher).status_code == 403

    resp = client.delete(f"/api/institutions/{inst['id']}", headers=admin)
    assert resp.status_code == 200
    assert client.get(f"/api/institutions/{inst['id']}", headers=admin).status_code == 404


def test_delete_blocked_by_courses(client, admin):
    inst = _create(client, admin).json()
    client.post("/api/courses", json={"name": "1A", "institution_id": inst["id"]}, headers=admin)

    resp = client.delete(f"/api/institutions/{inst['id']}", headers=admin)
    assert resp.status_code == 409
    assert resp.json()["code"] == "HAS_DEPENDENTS"


def test_delete_permission_granted_by_token(client, admin):
    inst = _create(client, admin).json()
    user_headers = auth_headers("user_deleter")
    client.post("/api/auth/initialize", headers=user_headers)
    client.patch("/api/users/user_deleter", json={"role": "user", "permissions": ["delete_institutions"]}, headers=admin)

    assert client.delete(f"/api/institutions/{inst['id']}", headers=user_headers).status_code == 200


def test_export_requires_export_capability(client, admin):
    _create(client, admin)
    viewer = auth_headers("user_viewer")
    client.post("/api/auth/initialize", headers=viewer)
    client.patch("/api/users/user_viewer", json={"role": "user", "permissions": []}, headers=admin)

    assert client.get("/api/institutions/export", headers=viewer).status_code == 403

    body = client.get("/api/institutions/export", params={"includeStats": True}, headers=admin).json()
    assert body["total"] == 1
    inst_id = body["data"][0]["id"]
    assert body["stats"][inst_id] == {"courses_count": 0, "students_count": 0, "professors_count": 0}


def test_search_treats_wildcards_literally(client, admin):
    for name in ["Colegio Norte", "Colegio_Sur", "Instituto 100% Rural"]:
        assert _create(client, admin, name=name).status_code == 201

    def total(search):
        return client.get("/api/institutions", params={"search": search}, headers=admin).json()["total"]

    assert total("%") == 1
    assert total("_") == 1
    assert total("o_S") == 1
    assert total("o S") == 0


def test_suggestions_need_two_characters(client, admin):
    _create(client, admin, name="Colegio Norte")

    for q in ["", "c", "  c  "]:
        resp = client.get("/api/institutions/suggestions", params={"q": q}, headers=admin)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "suggestions": []}


def test_suggestions_are_sorted_and_capped(client, admin):
    names = [f"Colegio {letter}" for letter in "FEDCBA"]
    for name in names + ["Instituto Central"]:
        assert _create(client, admin, name=name).status_code == 201

    body = client.get("/api/institutions/suggestions", params={"q": " colegio "}, headers=admin).json()
    assert body["success"] is True
    assert body["suggestions"] == sorted(names)[:5]


def test_suggestions_escape_wildcards(client, admin):
    _create(client, admin, name="Colegio Norte")
    body = client.get("/api/institutions/suggestions", params={"q": "%%"}, headers=admin).json()
    assert body["suggestions"] == []


def test_batch_stats(client, admin):
    inst = _create(client, admin).json()
    client.post("/api/courses", json={"name": "1A", "institution_id": inst["id"]}, headers=admin)

    resp = client.post("/api/institutions/stats/batch", json={"institutionIds": [inst["id"], "missing"]}, headers=admin)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"] == {inst["id"]: {"courses_count": 1, "students_count": 0, "professors_count": 0}}


def test_batch_stats_rejects_empty_list(client, admin):
    for payload in [{"institutionIds": []}, {}]:
        resp = client.post("/api/institutions/stats/batch", json=payload, headers=admin)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Se requiere un array de IDs de instituciones"


def test_batch_stats_rejects_non_list(client, admin):
    resp = client.post("/api/institutions/stats/batch", json={"institutionIds": "abc"}, headers=admin)
    assert resp.status_code == 400
    assert "institutionIds" in resp.json()["fieldErrors"]


def test_batch_stats_caps_at_fifty_ids(client, admin):
    ids = [f"inst-{n}" for n in range(51)]
    resp = client.post("/api/institutions/stats/batch", json={"institutionIds": ids}, headers=admin)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Máximo 50 instituciones por solicitud"

    resp = client.post("/api/institutions/stats/batch", json={"institutionIds": ids[:50]}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["data"] == {}
