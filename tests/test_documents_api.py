import httpx
import pytest_asyncio

from conftest import ANA, CARLOS, GESTOR, JUAN, PNG, make_acta, make_control_point, make_report


@pytest_asyncio.fixture
async def http(client_app):
    transport = httpx.ASGITransport(app=client_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


def as_user(user_id):
    return {"X-User-Id": str(user_id)}


async def test_sin_usuario_no_autenticado(http):
    resp = await http.get("/reports")
    assert resp.status_code == 401
    assert resp.json() == {"message": "Usuario no identificado", "code": "UNAUTHENTICATED", "details": None}


async def test_usuario_actual_no_capturado_por_documentos(http):
    resp = await http.get("/users/me", headers=as_user(JUAN))
    assert resp.status_code == 200
    body = resp.json()
    assert body["fullName"] == "Juan Pérez"
    assert body["appRole"] == "editor"


async def test_tipo_desconocido_404(http):
    resp = await http.get("/planos/abc", headers=as_user(JUAN))
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


async def test_crear_informe_y_nueva_version(http, db_session, users):
    resp = await http.post("/reports", headers=as_user(GESTOR), json={
        "number": "INF-020", "title": "Informe mensual", "summary": "Mayo", "requiredSignatoryIds": [JUAN, ANA],
    })
    assert resp.status_code == 201
    v1 = resp.json()
    assert v1["version"] == 1
    assert [s["id"] for s in v1["requiredSignatories"]] == [JUAN, ANA]
    assert v1["attachments"] == []

    resp = await http.post("/reports", headers=as_user(GESTOR), json={"previousReportId": v1["id"], "summary": "Mayo corregido"})
    assert resp.status_code == 201
    v2 = resp.json()
    assert v2["id"] != v1["id"]
    assert v2["previousReportId"] == v1["id"]
    assert [v["version"] for v in v2["versions"]] == [1, 2]

    resp = await http.get(f"/reports/{v1['id']}", headers=as_user(GESTOR))
    assert resp.json()["summary"] == "Mayo"

    resp = await http.post("/reports", headers=as_user(GESTOR), json={"previousReportId": v1["id"]})
    assert resp.status_code == 409
    assert resp.json()["code"] == "STALE_VERSION"


async def test_lector_no_puede_crear(http):
    resp = await http.post("/actas", headers=as_user(CARLOS), json={"number": "ACTA-1", "title": "x"})
    assert resp.status_code == 403
    assert resp.json()["code"] == "FORBIDDEN"


async def test_validacion_de_entrada(http):
    resp = await http.post("/actas/abc/signatures", headers=as_user(JUAN), json={"signerId": "no-es-numero"})
    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"]


async def test_firma_y_errores(http, db_session, users):
    acta = make_acta(db_session, users[GESTOR], signatory_ids=(JUAN, ANA))
    url = f"/actas/{acta.id}/signatures"
    payload = {"signerId": JUAN, "password": "juan123", "consent": True, "consentStatement": "Acepto"}

    resp = await http.post(url, headers=as_user(JUAN), json=dict(payload, password="mala"))
    assert resp.status_code == 401
    assert resp.json()["code"] == "WRONG_PASSWORD"

    resp = await http.post(url, headers=as_user(JUAN), json=payload)
    assert resp.status_code == 200
    assert [s["signer"]["id"] for s in resp.json()["signatures"]] == [JUAN]

    resp = await http.post(url, headers=as_user(JUAN), json=payload)
    assert resp.status_code == 409
    assert resp.json()["code"] == "ALREADY_SIGNED"
    assert resp.json()["message"] == "Este firmante ya firmó el documento"

    resp = await http.post(url, headers=as_user(GESTOR), json={
        "signerId": GESTOR, "password": "gestor123", "consent": True, "consentStatement": "Acepto",
    })
    assert resp.status_code == 403
    assert resp.json()["code"] == "NOT_A_SIGNATORY"

    resp = await http.post(url, headers=as_user(ANA), json={
        "signerId": ANA, "password": "ana123", "consent": True, "consentStatement": "Acepto",
    })
    assert resp.json()["status"] == "Firmada"


async def test_compromiso_y_recordatorio(http, db_session, users):
    acta = make_acta(db_session, users[GESTOR])
    commitment_id = acta.commitments[0].id
    url = f"/actas/{acta.id}/commitments/{commitment_id}"

    resp = await http.put(url, headers=as_user(JUAN), json={"status": "Completado"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "Completado"

    resp = await http.post(f"{url}/reminder", headers=as_user(JUAN))
    assert resp.status_code == 400

    other = acta.commitments[1]
    resp = await http.post(f"/actas/{acta.id}/commitments/{other.id}/reminder", headers=as_user(GESTOR))
    assert resp.status_code == 200
    responsible = other.responsible_id
    resp = await http.get(f"/notifications/users/{responsible}", headers=as_user(GESTOR))
    assert resp.status_code == 403
    resp = await http.get(f"/notifications/users/{responsible}", headers=as_user(responsible))
    notifications = resp.json()
    assert notifications[0]["title"] == "Recordatorio de compromiso"

    resp = await http.patch(f"/notifications/{notifications[0]['id']}/read", headers=as_user(GESTOR))
    assert resp.status_code == 404
    resp = await http.patch(f"/notifications/{notifications[0]['id']}/read", headers=as_user(responsible))
    assert resp.json()["read"] is True
    resp = await http.patch("/notifications/9999/read", headers=as_user(GESTOR))
    assert resp.status_code == 404


async def test_firma_personal_cifrada(http):
    resp = await http.get("/users/me/signature", headers=as_user(ANA))
    assert resp.json() == {"signature": None}

    resp = await http.post(
        "/users/me/signature", headers=as_user(ANA),
        data={"password": "secreta"}, files={"file": ("firma.png", PNG, "image/png")},
    )
    assert resp.status_code == 200
    meta = resp.json()["signature"]
    assert meta["mimeType"] == "image/png"
    assert meta["size"] == len(PNG)
    assert "ciphertext" not in meta

    resp = await http.post("/users/me/signature/decrypt", headers=as_user(ANA), json={"password": "otra"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "WRONG_PASSWORD"

    resp = await http.post("/users/me/signature/decrypt", headers=as_user(ANA), json={"password": "secreta"})
    assert resp.json()["signature"]["dataUrl"].startswith("data:image/png;base64,")

    resp = await http.delete("/users/me/signature", headers=as_user(ANA))
    assert resp.status_code == 200
    resp = await http.delete("/users/me/signature", headers=as_user(ANA))
    assert resp.status_code == 404


async def test_firma_personal_tipo_no_permitido(http):
    resp = await http.post(
        "/users/me/signature", headers=as_user(ANA),
        data={"password": "secreta"}, files={"file": ("firma.gif", b"GIF89a", "image/gif")},
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "UNSUPPORTED_TYPE"


async def test_orden_de_fotos(http, db_session, users):
    point = make_control_point(db_session, users[JUAN], photos=3)
    ids = [p.id for p in point.photos]
    url = f"/control-points/{point.id}/photos/order"

    resp = await http.put(url, headers=as_user(JUAN), json={"photoIds": [ids[2], ids[0], ids[1]]})
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()["photos"]] == [ids[2], ids[0], ids[1]]

    resp = await http.put(url, headers=as_user(JUAN), json={"photoIds": ids[:2]})
    assert resp.status_code == 409
    assert resp.json()["code"] == "ORDER_MISMATCH"

    resp = await http.put(url, headers=as_user(CARLOS), json={"photoIds": ids})
    assert resp.status_code == 403

    resp = await http.get(f"/control-points/{point.id}/photos/{ids[0]}/content", headers=as_user(CARLOS))
    assert resp.content == PNG
    assert resp.headers["content-type"] == "image/png"


async def test_listado_de_informes(http, db_session, users):
    make_report(db_session, users[GESTOR])
    resp = await http.get("/reports", headers=as_user(CARLOS))
    assert [d["number"] for d in resp.json()] == ["INF-015"]
