import asyncio
from datetime import date, timedelta

import pytest

from bitacora.client import (
    AlreadySignedError, CommitmentStatus, ConsentPayload, DocumentKind, DocumentSession,
    DocumentWorkspace, DueState, NetworkError, NotAuthorizedError, OperationInProgressError,
    SignatureConsentEngine, SignerState, StaleReferenceError, derives_from, due_state, next_version_hint,
)
from bitacora.client.models import Commitment
from bitacora.client.notices import NoticeBoard, NoticeLevel

from conftest import ANA, CARLOS, GESTOR, JUAN, capabilities_for, make_acta, make_report


async def open_session(api, user, kind, document_id, notices=None, read_only=False):
    document = await api.documents.get(kind, document_id)
    return DocumentSession(api, document, capabilities_for(user, read_only=read_only), notices)


# --- Firma ---

async def test_firma_repetida_no_duplica_firma(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR], signatory_ids=(GESTOR, JUAN, ANA))
    api, transport = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)

    first = await session.sign(JUAN, "juan123", consent=True)
    assert first.ok
    assert len(session.document.signatures) == 1

    second = await session.sign(JUAN, "juan123", consent=True)
    assert not second.ok
    assert isinstance(second.error, AlreadySignedError)
    assert second.notice.level is NoticeLevel.WARNING
    assert len(session.document.signatures) == 1
    assert len(transport.calls("POST")) == 2

    reloaded = await api.documents.get(DocumentKind.ACTA, acta.id)
    assert [s.signer.id for s in reloaded.signatures] == [JUAN]


async def test_una_sola_firma_por_firmante_entre_sesiones(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR], signatory_ids=(JUAN, ANA))
    api, _ = connect(JUAN)
    other_api, _ = connect(JUAN)
    first = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)
    second = await open_session(other_api, users[JUAN], DocumentKind.ACTA, acta.id)

    results = [
        await first.sign(JUAN, "otra", consent=True),
        await first.sign(JUAN, "juan123", consent=True),
        await second.sign(JUAN, "juan123", consent=True),
        await first.sign(JUAN, "juan123", consent=True),
    ]
    assert [r.ok for r in results] == [False, True, False, False]

    for s in (first, second):
        await s.reload()
        assert [sig.signer.id for sig in s.document.signatures] == [JUAN]


async def test_firma_final_reemplaza_documento_con_estado_avanzado(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR], signatory_ids=(JUAN,))
    api, _ = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)
    assert session.signatures.signer_state(session.document, JUAN) is SignerState.UNSIGNED

    result = await session.sign(JUAN, "juan123", consent=True)
    assert result.ok
    assert session.document.status == "Firmada"
    assert session.document.fully_signed
    assert session.signatures.signer_state(session.document, JUAN) is SignerState.SIGNED
    assert session.signatures.dialog(acta.id) is None


async def test_firma_fallida_deja_dialogo_abierto_con_mensaje_del_servidor(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR], signatory_ids=(JUAN,))
    api, _ = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)
    before = session.document

    result = await session.sign(JUAN, "incorrecta", consent=True)
    assert result.error.code == "WRONG_PASSWORD"
    assert session.document is before
    dialog = session.signatures.dialog(acta.id)
    assert dialog.is_open
    assert dialog.state is SignerState.FAILED
    assert dialog.error == "Contraseña incorrecta"

    retry = await session.sign(JUAN, "juan123", consent=True)
    assert retry.ok


async def test_firma_sin_consentimiento_no_llama_al_servidor(db_session, users, connect, notices):
    acta = make_acta(db_session, users[GESTOR], signatory_ids=(JUAN,))
    api, transport = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id, notices)
    sent = len(transport.requests)

    no_consent = await session.sign(JUAN, "juan123", consent=False)
    no_password = await session.sign(JUAN, "  ", consent=True)
    assert no_consent.error.code == "CONSENT_REQUIRED"
    assert no_password.error.category == "validation"
    assert len(transport.requests) == sent


async def test_firma_usa_declaracion_por_defecto(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR], signatory_ids=(JUAN,))
    api, transport = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)

    dialog = session.signatures.open_dialog(session.document, JUAN)
    assert dialog.statement.startswith("El usuario consiente")
    assert dialog.steps[0] == "Validando credenciales"
    await session.sign(JUAN, "juan123", consent=True)
    assert b"El usuario consiente" in transport.requests[-1].content


async def test_un_solo_dialogo_por_documento(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR], signatory_ids=(JUAN, ANA))
    api, _ = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)
    session.signatures.open_dialog(session.document, JUAN)
    with pytest.raises(OperationInProgressError):
        session.signatures.open_dialog(session.document, ANA)


async def test_firma_en_curso_no_se_duplica(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR], signatory_ids=(JUAN,))
    api, transport = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)
    gate = transport.hold()

    sent = len(transport.requests)
    first = asyncio.create_task(session.sign(JUAN, "juan123", consent=True))
    await transport.wait_for(sent + 1)
    second = await session.sign(JUAN, "juan123", consent=True)
    assert isinstance(second.error, OperationInProgressError)

    gate.set()
    assert (await first).ok
    assert len(transport.calls("POST")) == 1


async def test_respuesta_tras_cerrar_la_vista_no_modifica_estado(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR], signatory_ids=(JUAN,))
    api, transport = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)
    before = session.document
    gate = transport.hold()

    sent = len(transport.requests)
    pending = asyncio.create_task(session.sign(JUAN, "juan123", consent=True))
    await transport.wait_for(sent + 1)
    session.close()
    gate.set()
    result = await pending

    assert result.ok
    assert not result.applied
    assert session.document is before


async def test_firma_sin_red_es_error_de_transporte(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR], signatory_ids=(JUAN,))
    api, transport = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)
    transport.offline = True

    result = await session.sign(JUAN, "juan123", consent=True)
    assert isinstance(result.error, NetworkError)
    assert result.notice.retryable
    assert session.document.signatures == ()


# --- Compromisos ---

async def test_dos_compromisos_cambiados_dos_llamadas(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR], commitments=4)
    api, transport = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)
    first, _, third, _ = session.document.commitments

    assert session.toggle_commitment(first.id).ok
    assert session.toggle_commitment(third.id).ok
    assert session.commitments.get(first.id).status is CommitmentStatus.COMPLETED
    sent = len(transport.requests)

    result = await session.save()
    assert result.ok
    calls = transport.calls()[sent:]
    assert sorted(calls) == sorted([
        ("PUT", f"/actas/{acta.id}/commitments/{first.id}"),
        ("PUT", f"/actas/{acta.id}/commitments/{third.id}"),
    ])
    assert not session.has_unsaved_changes

    reloaded = await api.documents.get(DocumentKind.ACTA, acta.id)
    assert [c.status for c in reloaded.commitments] == [
        CommitmentStatus.COMPLETED, CommitmentStatus.PENDING, CommitmentStatus.COMPLETED, CommitmentStatus.PENDING,
    ]


async def test_toggle_doble_no_genera_llamadas(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR])
    api, _ = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)
    cid = session.document.commitments[0].id
    session.toggle_commitment(cid)
    session.toggle_commitment(cid)
    assert session.commitments.pending_changes() == ()


async def test_fallo_parcial_conserva_cambios_locales(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR])
    api, transport = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)
    cid = session.document.commitments[1].id
    session.toggle_commitment(cid)
    transport.offline = True

    result = await session.save()
    assert not result.ok
    assert result.notice.level is NoticeLevel.WARNING
    assert session.commitments.get(cid).status is CommitmentStatus.COMPLETED
    assert session.commitments.pending_changes() == ((cid, CommitmentStatus.COMPLETED),)

    transport.offline = False
    assert (await session.save()).ok
    assert session.commitments.pending_changes() == ()


async def test_guardar_estado_y_resumen(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR])
    api, transport = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id)
    session.edit_summary("Resumen revisado")
    session.edit_status("Para Firmas")
    session.toggle_commitment(session.document.commitments[0].id)

    result = await session.save()
    assert result.ok
    assert session.document.summary == "Resumen revisado"
    assert session.document.status == "Para Firmas"
    assert session.document.commitments[0].status is CommitmentStatus.COMPLETED
    assert [m for m, _ in transport.calls()[-2:]] == ["PUT", "PUT"]


async def test_recordatorio_de_compromiso(db_session, users, connect, notices):
    acta = make_acta(db_session, users[GESTOR])
    api, _ = connect(GESTOR)
    session = await open_session(api, users[GESTOR], DocumentKind.ACTA, acta.id, notices)
    commitment = session.document.commitments[1]

    result = await session.send_reminder(commitment.id)
    assert result.ok
    assert notices.latest.level is NoticeLevel.SUCCESS
    assert commitment.responsible.full_name in notices.latest.message


def test_clasificacion_de_vencimiento():
    today = date(2024, 6, 10)

    def item(days, status="Pendiente"):
        return Commitment(id="c", description="d", responsible={"id": 1, "fullName": "A"},
                          due_date=today + timedelta(days=days), status=status)

    assert due_state(item(-1), today) is DueState.OVERDUE
    assert due_state(item(0), today) is DueState.DUE_SOON
    assert due_state(item(3), today) is DueState.DUE_SOON
    assert due_state(item(4), today) is DueState.ON_TRACK
    assert due_state(item(-5, "Completado"), today) is DueState.COMPLETED


# --- Solo lectura ---

async def test_solo_lectura_no_llama_al_servidor(db_session, users, connect, notices):
    acta = make_acta(db_session, users[GESTOR])
    api, transport = connect(JUAN)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id, notices, read_only=True)
    sent = len(transport.requests)
    cid = session.document.commitments[0].id

    results = [
        session.toggle_commitment(cid),
        session.edit_summary("x"),
        await session.save(),
        await session.sign(JUAN, "juan123", consent=True),
        await session.send_reminder(cid),
        await session.create_new_version({"summary": "x"}),
    ]
    assert all(isinstance(r.error, NotAuthorizedError) for r in results)
    assert session.commitments.get(cid).status is CommitmentStatus.PENDING
    assert len(transport.requests) == sent
    assert len(notices) == len(results)


async def test_lector_no_puede_firmar(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR], signatory_ids=(CARLOS,))
    api, transport = connect(CARLOS)
    session = await open_session(api, users[CARLOS], DocumentKind.ACTA, acta.id)
    sent = len(transport.requests)
    result = await session.sign(CARLOS, "carlos123", consent=True)
    assert result.error.code == "FORBIDDEN"
    assert len(transport.requests) == sent


# --- Versiones ---

async def test_nueva_version_no_modifica_la_anterior(db_session, users, connect):
    v1 = make_report(db_session, users[GESTOR], number="INF-015", summary="Avance de mayo")
    api, _ = connect(GESTOR)
    workspace = DocumentWorkspace(api, capabilities_for(users[GESTOR]))
    session = (await workspace.open_current(DocumentKind.REPORT, v1.id)).value
    assert next_version_hint(session.document) == 2

    result = await session.create_new_version({"summary": "Avance de mayo corregido"})
    assert result.ok
    v2 = result.value
    assert v2.id != v1.id
    assert v2.version == 2
    assert v2.previous_report_id == v1.id
    assert derives_from(v2).id == v1.id

    refetched = await api.documents.get(DocumentKind.REPORT, v1.id)
    assert refetched.summary == "Avance de mayo"
    assert refetched.version == 1
    assert session.document.summary == "Avance de mayo"


async def test_version_base_queda_intacta(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR])
    api, _ = connect(GESTOR)
    session = await open_session(api, users[GESTOR], DocumentKind.ACTA, acta.id)
    before = await api.documents.get(DocumentKind.ACTA, acta.id)

    await session.create_new_version({"summary": "Cambios", "title": "Nuevo título"})
    after = await api.documents.get(DocumentKind.ACTA, acta.id)

    fields = {"id", "number", "title", "version", "previous_report_id", "status", "summary",
              "required_signatories", "signatures", "commitments"}
    assert after.model_dump(include=fields) == before.model_dump(include=fields)
    assert not after.is_head


async def test_version_historica_se_abre_solo_lectura(db_session, users, connect):
    v1 = make_report(db_session, users[GESTOR])
    api, _ = connect(GESTOR)
    workspace = DocumentWorkspace(api, capabilities_for(users[GESTOR]))
    v2 = await api.documents.create_version(DocumentKind.REPORT, v1.id, {})

    current = (await workspace.open_current(DocumentKind.REPORT, v1.id)).value
    assert current.key == v2.id
    old = (await workspace.open(DocumentKind.REPORT, v1.id)).value
    assert old.read_only
    assert not current.read_only

    ancestor = await current.versions.ancestor(current.document)
    assert ancestor.value.id == v1.id


async def test_version_inexistente_no_usa_otra(db_session, users, connect, notices):
    v1 = make_report(db_session, users[GESTOR])
    api, _ = connect(GESTOR)
    session = await open_session(api, users[GESTOR], DocumentKind.REPORT, v1.id, notices)

    result = await session.versions.select_version("no-existe")
    assert not result.ok
    assert result.value is None
    assert isinstance(result.error, StaleReferenceError)


async def test_nueva_version_desde_version_reemplazada(db_session, users, connect):
    v1 = make_report(db_session, users[GESTOR])
    api, _ = connect(GESTOR)
    session = await open_session(api, users[GESTOR], DocumentKind.REPORT, v1.id)
    assert (await session.create_new_version()).ok

    stale = await session.create_new_version()
    assert isinstance(stale.error, StaleReferenceError)
    assert stale.error.code == "STALE_VERSION"


async def test_motor_de_firma_independiente_por_documento(db_session, users, connect):
    first = make_acta(db_session, users[GESTOR], signatory_ids=(JUAN,))
    second = make_report(db_session, users[GESTOR], signatory_ids=(JUAN,))
    api, _ = connect(JUAN)
    engine = SignatureConsentEngine(api.documents, capabilities_for(users[JUAN]), NoticeBoard())
    acta = await api.documents.get(DocumentKind.ACTA, first.id)
    report = await api.documents.get(DocumentKind.REPORT, second.id)

    engine.open_dialog(acta, JUAN)
    engine.open_dialog(report, JUAN)
    signed_acta = await engine.request_signature(acta, JUAN, ConsentPayload(password="juan123", consent=True))
    assert engine.dialog(acta.id) is None
    assert engine.dialog(report.id).is_open
    signed_report = await engine.request_signature(report, JUAN, ConsentPayload(password="juan123", consent=True))

    assert signed_acta.value.status == "Firmada"
    assert signed_report.value.status == "Aprobado"


async def test_guardar_sobre_version_reemplazada_falla(db_session, users, connect, notices):
    acta = make_acta(db_session, users[GESTOR])
    api, _ = connect(JUAN)
    other_api, _ = connect(GESTOR)
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id, notices)
    await other_api.documents.create_version(DocumentKind.ACTA, acta.id, {})

    session.edit_summary("editado sobre una versión reemplazada")
    result = await session.save()

    assert isinstance(result.error, StaleReferenceError)
    assert result.error.code == "STALE_VERSION"
    assert notices.latest.level is NoticeLevel.ERROR
    assert session.has_unsaved_changes
    reloaded = await api.documents.get(DocumentKind.ACTA, acta.id)
    assert reloaded.summary != "editado sobre una versión reemplazada"


async def test_avisos_llegan_al_tablero_recibido(db_session, users, connect):
    acta = make_acta(db_session, users[GESTOR])
    api, _ = connect(JUAN)
    board = NoticeBoard()
    session = await open_session(api, users[JUAN], DocumentKind.ACTA, acta.id, board, read_only=True)
    workspace = DocumentWorkspace(api, capabilities_for(users[JUAN]), board)

    assert session.notices is board
    assert workspace.notices is board
    session.toggle_commitment(session.document.commitments[0].id)
    assert len(board) == 1
