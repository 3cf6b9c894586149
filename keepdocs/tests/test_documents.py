import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.core.exceptions import (
    DocumentNotEditableException,
    DossierAlreadyExistsException,
    InvalidDocumentTypeException,
    InvalidFileTypeException,
    VersionNotFoundException,
)
from keepdocs.core.file_types import get_file_extension
from keepdocs.models.document import Document
from keepdocs.models.dossier import Dossier
from keepdocs.models.file import File
from keepdocs.services.document_service import DocumentService
from keepdocs.services.dossier_service import DossierService
from keepdocs.services.storage_service import StorageService, UploadedFile
from keepdocs.services.version_service import VersionService

pytestmark = pytest.mark.asyncio


def upload(name: str, content: bytes = b"%PDF-1.4 test") -> UploadedFile:
    return UploadedFile(client_name=name, extname=get_file_extension(name), content=content)


async def count(db_session: AsyncSession, model) -> int:
    result = await db_session.execute(select(func.count()).select_from(model))
    return result.scalar()


# Serviços

async def test_first_upload_creates_document_and_current_version(
    dossier: Dossier, document_service: DocumentService, storage: StorageService
):
    result = await document_service.process_document_upload(dossier, "passport", [upload("a.pdf"), upload("b.png")])

    assert result.pages_added == 2
    document = await document_service.find_document(dossier.id, "passport")
    assert document.current_version_id == result.version.id
    pages = DocumentService.current_version_files(document)
    assert [page.page_number for page in pages] == [1, 2]
    assert pages[1].mime_type == "image/png"
    assert await storage.read(pages[0].path) == b"%PDF-1.4 test"


async def test_upload_to_current_version_continues_page_numbers(dossier: Dossier, document_service: DocumentService):
    first = await document_service.process_document_upload(dossier, "passport", [upload("a.pdf")])
    second = await document_service.process_document_upload(dossier, "passport", [upload("b.pdf"), upload("c.pdf")])

    assert first.version.id == second.version.id
    document = await document_service.find_document(dossier.id, "passport")
    assert [page.page_number for page in DocumentService.current_version_files(document)] == [1, 2, 3]


async def test_new_version_is_promoted(dossier: Dossier, document_service: DocumentService):
    first = await document_service.process_document_upload(dossier, "passport", [upload("a.pdf")])
    second = await document_service.process_document_upload(
        dossier, "passport", [upload("b.pdf")], version_name="v2", is_new_version=True
    )

    assert second.version.id != first.version.id
    assert second.version.name == "v2"
    document = await document_service.find_document(dossier.id, "passport")
    assert document.current_version_id == second.version.id
    assert [page.name for page in DocumentService.current_version_files(document)] == ["b.pdf"]
    assert len(document.versions) == 2


async def test_invalid_file_rejects_whole_batch(
    db_session: AsyncSession, dossier: Dossier, document_service: DocumentService, storage: StorageService
):
    with pytest.raises(InvalidFileTypeException) as exc:
        await document_service.process_document_upload(
            dossier, "passport", [upload("a.pdf"), upload("notes.docx"), upload("c.pdf")]
        )

    assert exc.value.file_name == "notes.docx"
    assert await count(db_session, Document) == 0
    assert await count(db_session, File) == 0
    assert not storage.base_dir.exists() or not any(storage.base_dir.rglob("*.pdf"))


async def test_failed_commit_removes_written_files(
    db_session: AsyncSession, dossier: Dossier, document_service: DocumentService, storage: StorageService, monkeypatch
):
    async def broken_promotion(document, version_id):
        raise RuntimeError("falha simulada")

    monkeypatch.setattr(document_service.version_service, "change_current_version", broken_promotion)

    with pytest.raises(RuntimeError):
        await document_service.process_document_upload(dossier, "passport", [upload("a.pdf"), upload("b.pdf")])

    assert await count(db_session, Document) == 0
    assert await count(db_session, File) == 0
    assert not any(path.is_file() for path in storage.base_dir.rglob("*"))


async def test_unknown_document_type_is_rejected(db_session: AsyncSession, dossier: Dossier, document_service: DocumentService):
    with pytest.raises(InvalidDocumentTypeException):
        await document_service.process_document_upload(dossier, "driverLicense", [upload("a.pdf")])
    assert await count(db_session, Document) == 0


async def test_document_not_editable_in_status(dossier: Dossier, document_service: DocumentService):
    with pytest.raises(DocumentNotEditableException):
        await document_service.process_document_upload(
            dossier, "passport", [upload("a.pdf")], dossier_status="APPROVED"
        )

    result = await document_service.process_document_upload(
        dossier, "passport", [upload("a.pdf")], dossier_status="CREATION"
    )
    assert result.pages_added == 1


async def test_dossier_with_unknown_schema_accepts_any_type(db_session: AsyncSession, document_service: DocumentService):
    dossier = await DossierService(db_session).create_dossier("free-dossier", "unregistered")
    result = await document_service.process_document_upload(dossier, "anything", [upload("sheet.xlsx")])
    assert result.pages_added == 1


async def test_duplicate_dossier(db_session: AsyncSession, dossier: Dossier):
    with pytest.raises(DossierAlreadyExistsException):
        await DossierService(db_session).create_dossier(dossier.uuid, "example")


async def test_find_or_create_dossier(db_session: AsyncSession):
    service = DossierService(db_session)
    created = await service.find_or_create_dossier("lazy-dossier", "example")
    found = await service.find_or_create_dossier("lazy-dossier", "strizh_offer")

    assert created.id == found.id
    assert found.schema == "example"


async def test_soft_deleted_page_is_hidden_but_kept(
    db_session: AsyncSession, dossier: Dossier, document_service: DocumentService
):
    await document_service.process_document_upload(dossier, "passport", [upload("a.pdf"), upload("b.pdf")])
    document = await document_service.find_document(dossier.id, "passport")
    first = document.files[0]

    await document_service.delete_file(first)

    document = await document_service.find_document(dossier.id, "passport")
    assert [page.name for page in document.files] == ["b.pdf"]
    assert await count(db_session, File) == 2
    assert await document_service.find_file_by_uuid(first.uuid, document) is None


async def test_change_current_version_requires_same_document(
    db_session: AsyncSession, dossier: Dossier, document_service: DocumentService
):
    passport = await document_service.process_document_upload(dossier, "passport", [upload("a.pdf")])
    other = await document_service.process_document_upload(dossier, "otherDocuments", [upload("b.pdf")])

    with pytest.raises(VersionNotFoundException):
        await VersionService(db_session).change_current_version(passport.document, other.version.id)


async def test_delete_current_version_falls_back_to_newest(
    db_session: AsyncSession, dossier: Dossier, document_service: DocumentService
):
    first = await document_service.process_document_upload(dossier, "passport", [upload("a.pdf")])
    second = await document_service.process_document_upload(dossier, "passport", [upload("b.pdf")], is_new_version=True)

    await VersionService(db_session).delete_version(second.document, second.version.id)

    document = await document_service.find_document(dossier.id, "passport")
    assert document.current_version_id == first.version.id

    await VersionService(db_session).delete_version(document, first.version.id)
    document = await document_service.find_document(dossier.id, "passport")
    assert document.current_version_id is None


async def test_version_name_format():
    from datetime import datetime

    assert VersionService.generate_version_name(datetime(2024, 3, 5, 9, 7)) == "v2024.03.05.0907"


# HTTP

DOSSIER_UUID = "5f0c7a1e-0000-4000-8000-000000000002"


async def create_dossier(async_client: AsyncClient, headers, schema: str = "example") -> dict:
    response = await async_client.post(
        "/api/v1/dossiers", json={"uuid": DOSSIER_UUID, "schema": schema}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


async def put_files(async_client: AsyncClient, headers, document_type: str, names: list[str], **data):
    files = [("files", (name, b"%PDF-1.4 page", "application/octet-stream")) for name in names]
    return await async_client.put(
        f"/api/v1/dossiers/{DOSSIER_UUID}/documents/{document_type}",
        files=files,
        data={key: str(value).lower() if isinstance(value, bool) else value for key, value in data.items()},
        headers=headers,
    )


async def test_api_key_is_required(async_client: AsyncClient, roles) -> None:
    response = await async_client.get(f"/api/v1/dossiers/{DOSSIER_UUID}")
    assert response.status_code == 401
    assert response.json()["code"] == "E_INVALID_SCHEMA_TOKEN"

    response = await async_client.get(f"/api/v1/dossiers/{DOSSIER_UUID}", headers={"X-Api-Key": "wrong"})
    assert response.status_code == 401


async def test_schema_access_is_enforced(async_client: AsyncClient, api_key_headers) -> None:
    response = await async_client.post(
        "/api/v1/dossiers", json={"uuid": DOSSIER_UUID, "schema": "strizh_offer"}, headers=api_key_headers
    )
    assert response.status_code == 403
    assert response.json()["code"] == "E_SCHEMA_ACCESS_DENIED"


async def test_create_and_get_dossier(async_client: AsyncClient, api_key_headers) -> None:
    data = await create_dossier(async_client, api_key_headers)
    assert data["schema"] == "example"
    assert data["documents"] == []

    response = await async_client.get(
        f"/api/v1/dossiers/{DOSSIER_UUID}", params={"status": "CREATION"}, headers=api_key_headers
    )
    assert response.status_code == 200
    assert response.json()["missing_documents"] == ["passport"]

    response = await async_client.post(
        "/api/v1/dossiers", json={"uuid": DOSSIER_UUID, "schema": "example"}, headers=api_key_headers
    )
    assert response.status_code == 409


async def test_missing_dossier(async_client: AsyncClient, api_key_headers) -> None:
    response = await async_client.get("/api/v1/dossiers/unknown", headers=api_key_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "E_DOSSIER_NOT_FOUND"


async def test_get_with_schema_creates_dossier_on_first_read(async_client: AsyncClient, api_key_headers) -> None:
    url = f"/api/v1/dossiers/{DOSSIER_UUID}"
    response = await async_client.get(url, params={"schema": "example", "status": "CREATION"}, headers=api_key_headers)
    assert response.status_code == 200
    assert response.json()["uuid"] == DOSSIER_UUID
    assert response.json()["schema"] == "example"
    assert response.json()["missing_documents"] == ["passport"]

    # Segunda leitura devolve o mesmo dossiê, com ou sem schema
    response = await async_client.get(url, params={"schema": "example"}, headers=api_key_headers)
    assert response.status_code == 200
    response = await async_client.get(url, headers=api_key_headers)
    assert response.status_code == 200
    assert response.json()["schema"] == "example"


async def test_get_with_inaccessible_schema_creates_nothing(async_client: AsyncClient, api_key_headers) -> None:
    url = f"/api/v1/dossiers/{DOSSIER_UUID}"
    response = await async_client.get(url, params={"schema": "strizh_offer"}, headers=api_key_headers)
    assert response.status_code == 403
    assert response.json()["code"] == "E_SCHEMA_ACCESS_DENIED"

    response = await async_client.get(url, headers=api_key_headers)
    assert response.status_code == 404


async def test_upload_and_read_document(async_client: AsyncClient, api_key_headers) -> None:
    await create_dossier(async_client, api_key_headers)

    response = await put_files(async_client, api_key_headers, "passport", ["front.pdf", "back.jpg"])
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["pages_added"] == 2
    pages = data["document"]["pages"]
    assert [page["page_number"] for page in pages] == [1, 2]
    assert pages[1]["mime_type"] == "image/jpeg"

    response = await async_client.get(f"/api/v1/dossiers/{DOSSIER_UUID}/documents/passport", headers=api_key_headers)
    assert response.status_code == 200
    assert len(response.json()["pages"]) == 2

    response = await async_client.get(
        f"/api/v1/dossiers/{DOSSIER_UUID}/documents/passport/pages/{pages[0]['uuid']}", headers=api_key_headers
    )
    assert response.status_code == 200
    assert response.content == b"%PDF-1.4 page"
    assert response.headers["content-type"] == "application/pdf"

    response = await async_client.get(
        f"/api/v1/dossiers/{DOSSIER_UUID}", params={"status": "CREATION"}, headers=api_key_headers
    )
    assert response.json()["missing_documents"] == []


async def test_upload_with_invalid_extension(async_client: AsyncClient, api_key_headers) -> None:
    await create_dossier(async_client, api_key_headers)

    response = await put_files(async_client, api_key_headers, "passport", ["front.pdf", "virus.exe"])
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "E_INVALID_FILE_TYPE"
    assert "virus.exe" in data["detail"]

    response = await async_client.get(f"/api/v1/dossiers/{DOSSIER_UUID}/documents/passport", headers=api_key_headers)
    assert response.status_code == 404


async def test_upload_in_non_editable_status(async_client: AsyncClient, api_key_headers) -> None:
    await create_dossier(async_client, api_key_headers)

    response = await put_files(async_client, api_key_headers, "passport", ["front.pdf"], status="APPROVED")
    assert response.status_code == 409
    assert response.json()["code"] == "E_DOCUMENT_NOT_EDITABLE"


async def test_delete_page(async_client: AsyncClient, api_key_headers) -> None:
    await create_dossier(async_client, api_key_headers)
    response = await put_files(async_client, api_key_headers, "passport", ["front.pdf", "back.pdf"])
    page_uuid = response.json()["document"]["pages"][0]["uuid"]
    url = f"/api/v1/dossiers/{DOSSIER_UUID}/documents/passport/pages/{page_uuid}"

    response = await async_client.delete(url, headers=api_key_headers)
    assert response.status_code == 204

    response = await async_client.get(url, headers=api_key_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "E_PAGE_NOT_FOUND"

    response = await async_client.get(f"/api/v1/dossiers/{DOSSIER_UUID}/documents/passport", headers=api_key_headers)
    assert [page["name"] for page in response.json()["pages"]] == ["back.pdf"]


async def test_version_lifecycle(async_client: AsyncClient, api_key_headers) -> None:
    await create_dossier(async_client, api_key_headers)
    response = await put_files(async_client, api_key_headers, "passport", ["front.pdf"])
    first_version = response.json()["version"]["id"]
    base = f"/api/v1/dossiers/{DOSSIER_UUID}/documents/passport/versions"

    response = await async_client.post(base, json={"name": "rascunho"}, headers=api_key_headers)
    assert response.status_code == 201
    draft = response.json()["id"]

    # Criar versão não muda a atual
    response = await async_client.get(f"/api/v1/dossiers/{DOSSIER_UUID}/documents/passport", headers=api_key_headers)
    assert response.json()["current_version_id"] == first_version

    response = await async_client.patch(f"{base}/{draft}", json={"name": "final"}, headers=api_key_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "final"

    response = await async_client.put(f"{base}/{draft}/current", headers=api_key_headers)
    assert response.status_code == 200
    assert response.json()["current_version_id"] == draft
    assert response.json()["pages"] == []

    response = await async_client.delete(f"{base}/{draft}", headers=api_key_headers)
    assert response.status_code == 204

    response = await async_client.get(f"/api/v1/dossiers/{DOSSIER_UUID}/documents/passport", headers=api_key_headers)
    assert response.json()["current_version_id"] == first_version


async def test_version_of_another_document_is_not_found(async_client: AsyncClient, api_key_headers) -> None:
    await create_dossier(async_client, api_key_headers)
    await put_files(async_client, api_key_headers, "passport", ["front.pdf"])
    response = await put_files(async_client, api_key_headers, "otherDocuments", ["misc.pdf"])
    other_version = response.json()["version"]["id"]

    response = await async_client.put(
        f"/api/v1/dossiers/{DOSSIER_UUID}/documents/passport/versions/{other_version}/current",
        headers=api_key_headers,
    )
    assert response.status_code == 404
    assert response.json()["code"] == "E_VERSION_NOT_FOUND"


async def test_get_schema(async_client: AsyncClient, api_key_headers) -> None:
    response = await async_client.get("/api/v1/schemas/example", headers=api_key_headers)

    assert response.status_code == 200
    documents = {doc["type"]: doc for doc in response.json()["documents"]}
    assert documents["passport"]["required_statuses"] == ["CREATION"]
    assert "pdf" in documents["passport"]["allowed_extensions"]

    response = await async_client.get("/api/v1/schemas", headers=api_key_headers)
    assert response.json() == ["example"]

    response = await async_client.get("/api/v1/schemas/strizh_offer", headers=api_key_headers)
    assert response.status_code == 403
