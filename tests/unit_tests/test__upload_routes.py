from fastapi import status
from fastapi.testclient import TestClient

from tests.consts import TEST_BUCKET_NAME, TEST_PUBLIC_BASE_URL, TEST_UPLOAD_PREFIX

# Constants for testing
TEST_FILE_NAME = "hello world.txt"
TEST_FILE_CONTENT = b"Hello, world!"
TEST_FILE_CONTENT_TYPE = "text/plain"
TEST_PDF_CONTENT = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<</Root 1 0 R>>\n%%EOF"


def test__upload_file__happy_path(client: TestClient, mocked_aws):
    response = client.post(
        "/api/upload",
        files={"file": (TEST_FILE_NAME, TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE)},
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success"] is True
    assert data["fileName"] == TEST_FILE_NAME
    assert data["size"] == len(TEST_FILE_CONTENT)
    assert data["mimetype"] == TEST_FILE_CONTENT_TYPE
    assert data["filePath"].startswith(f"{TEST_UPLOAD_PREFIX}/")
    assert data["filePath"].endswith("-hello-world.txt")
    assert data["publicUrl"] == f"{TEST_PUBLIC_BASE_URL}/{TEST_BUCKET_NAME}/{data['filePath']}"

    stored = mocked_aws.get_object(Bucket=TEST_BUCKET_NAME, Key=data["filePath"])
    assert stored["Body"].read() == TEST_FILE_CONTENT
    assert stored["ContentType"] == TEST_FILE_CONTENT_TYPE


def test__upload_same_name_twice__gets_two_objects(client: TestClient):
    first = client.post("/api/upload", files={"file": ("a.pdf", TEST_PDF_CONTENT, "application/pdf")})
    second = client.post("/api/upload", files={"file": ("a.pdf", TEST_PDF_CONTENT, "application/pdf")})

    assert first.status_code == second.status_code == status.HTTP_200_OK
    assert first.json()["filePath"] != second.json()["filePath"]


def test__get_upload__method_not_allowed(client: TestClient):
    response = client.get("/api/upload")

    assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
    assert response.json() == {"error": "Method not allowed"}


def test__upload_without_file_field(client: TestClient):
    response = client.post("/api/upload", data={"note": "no file here"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "No file uploaded"}


def test__upload_too_large(client: TestClient, backend):
    backend.settings.max_upload_size_bytes = 4

    response = client.post(
        "/api/upload",
        files={"file": (TEST_FILE_NAME, TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE)},
    )

    assert response.status_code == 413
    assert response.json() == {"error": "File too large"}


def test__upload_backend_failure(client: TestClient, mocked_aws):
    mocked_aws.delete_bucket(Bucket=TEST_BUCKET_NAME)

    response = client.post(
        "/api/upload",
        files={"file": (TEST_FILE_NAME, TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE)},
    )

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["error"] == "Failed to upload file"
    assert data["details"]


def test__batch_upload__all_files(client: TestClient):
    response = client.post(
        "/api/uploads",
        files=[
            ("files", ("one.txt", b"1", "text/plain")),
            ("files", ("two.txt", b"22", "text/plain")),
            ("files", ("three.pdf", TEST_PDF_CONTENT, "application/pdf")),
        ],
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success"] is True
    assert data["summary"] == "3 of 3 complete"
    assert [f["fileName"] for f in data["files"]] == ["one.txt", "two.txt", "three.pdf"]
    assert [f["size"] for f in data["files"]] == [1, 2, len(TEST_PDF_CONTENT)]

    listing = client.get("/api/files").json()
    assert listing["total_count"] == 3


def test__batch_upload__empty_selection(client: TestClient, mocked_aws):
    response = client.post("/api/uploads")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Please select a file first"}
    assert mocked_aws.list_objects_v2(Bucket=TEST_BUCKET_NAME)["KeyCount"] == 0
