"""
Tests for the HTTP front end, through the Flask test client.
"""

import io

import pytest

from conftest import write_xlsx
from formconv.config import ServerConfig
from formconv.server import USAGE_HINT, create_app


@pytest.fixture
def client():
    app = create_app(ServerConfig(port=8080))
    app.config["TESTING"] = True
    return app.test_client()


def upload(path, name="form.xlsx", **fields):
    data = dict(fields)
    data["excelFile"] = (io.BytesIO(path.read_bytes()), name)
    return data


class TestResult:

    def test_get_hint(self, client):
        response = client.get("/result.json")
        assert response.status_code == 200
        assert response.get_data(as_text=True) == USAGE_HINT
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_options(self, client):
        response = client.open("/result.json", method="OPTIONS")
        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_convert(self, client, xlsx_file):
        response = client.post("/result.json", data=upload(xlsx_file), content_type="multipart/form-data")
        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        form = response.get_json()
        assert [s["name"] for s in form["nodes"]] == ["slide0", "details"]
        assert form["translations"]["Italian"]["First name"] == "Nome"

    def test_missing_file(self, client):
        response = client.post("/result.json", data={}, content_type="multipart/form-data")
        assert response.status_code == 400

    def test_unsupported_extension(self, client, xlsx_file):
        response = client.post(
            "/result.json", data=upload(xlsx_file, name="form.xls"), content_type="multipart/form-data",
        )
        assert response.status_code == 422
        assert "Unsupported excel file type" in response.get_data(as_text=True)

    def test_conversion_error(self, client, tmp_path):
        path = write_xlsx(
            tmp_path / "bad.xlsx",
            survey=[["type", "name", "label"], ["text", "1bad", "Bad"]],
        )
        response = client.post("/result.json", data=upload(path), content_type="multipart/form-data")
        assert response.status_code == 422
        assert "line 2: Name '1bad' is not a valid identifier." in response.get_data(as_text=True)

    def test_decode_error(self, client, tmp_path):
        path = write_xlsx(tmp_path / "bad.xlsx", choices=[["list name", "name", "label"]])
        response = client.post("/result.json", data=upload(path), content_type="multipart/form-data")
        assert response.status_code == 422
        assert "Missing mandatory sheet" in response.get_data(as_text=True)


class TestTranslation:

    def test_get_hint(self, client):
        assert client.get("/translation.json").get_data(as_text=True) == USAGE_HINT

    def test_translation(self, client, xlsx_file):
        response = client.post(
            "/translation.json",
            data=upload(xlsx_file, lang="Italian"),
            content_type="multipart/form-data",
        )
        assert response.status_code == 200
        assert response.get_json() == {
            "First name": "Nome",
            "Adult?": "Adulto?",
            "Details": "Dettagli",
            "Age": "Età",
            "Yes": "Sì",
        }

    def test_english_source(self, client, tmp_path):
        path = write_xlsx(
            tmp_path / "en.xlsx",
            survey=[["type", "name", "label::English (en)", "label::French (fr)"], ["text", "a", "Bread", "Pain"]],
        )
        response = client.post(
            "/translation.json", data=upload(path, lang="French"), content_type="multipart/form-data",
        )
        assert response.get_json() == {"Bread": "Pain"}


class TestStatic:

    def test_index(self, tmp_path):
        (tmp_path / "index.html").write_text("<h1>formconv</h1>")
        app = create_app(ServerConfig(port=8080, static_dir=str(tmp_path)))
        response = app.test_client().get("/")
        assert response.status_code == 200
        assert b"formconv" in response.data
