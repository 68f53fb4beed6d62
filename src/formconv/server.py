"""
HTTP front end.

    POST /result.json        excelFile            -> converted form
    POST /translation.json   excelFile, lang      -> translation map

GET on an endpoint answers with a usage hint. Every response allows
cross-origin requests.
"""

from __future__ import annotations

import io
import json
import logging
import os
from typing import Optional

from flask import Flask, Response, request

from formconv.config import ServerConfig, configure_logging
from formconv.convert import convert
from formconv.exceptions import FormconvError
from formconv.languages import has_default_lang, merge_maps, translation
from formconv.rows import DEFAULT_LANGUAGE
from formconv.serialization import form_to_json
from formconv.workbook import open_workbook
from formconv.xlsform import dec_xlsform

logger = logging.getLogger(__name__)

USAGE_HINT = "You should POST an excel file here.\n"
JSON_MIMETYPE = "application/json"


def _text(body: str, status: int = 200) -> Response:
    return Response(body, status=status, mimetype="text/plain")


def _json(body: str) -> Response:
    return Response(body, status=200, mimetype=JSON_MIMETYPE)


def _uploaded_workbook():
    upload = request.files.get("excelFile")
    if upload is None or upload.filename == "":
        return None, _text("Error retrieving POST file: missing excelFile", 400)
    ext = os.path.splitext(upload.filename)[1]
    try:
        return open_workbook(io.BytesIO(upload.read()), ext), None
    except FormconvError as e:
        return None, _text(f"Error opening workbook: {e}", 422)


def create_app(config: Optional[ServerConfig] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        config: Server settings; only static_dir is used here
    """
    static_dir = config.static_dir if config else None
    if static_dir:
        app = Flask(__name__, static_folder=os.path.abspath(static_dir), static_url_path="")
    else:
        app = Flask(__name__, static_folder=None)

    @app.after_request
    def allow_origins(response: Response) -> Response:
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    if static_dir:
        @app.route("/")
        def index():
            return app.send_static_file("index.html")

    @app.route("/result.json", methods=["GET", "POST", "OPTIONS"])
    def result():
        if request.method == "OPTIONS":
            return _text("")
        if request.method == "GET":
            return _text(USAGE_HINT)

        wb, error = _uploaded_workbook()
        if error is not None:
            return error
        try:
            xls = dec_xlsform(wb)
        except FormconvError as e:
            return _text(f"Error decoding xlsform: {e}", 422)
        try:
            form = convert(xls)
        except FormconvError as e:
            logger.info("Conversion of %s failed: %s", request.files["excelFile"].filename, e)
            return _text(f"{e}\n", 422)
        return _json(form_to_json(form))

    @app.route("/translation.json", methods=["GET", "POST", "OPTIONS"])
    def translation_map():
        if request.method == "OPTIONS":
            return _text("")
        if request.method == "GET":
            return _text(USAGE_HINT)

        wb, error = _uploaded_workbook()
        if error is not None:
            return error
        survey = wb.rows("survey")
        choices = wb.rows("choices")
        source_lang = "" if has_default_lang(survey) else DEFAULT_LANGUAGE
        target_lang = request.form.get("lang", "")
        result = merge_maps(
            translation(survey, source_lang, target_lang),
            translation(choices, source_lang, target_lang),
        )
        return _json(json.dumps(result, indent="\t", ensure_ascii=False) + "\n")

    return app


def main() -> None:
    config = ServerConfig.from_env()
    configure_logging(config.log_level)
    app = create_app(config)
    logger.info("Listening on port %d", config.port)
    app.run(host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    main()
