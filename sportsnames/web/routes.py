"""Debug/export API routes.

All routes delegate to the ``TranslationService`` stored in
``app.config["TRANSLATION_SERVICE"]``.
"""

import logging

from flask import current_app, jsonify, request

from sportsnames.models import EntityType

logger = logging.getLogger(__name__)


def _service():
    return current_app.config["TRANSLATION_SERVICE"]


def register_routes(app):
    """Attach the translation API routes to *app*."""

    @app.route("/api/translate/<entity_type>/<path:name>", methods=["GET"])
    def api_translate(entity_type, name):
        try:
            etype = EntityType.parse(entity_type)
        except ValueError as e:
            return jsonify(success=False, error=str(e)), 400

        service = _service()
        country = request.args.get("country") or None
        lang_arg = request.args.get("lang", "")
        langs = [s.strip() for s in lang_arg.split(",") if s.strip()] or service.cache_config.languages

        translations = {}
        sources = {}
        for lang in langs:
            sources[lang] = service.source_of(name, lang, etype, country)
            translations[lang] = service.translate(name, lang, etype, country)
        return jsonify(success=True, name=name, type=etype.value, country=country,
                       translations=translations, sources=sources)

    @app.route("/api/translations/learn", methods=["POST"])
    def api_learn():
        data = request.get_json(silent=True)
        if isinstance(data, dict):
            fixtures = data.get("fixtures", data.get("response"))
        else:
            fixtures = data
        if not isinstance(fixtures, list):
            return jsonify(success=False, error="Expected a JSON array of fixtures or {'fixtures': [...]}"), 400

        service = _service()
        try:
            ingest = service.ingest_fixtures(fixtures)
            drain = request.args.get("drain", "1") != "0"
            result = service.drain_all() if drain else None
            service.store.flush()
        except Exception as e:
            logger.exception("[API] learn failed")
            return jsonify(success=False, error=str(e)), 500

        return jsonify(success=True, ingest=ingest,
                       drain=result.to_dict() if result else None,
                       queue_length=len(service.queue))

    @app.route("/api/translations/learn/standings", methods=["POST"])
    def api_learn_standings():
        data = request.get_json(silent=True)
        if isinstance(data, dict):
            tables = data.get("standings", data.get("response", [data]))
        else:
            tables = data
        if not isinstance(tables, list):
            return jsonify(success=False, error="Expected a JSON array of standings tables"), 400

        service = _service()
        try:
            ingest = service.ingest_standings(tables)
            result = service.drain_all()
            service.store.flush()
        except Exception as e:
            logger.exception("[API] learn standings failed")
            return jsonify(success=False, error=str(e)), 500

        return jsonify(success=True, ingest=ingest, drain=result.to_dict(),
                       queue_length=len(service.queue))

    @app.route("/api/translations/mapping/<entity_type>/<path:name>", methods=["PUT"])
    def api_correct(entity_type, name):
        data = request.get_json(silent=True)
        translations = data.get("translations", data) if isinstance(data, dict) else None
        if not isinstance(translations, dict):
            return jsonify(success=False, error="Expected {'translations': {lang: value}}"), 400
        try:
            mapping = _service().correct_mapping(name, entity_type, translations)
        except ValueError as e:
            return jsonify(success=False, error=str(e)), 400
        return jsonify(success=True, removed=mapping is None,
                       mapping=mapping.to_dict() if mapping is not None else None)

    @app.route("/api/translations/mapping/<entity_type>/<path:name>", methods=["DELETE"])
    def api_remove(entity_type, name):
        try:
            removed = _service().remove_mapping(name, entity_type)
        except ValueError as e:
            return jsonify(success=False, error=str(e)), 400
        if not removed:
            return jsonify(success=False, error=f"No learned {entity_type} named '{name}'"), 404
        return jsonify(success=True, removed=True)

    @app.route("/api/translations/export", methods=["GET"])
    def api_export():
        return jsonify(_service().export_all_mappings())

    @app.route("/api/translations/import", methods=["POST"])
    def api_import():
        data = request.get_json(silent=True)
        if data is None:
            return jsonify(success=False, error="Expected a JSON body"), 400
        service = _service()
        try:
            counts = service.import_mappings(data)
        except ValueError as e:
            return jsonify(success=False, error=str(e)), 400
        service.store.flush()
        return jsonify(success=True, **counts)

    @app.route("/api/translations/stats", methods=["GET"])
    def api_stats():
        return jsonify(success=True, stats=_service().get_stats())
