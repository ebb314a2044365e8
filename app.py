"""Application entry point for the MathML accessibility service using FastAPI."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.config import Settings, settings as default_settings
from core.logger import init_logging, logger
from services.cache import MathMLCache
from services.compatibility import detect_mathml_version, migrate_mathml, migration_recommendations
from services.pipeline import AlixThresholds, MathPipeline
from services.spoken_text import MathMLParseError
from utils.mathml_validator import MathMLValidationError, validate_mathml

NON_MATH_CONTENT_TYPES = ("chemistry", "physics", "other")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

USAGE_MESSAGE = (
    "Use POST instead of GET with optional query variables: 'noImage' (ALIX threshold number) "
    "and 'noEquationText' (ALIX threshold number), and payload: "
    '{ "contentType": "math|chemistry|physics|other", "content": "..." }'
)


class MathRequest(BaseModel):
    contentType: Optional[str] = None
    content: Optional[str] = None


class ContentRequest(BaseModel):
    content: Optional[str] = None


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_threshold(raw: Optional[str], default: int) -> int:
    """Read the leading integer of a query value; missing, zero or non-numeric values use the default."""
    match = _LEADING_INT.match(raw or "")
    value = int(match.group(1)) if match else 0
    return value or default


def create_app(config: Settings | None = None, cache: MathMLCache | None = None) -> FastAPI:
    """Create FastAPI app with conversion, cache and migration routes."""
    config = config or default_settings
    app = FastAPI(title="MathML Accessibility Service", version=config.version)

    if cache is None:
        cache = MathMLCache(max_size=config.cache_size)
    pipeline = MathPipeline(cache)
    app.state.cache = cache
    app.state.pipeline = pipeline

    @app.on_event("startup")
    async def startup_event() -> None:
        init_logging()
        logger.info("FastAPI service started (cache size %d)", cache.max_size)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"name": config.name, "version": config.version, "timestamp": _timestamp()}

    @app.get("/")
    async def usage() -> JSONResponse:
        return JSONResponse(
            {"success": False, "name": config.name, "version": config.version, "message": USAGE_MESSAGE},
            status_code=400,
        )

    @app.post("/")
    async def convert(
        payload: MathRequest,
        noImage: Optional[str] = None,
        noEquationText: Optional[str] = None,
        version: Optional[str] = None,
    ) -> JSONResponse:
        """Convert MathML to words, ASCII math and an ALIX score."""
        if not payload.contentType or not payload.content:
            return JSONResponse({"success": False, "error": "Missing contentType or content"}, status_code=400)
        if payload.contentType in NON_MATH_CONTENT_TYPES:
            return JSONResponse({"success": False, "error": "non-mathematical formula"}, status_code=501)
        if payload.contentType != "math":
            return JSONResponse({"success": False, "error": "unknown content type"}, status_code=400)

        content = payload.content
        thresholds = AlixThresholds(
            no_image=_parse_threshold(noImage, config.no_image_threshold),
            no_equation_text=_parse_threshold(noEquationText, config.no_equation_text_threshold),
        )

        version_info = detect_mathml_version(content)
        compatibility_mode = version == "1.0.0" or version_info.compatibility_mode
        validation = validate_mathml(
            content, strict_mode=not version_info.compatibility_mode, allow_legacy=True
        )
        for warning in validation.warnings:
            logger.warning("Validation warning: %s", warning)

        try:
            validation.raise_for_errors()
            result = pipeline.generate(content, thresholds)
        except MathMLValidationError as exc:
            logger.warning("%s", exc)
            return JSONResponse(
                {
                    "success": False,
                    "error": "MathML validation failed",
                    "validationErrors": exc.result.errors,
                    "validationWarnings": exc.result.warnings,
                    "legacyFeatures": exc.result.legacy_features,
                },
                status_code=400,
            )
        except MathMLParseError as exc:
            logger.warning("Invalid content: %s", exc)
            return JSONResponse({"success": False, "error": "Invalid content"}, status_code=400)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Conversion failed: %s", exc)
            return JSONResponse({"success": False, "error": str(exc)}, status_code=500)

        body = {
            "success": result.success,
            "input": {"mathml": content, "version": version or "2.0.0"},
            "output": {
                "text": {
                    "words": list(result.words),
                    "text": result.text,
                    "ascii": result.ascii,
                },
                "attributes": {
                    "language": result.language,
                    "display": result.display,
                    "alix": result.alix,
                    "alixThresholdNoImage": thresholds.no_image,
                    "alixThresholdNoEquationText": thresholds.no_equation_text,
                    "showImage": result.show_image,
                    "showEquationText": result.show_equation_text,
                    "compatibilityMode": compatibility_mode,
                },
            },
        }
        if version_info.is_legacy or version_info.legacy_features:
            body["backwardCompatibility"] = {
                "isLegacy": version_info.is_legacy,
                "legacyFeatures": version_info.legacy_features,
                "migrationHints": version_info.migration_hints,
                "migrationRecommendations": migration_recommendations(version_info),
                "compatibilityMode": compatibility_mode,
            }
        return JSONResponse(body)

    @app.get("/cache-stats")
    async def cache_stats() -> dict:
        stats = cache.get_stats()
        return {
            "success": True,
            "cache": {
                "size": stats["size"],
                "maxSize": stats["max_size"],
                "hitRate": f"{round(stats['hit_rate'] * 100)}%",
                "hitCount": stats["hit_count"],
                "missCount": stats["miss_count"],
                "totalRequests": stats["total_requests"],
            },
        }

    @app.post("/cache-clear")
    async def cache_clear() -> dict:
        cache.clear()
        return {"success": True, "message": "Cache cleared successfully"}

    @app.post("/migrate")
    async def migrate(payload: ContentRequest) -> JSONResponse:
        """Detect legacy features and return migrated MathML."""
        if not payload.content:
            return JSONResponse({"success": False, "error": "Missing content parameter"}, status_code=400)
        try:
            version_info = detect_mathml_version(payload.content)
            migration = migrate_mathml(payload.content)
            validation = validate_mathml(migration.migrated_content, strict_mode=True, allow_legacy=False)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Migration failed: %s", exc)
            return JSONResponse(
                {"success": False, "error": "Migration failed", "message": str(exc)}, status_code=500
            )
        return JSONResponse({
            "success": True,
            "originalContent": payload.content,
            "migratedContent": migration.migrated_content,
            "versionInfo": version_info.as_dict(),
            "migrationResult": {
                "changes": migration.changes,
                "warnings": migration.warnings,
                "success": migration.success,
            },
            "validationResult": validation.as_dict(),
            "recommendations": migration_recommendations(version_info),
            "timestamp": _timestamp(),
        })

    @app.post("/detect-version")
    async def detect_version(payload: ContentRequest) -> JSONResponse:
        if not payload.content:
            return JSONResponse({"success": False, "error": "Missing content parameter"}, status_code=400)
        version_info = detect_mathml_version(payload.content)
        return JSONResponse({
            "success": True,
            "versionInfo": version_info.as_dict(),
            "recommendations": migration_recommendations(version_info),
            "timestamp": _timestamp(),
        })

    return app


def main() -> None:
    """Entry point for CLI; starts the FastAPI server."""
    init_logging()
    logger.info("Starting FastAPI server at %s:%s", default_settings.host, default_settings.port)
    uvicorn.run(create_app(), host=default_settings.host, port=default_settings.port)


if __name__ == "__main__":
    main()
