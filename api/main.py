from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date
import logging
from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response

from api.schemas import ConfigResponse, EntriesResponse, EntryForm, OutcomeResponse
from survey.config import MESSAGES, SurveyConfig, configure_logging, load_config
from survey.errors import DuplicateEntryError, InvalidEntryError, NoDataError
from survey.export import (
    XLSX_MEDIA_TYPE,
    build_all_entries_report,
    build_overall_report,
    build_profession_report,
    report_filename,
)
from survey.service import Outcome, SurveyService


logger = logging.getLogger(__name__)


def _json(data: object, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(data))


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _outcome(outcome: Outcome, status_code: int) -> JSONResponse:
    return _json(OutcomeResponse(**outcome.to_dict()).model_dump(), status_code=status_code)


def _content_disposition(filename: str) -> str:
    # Header values must be latin-1; non-ASCII names go through the RFC 5987 form.
    fallback = filename.encode("ascii", "ignore").decode("ascii").strip("_") or "report.xlsx"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def _xlsx(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition(filename)},
    )


def _submit_status(outcome: Outcome) -> int:
    if outcome.ok:
        return 201
    if isinstance(outcome.error, DuplicateEntryError):
        return 409
    if isinstance(outcome.error, InvalidEntryError):
        return 422
    return 500


def create_app(service: Optional[SurveyService] = None, config: Optional[SurveyConfig] = None) -> FastAPI:
    if service is not None:
        config = service.config
    config = config or load_config()
    configure_logging(config.log_level)
    svc = service or SurveyService.from_config(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if config.auto_refresh_enabled:
            svc.start_auto_refresh(immediate=True)
        try:
            yield
        finally:
            svc.stop_auto_refresh()

    app = FastAPI(title="MyGP Survey API", version="0.1.0", lifespan=lifespan)
    app.state.service = svc

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:8501", "http://127.0.0.1:8501"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return _json({"status": "ok", "entries": svc.store.count()})

    @app.get("/meta/config")
    def meta_config():
        payload = ConfigResponse(
            professions=list(config.professions),
            reasons=list(config.reasons.values()),
            phone_input_prefix=config.phone_input_prefix,
            auto_refresh_interval=config.auto_refresh_interval,
            auto_refresh_enabled=config.auto_refresh_enabled,
        )
        return _json(payload.model_dump())

    @app.get("/entries")
    def entries():
        try:
            current = list(svc.current())
            return _json(EntriesResponse(count=len(current), entries=current).model_dump())
        except Exception as exc:
            logger.exception("entries failed")
            return _error(exc)

    @app.post("/entries")
    def submit_entry(form: EntryForm):
        try:
            outcome = svc.submit(form.model_dump())
            return _outcome(outcome, _submit_status(outcome))
        except Exception as exc:
            logger.exception("submit_entry failed")
            return _error(exc)

    @app.get("/summary")
    def summary():
        try:
            return _json(svc.snapshot().to_dict())
        except Exception as exc:
            logger.exception("summary failed")
            return _error(exc)

    @app.get("/charts")
    def charts():
        try:
            return _json(svc.charts())
        except Exception as exc:
            logger.exception("charts failed")
            return _error(exc)

    @app.post("/refresh")
    def refresh():
        try:
            outcome = svc.refresh(user_initiated=True)
            return _outcome(outcome, 200 if outcome.ok else 502)
        except Exception as exc:
            logger.exception("refresh failed")
            return _error(exc)

    @app.get("/export/overall")
    def export_overall():
        try:
            today = date.today()
            content = build_overall_report(svc.current(), config, today=today)
            return _xlsx(content, report_filename("overall", today=today))
        except NoDataError as exc:
            return _json({"error": MESSAGES["no_data"], "type": type(exc).__name__}, status_code=404)
        except Exception as exc:
            logger.exception("export_overall failed")
            return _error(exc)

    @app.get("/export/all-entries")
    def export_all_entries():
        try:
            today = date.today()
            content = build_all_entries_report(svc.current())
            return _xlsx(content, report_filename("all-entries", today=today))
        except NoDataError as exc:
            return _json({"error": MESSAGES["no_data"], "type": type(exc).__name__}, status_code=404)
        except Exception as exc:
            logger.exception("export_all_entries failed")
            return _error(exc)

    @app.get("/export/profession/{profession}")
    def export_profession(profession: str):
        try:
            today = date.today()
            content = build_profession_report(svc.current(), profession)
            return _xlsx(content, report_filename("profession", today=today, profession=profession))
        except NoDataError as exc:
            return _json({"error": MESSAGES["no_data"], "type": type(exc).__name__}, status_code=404)
        except Exception as exc:
            logger.exception("export_profession failed")
            return _error(exc)

    return app


app = create_app()
