import logging
import threading
import uuid
from collections import OrderedDict

from flask import Flask, jsonify, request
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException

import config
from chat import ChatSession
from consultant import ConsultingOrchestrator
from creator_tools import analyze_channel, brainstorm_ideas
from errors import (
    CreatorBoostError,
    ErrorCategory,
    MissingCredentialError,
    NotFoundError,
    ValidationError,
    classify_error,
    user_message,
)
from generators import generate_full_script, generate_storyboard, generate_thumbnail
from models import ScriptOutline, WorkflowMode
from quota import VIDEO_LOOKUP_COST, QuotaTracker
from settings_store import SettingsStore
from youtube_api import YouTubeClient

logger = logging.getLogger(__name__)

app = Flask(__name__)

settings = SettingsStore(config.SETTINGS_FILE)
quota = QuotaTracker(settings)
orchestrator = ConsultingOrchestrator(settings, quota)

# In-memory task storage
tasks: dict[str, dict] = {}
# Least recently used first
chat_sessions: OrderedDict[str, ChatSession] = OrderedDict()
MAX_CHAT_SESSIONS = config.CHAT_SESSION_LIMIT

HTTP_STATUS = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.INVALID_INPUT: 400,
    ErrorCategory.MISSING_CREDENTIAL: 401,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.BUSY: 409,
    ErrorCategory.REQUEST_FAILED: 502,
    ErrorCategory.EMPTY_RESULT: 502,
    ErrorCategory.UNKNOWN: 500,
}


def _error_payload(category: ErrorCategory, detail: str = "") -> dict:
    return {"error": category.value, "message": user_message(category), "detail": detail}


@app.errorhandler(CreatorBoostError)
def handle_app_error(e: CreatorBoostError):
    return jsonify(_error_payload(e.category, str(e))), HTTP_STATUS[e.category]


@app.errorhandler(Exception)
def handle_unexpected_error(e: Exception):
    if isinstance(e, HTTPException):
        return e
    logger.exception("Request failed")
    category = classify_error(e)
    return jsonify(_error_payload(category, str(e))), HTTP_STATUS[category]


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


def _required(data: dict, field: str) -> str:
    value = str(data.get(field) or "").strip()
    if not value:
        raise ValidationError(f"{field} is required")
    return value


def _start_task(target, *args) -> str:
    task_id = str(uuid.uuid4())
    tasks[task_id] = {
        "status": "queued",
        "message": "Starting...",
        "result": None,
    }
    thread = threading.Thread(target=target, args=(task_id, *args), daemon=True)
    thread.start()
    return task_id


def _fail_task(task: dict, e: Exception):
    category = classify_error(e)
    if isinstance(e, CreatorBoostError):
        logger.warning("Task failed: %s", e)
    else:
        logger.exception("Task failed")
    task["status"] = "error"
    task["error"] = category.value
    task["message"] = user_message(category)
    task["detail"] = str(e)


def _run_ideas(task_id: str, keyword: str, language: str):
    task = tasks[task_id]
    try:
        task["status"] = "generating"
        task["message"] = f"Brainstorming ideas for: {keyword}"
        ideas = brainstorm_ideas(keyword, language)
        task["result"] = [idea.model_dump() for idea in ideas]
        task["status"] = "done"
        task["message"] = f"Done. {len(ideas)} ideas."
    except Exception as e:
        _fail_task(task, e)


def _run_channel(task_id: str, identifier: str):
    task = tasks[task_id]

    def on_progress(status, message):
        task["status"] = status
        task["message"] = message

    def on_channel(channel):
        task["result"] = {"channel": channel.model_dump(), "analysis": None}

    try:
        report = analyze_channel(
            identifier, settings, quota, on_progress=on_progress, on_channel=on_channel
        )
        task["result"] = report.model_dump()
        task["status"] = "done"
        task["message"] = f"Done. Analyzed {report.channel.title}."
    except Exception as e:
        _fail_task(task, e)


def _run_thumbnail(task_id: str, concept: str):
    task = tasks[task_id]
    try:
        task["status"] = "generating"
        task["message"] = "Generating thumbnail..."
        task["result"] = {"image_b64": generate_thumbnail(concept)}
        task["status"] = "done"
        task["message"] = "Done."
    except Exception as e:
        _fail_task(task, e)


def _run_script(task_id: str, outline: ScriptOutline, title: str, language: str):
    task = tasks[task_id]
    try:
        task["status"] = "generating"
        task["message"] = "Writing full script..."
        task["result"] = {"script": generate_full_script(outline, title, language)}
        task["status"] = "done"
        task["message"] = "Done."
    except Exception as e:
        _fail_task(task, e)


def _run_storyboard(task_id: str, outline: ScriptOutline, title: str, language: str):
    task = tasks[task_id]

    def on_progress(storyboard):
        task["status"] = "generating"
        task["result"] = storyboard.model_dump()
        progress = storyboard.progress
        if progress.total:
            task["message"] = f"Drawing scene {progress.current}/{progress.total}..."
        else:
            task["message"] = progress.current_step_label or "Writing scenes..."

    storyboard = generate_storyboard(title, outline, language, on_progress=on_progress)
    task["result"] = storyboard.model_dump()
    if storyboard.error:
        task["status"] = "error"
        task["error"] = storyboard.error.value
        task["message"] = user_message(storyboard.error)
        task["detail"] = storyboard.error_message
    else:
        task["status"] = "done"
        task["message"] = f"Done. {len(storyboard.scenes)} scenes."


def _run_consulting(benchmark_input: str, user_input: str, mode: WorkflowMode):
    orchestrator.run(benchmark_input, user_input, mode, reserved=True)


def _run_chat(session: ChatSession, message: str):
    session.send(message, reserved=True)


def _new_chat_session() -> tuple[str, ChatSession]:
    excess = len(chat_sessions) - MAX_CHAT_SESSIONS + 1
    if excess > 0:
        idle = [sid for sid, s in chat_sessions.items() if not s.busy]
        for sid in idle[:excess]:
            del chat_sessions[sid]
            logger.debug("Evicted chat session %s", sid)
    session_id = str(uuid.uuid4())
    session = chat_sessions[session_id] = ChatSession(settings.language)
    return session_id, session


def _get_chat_session(session_id: str) -> ChatSession:
    session = chat_sessions.get(session_id)
    if session is None:
        raise NotFoundError("Chat session not found")
    chat_sessions.move_to_end(session_id)
    return session


def _outline_request() -> tuple[ScriptOutline, str]:
    data = _json_body()
    title = _required(data, "title")
    outline = data.get("outline")
    if not isinstance(outline, dict):
        raise ValidationError("outline is required")
    try:
        return ScriptOutline(**outline), title
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid script outline: {e}") from e


@app.route("/api/ideas", methods=["POST"])
def api_ideas():
    keyword = _required(_json_body(), "keyword")
    task_id = _start_task(_run_ideas, keyword, settings.language)
    return jsonify({"task_id": task_id})


@app.route("/api/channel", methods=["POST"])
def api_channel():
    if not settings.youtube_api_key:
        raise MissingCredentialError("YouTube API key is not set")
    identifier = _required(_json_body(), "channel")
    task_id = _start_task(_run_channel, identifier)
    return jsonify({"task_id": task_id})


@app.route("/api/status/<task_id>")
def api_status(task_id):
    task = tasks.get(task_id)
    if not task:
        raise NotFoundError("Task not found")
    return jsonify(task)


@app.route("/api/consult", methods=["POST"])
def api_consult():
    data = _json_body()
    try:
        mode = WorkflowMode(data.get("mode", WorkflowMode.NEW.value))
    except ValueError:
        raise ValidationError(f"Unknown mode: {data.get('mode')!r}") from None
    orchestrator.reserve()

    thread = threading.Thread(
        target=_run_consulting,
        args=(str(data.get("benchmark") or ""), str(data.get("user_video") or ""), mode),
        daemon=True,
    )
    thread.start()
    return jsonify({"status": "started"}), 202


@app.route("/api/consult")
def api_consult_status():
    payload = orchestrator.current.model_dump(mode="json")
    payload["busy"] = orchestrator.busy
    if orchestrator.current.error:
        payload["message"] = user_message(orchestrator.current.error)
    return jsonify(payload)


@app.route("/api/thumbnail", methods=["POST"])
def api_thumbnail():
    concept = _required(_json_body(), "concept")
    return jsonify({"task_id": _start_task(_run_thumbnail, concept)})


@app.route("/api/script", methods=["POST"])
def api_script():
    outline, title = _outline_request()
    return jsonify({"task_id": _start_task(_run_script, outline, title, settings.language)})


@app.route("/api/storyboard", methods=["POST"])
def api_storyboard():
    outline, title = _outline_request()
    return jsonify({"task_id": _start_task(_run_storyboard, outline, title, settings.language)})


@app.route("/api/chat", methods=["POST"])
def api_chat():
    data = _json_body()
    message = _required(data, "message")
    session_id = data.get("session_id")
    if session_id:
        session = _get_chat_session(session_id)
    else:
        session_id, session = _new_chat_session()
    session.reserve()

    thread = threading.Thread(target=_run_chat, args=(session, message), daemon=True)
    thread.start()
    return jsonify({"session_id": session_id}), 202


@app.route("/api/chat/<session_id>")
def api_chat_messages(session_id):
    session = _get_chat_session(session_id)
    return jsonify({
        "session_id": session_id,
        "busy": session.busy,
        "messages": [m.model_dump() for m in session.messages],
    })


@app.route("/api/settings")
def api_settings():
    return jsonify({
        "has_youtube_api_key": bool(settings.youtube_api_key),
        "language": settings.language,
        "languages": config.LANGUAGES,
    })


@app.route("/api/settings", methods=["POST"])
def api_update_settings():
    data = _json_body()
    if "youtube_api_key" in data:
        settings.youtube_api_key = str(data["youtube_api_key"] or "")
    if "language" in data:
        settings.language = str(data["language"])
    return api_settings()


@app.route("/api/settings/test", methods=["POST"])
def api_test_key():
    api_key = str(_json_body().get("youtube_api_key") or settings.youtube_api_key)
    if not api_key:
        return jsonify({"valid": False})
    valid = YouTubeClient(api_key).validate_key()
    quota.increment_by(VIDEO_LOOKUP_COST)
    return jsonify({"valid": valid})


@app.route("/api/quota")
def api_quota():
    return jsonify(quota.snapshot())


if __name__ == "__main__":
    config.setup_logging()
    app.run(debug=True, port=5000)
