import datetime
import logging
import os
from dataclasses import dataclass

from flask import Blueprint, Flask, current_app, jsonify, request

from . import accounts
from .config import Settings, settings as default_settings
from .db import get_db, init_db, make_engine, make_session_factory
from .envato import EnvatoClient
from .log import configure_logging
from .mailer import SendGridMailer
from .messages import messages_for
from .registry import PurchaseCodeStore, RegistryGuard
from .results import ErrorKind
from .security import bearer_token, sign_token, unsign_token, verify_helpscout_signature
from .tickets import submit_ticket
from .views import purchase_statuses, render_helpscout, render_purchase_list

logger = logging.getLogger(__name__)

bp = Blueprint("envato_server", __name__)

STATUS_CODES = {
    ErrorKind.EMPTY_CODE: 400,
    ErrorKind.MISSING_USERNAME: 400,
    ErrorKind.INVALID_EMAIL: 400,
    ErrorKind.MISSING_PASSWORD: 400,
    ErrorKind.MISSING_THEME: 400,
    ErrorKind.MISSING_TITLE: 400,
    ErrorKind.MISSING_MESSAGE: 400,
    ErrorKind.BAD_CREDENTIALS: 401,
    ErrorKind.CODE_ALREADY_REGISTERED: 409,
    ErrorKind.USERNAME_TAKEN: 409,
    ErrorKind.EMAIL_TAKEN: 409,
    ErrorKind.INVALID_CODE: 422,
    ErrorKind.TRANSPORT_FAILURE: 502,
    ErrorKind.MAIL_FAILED: 502,
    ErrorKind.MAILBOX_NOT_CONFIGURED: 503,
}


@dataclass
class Services:
    settings: Settings
    client: EnvatoClient
    guard: RegistryGuard
    mailer: SendGridMailer
    session_factory: object


def _services() -> Services:
    return current_app.extensions["envato_server"]


def _db():
    return next(get_db(_services().session_factory))


def _fail(result):
    body = {"ok": False, "errors": [e.value for e in result.errors], "messages": messages_for(result)}
    return jsonify(body), STATUS_CODES.get(result.error, 400)


def _unauthorized(error="unauthorized"):
    return jsonify({"ok": False, "errors": [error]}), 401


def _json_body() -> dict:
    j = request.get_json(force=True, silent=True)
    return j if isinstance(j, dict) else {}


def _current_user(db):
    s = _services().settings
    token = bearer_token(request.headers.get("Authorization", ""))
    if not token:
        return None
    user_id = unsign_token(s.SECRET_KEY, token, max_age_seconds=s.TOKEN_MAX_AGE)
    return accounts.get_user(db, user_id) if user_id is not None else None


def _auth_payload(user):
    token = sign_token(_services().settings.SECRET_KEY, user.id)
    return {"ok": True, "user": user.to_dict(), "token": token}


@bp.get("/")
def root():
    return {"ok": True, "msg": "Envato purchase server running"}


@bp.get("/healthz")
def healthz():
    return {"ok": True}


@bp.post("/api/register")
def register():
    j = _json_body()
    with _db() as db:
        result = accounts.register(
            db, _services().guard,
            username=j.get("username"), email=j.get("email"), password=j.get("password"),
            code=(j.get("purchase_code") or "").strip(), nickname=j.get("nickname"),
        )
        if not result.ok:
            return _fail(result)
        return jsonify(_auth_payload(result.value)), 201


@bp.post("/api/login")
def login():
    j = _json_body()
    with _db() as db:
        result = accounts.authenticate(db, j.get("username"), j.get("password"))
        if not result.ok:
            return _fail(result)
        return jsonify(_auth_payload(result.value))


@bp.post("/api/verify")
def verify():
    j = _json_body()
    code = (j.get("purchase_code") or "").strip()
    details = bool(j.get("details"))
    result = _services().client.verify_purchase(code, details=details)
    if not result.ok:
        return _fail(result)
    if details:
        return jsonify({"ok": True, "purchase": result.value.to_dict()})
    return jsonify({"ok": True, "valid": True})


@bp.get("/api/purchases")
def list_purchases():
    with _db() as db:
        user = _current_user(db)
        if user is None:
            return _unauthorized()
        codes = PurchaseCodeStore(db).codes_for(user.id)

    today = datetime.date.today()
    purchases = []
    for code, result in purchase_statuses(_services().client, codes):
        if result.ok:
            purchases.append({"ok": True, **result.value.to_dict(today)})
        else:
            purchases.append({"ok": False, "code": code, "errors": [e.value for e in result.errors]})
    return jsonify({"ok": True, "purchases": purchases})


@bp.post("/api/purchases")
def add_purchase():
    j = _json_body()
    with _db() as db:
        user = _current_user(db)
        if user is None:
            return _unauthorized()
        code = (j.get("purchase_code") or "").strip()
        result = accounts.add_purchase_code(db, _services().guard, user, code)
        if not result.ok:
            return _fail(result)
        return jsonify({"ok": True, "code": code}), 201


@bp.get("/purchases")
def purchases_fragment():
    with _db() as db:
        user = _current_user(db)
        if user is None:
            return _unauthorized()
        codes = PurchaseCodeStore(db).codes_for(user.id)
    html = render_purchase_list(purchase_statuses(_services().client, codes))
    return html, 200, {"Content-Type": "text/html; charset=utf-8"}


@bp.post("/api/tickets")
def tickets():
    j = _json_body()
    s = _services()
    with _db() as db:
        user = _current_user(db)
        if user is None:
            return _unauthorized()
        result = submit_ticket(
            s.mailer, s.settings.SUPPORT_MAILBOX,
            sender_name=user.display_name, sender_email=user.email,
            theme=j.get("theme"), title=j.get("title"), message=j.get("message"),
        )
    if not result.ok:
        return _fail(result)
    return jsonify({"ok": True})


@bp.post("/helpscout")
def helpscout():
    s = _services()
    body = request.get_data()
    sig = request.headers.get("X-HelpScout-Signature", "")
    if not verify_helpscout_signature(body, sig, s.settings.HELPSCOUT_SECRET):
        return _unauthorized("invalid_signature")

    j = _json_body()
    customer = j.get("customer") or {}
    emails = list(customer.get("emails") or [])
    if customer.get("email"):
        emails.append(customer["email"])

    with _db() as db:
        codes = []
        for user in accounts.users_by_email(db, emails):
            codes.extend(PurchaseCodeStore(db).codes_for(user.id))

    html = render_helpscout(purchase_statuses(s.client, codes))
    return jsonify({"html": "".join(html)})


@bp.get("/api/items/<item_id>")
def item(item_id):
    info = _services().client.item_info(item_id)
    if info is None:
        return jsonify({"ok": False, "errors": [ErrorKind.TRANSPORT_FAILURE.value]}), 502
    return jsonify({"ok": True, "item": info})


@bp.get("/api/users/<username>")
def envato_user(username):
    info = _services().client.user_info(username)
    if info is None:
        return jsonify({"ok": False, "errors": [ErrorKind.TRANSPORT_FAILURE.value]}), 502
    return jsonify({"ok": True, "user": info})


def create_app(config: Settings = None, client: EnvatoClient = None, mailer: SendGridMailer = None) -> Flask:
    config = config or default_settings
    configure_logging(config.LOG_LEVEL, config.LOG_FILE)

    engine = make_engine(config.DATABASE_URL)
    init_db(engine)

    client = client or EnvatoClient(config.ENVATO_TOKEN, timeout=config.ENVATO_TIMEOUT)
    mailer = mailer or SendGridMailer(config.SENDGRID_API_KEY, config.MAIL_FROM,
                                      config.MAIL_FROM_NAME, sandbox=config.SENDGRID_SANDBOX)
    if not config.ENVATO_TOKEN:
        logger.warning("ENVATO_TOKEN not set - purchase verification will fail")

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.SECRET_KEY
    app.extensions["envato_server"] = Services(
        settings=config,
        client=client,
        guard=RegistryGuard(client),
        mailer=mailer,
        session_factory=make_session_factory(engine),
    )
    app.register_blueprint(bp)
    return app


def main():
    app = create_app()
    app.run(host=os.environ.get("HOST", "0.0.0.0"), port=int(os.environ.get("PORT", "8000")))


if __name__ == "__main__":
    main()
