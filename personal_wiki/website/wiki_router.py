
from flask import (
    Blueprint,
    current_app,
    jsonify,
    render_template,
    request,
)
from markupsafe import Markup

from personal_wiki.config import WRITE_RATE_LIMIT
from personal_wiki.errors import InvalidInput
from personal_wiki.limiter import limiter

wiki_route = Blueprint("wikis", __name__)

WRITE_ENDPOINTS = {"wikis.create_wiki", "wikis.update_wiki", "wikis.delete_wiki"}
CORS_METHODS = "GET, POST, PATCH, DELETE"
CORS_HEADERS = "Content-Type"


class WikiRequest:
    """
    JSON body of the write endpoints. The password never shows up in its repr.
    """

    def __init__(self, username: str, password: str, content: str = None):
        self.username = username
        self.password = password
        self.content = content

    @classmethod
    def from_json(cls, payload, with_content: bool = True) -> "WikiRequest":
        if not isinstance(payload, dict):
            raise InvalidInput("Request body must be a JSON object")

        fields = ["content", "username", "password"] if with_content else ["username", "password"]
        missing = [field for field in fields if field not in payload]
        if missing:
            raise InvalidInput(f"Missing field(s): {', '.join(missing)}")
        for field in fields:
            if not isinstance(payload[field], str):
                raise InvalidInput(f"Field '{field}' must be a string")

        return cls(
            username=payload["username"],
            password=payload["password"],
            content=payload.get("content") if with_content else None,
        )

    def __repr__(self):
        content_length = len(self.content) if self.content is not None else None
        return f"WikiRequest(username={self.username!r}, content_length={content_length})"


def get_wiki_store():
    return current_app.extensions["wiki_store"]


def write_rate_limit():
    return current_app.config.get("WRITE_RATE_LIMIT", WRITE_RATE_LIMIT)


def bad_request(e: InvalidInput, include_url: bool = True):
    current_app.logger.warning(f"Rejected {request.method} {request.path}: {e.reason}")
    body = {"success": False, "error": e.reason}
    if include_url:
        body["url"] = None
    return jsonify(body), 400


@wiki_route.after_request
def add_cors_headers(response):
    if request.endpoint not in WRITE_ENDPOINTS:
        return response

    allowed_origin = current_app.config.get("CORS_ORIGIN")
    if allowed_origin and request.headers.get("Origin") == allowed_origin:
        response.headers["Access-Control-Allow-Origin"] = allowed_origin
        response.headers["Access-Control-Allow-Methods"] = CORS_METHODS
        response.headers["Access-Control-Allow-Headers"] = CORS_HEADERS
    response.vary.add("Origin")
    return response


@wiki_route.route("/wikis", methods=["POST"])
@limiter.limit(write_rate_limit)
def create_wiki():
    try:
        payload = WikiRequest.from_json(request.get_json(silent=True))
    except InvalidInput as e:
        return bad_request(e)

    current_app.logger.debug(f"CreateWiki request: {payload}")
    result = get_wiki_store().create(payload.username, payload.content, payload.password)
    return jsonify(result.to_dict())


@wiki_route.route("/wikis", methods=["PATCH"])
@limiter.limit(write_rate_limit)
def update_wiki():
    try:
        payload = WikiRequest.from_json(request.get_json(silent=True))
    except InvalidInput as e:
        return bad_request(e)

    current_app.logger.debug(f"UpdateWiki request: {payload}")
    result = get_wiki_store().update(payload.username, payload.content, payload.password)
    return jsonify(result.to_dict())


@wiki_route.route("/wikis", methods=["DELETE"])
@limiter.limit(write_rate_limit)
def delete_wiki():
    try:
        payload = WikiRequest.from_json(request.get_json(silent=True), with_content=False)
    except InvalidInput as e:
        return bad_request(e, include_url=False)

    current_app.logger.debug(f"DeleteWiki request: {payload}")
    result = get_wiki_store().delete(payload.username, payload.password)
    return jsonify(result.to_dict(include_url=False))


@wiki_route.route("/wikis/<username>", methods=["GET"])
def get_wiki(username):
    content = get_wiki_store().get(username)
    if content is None:
        return render_template("wiki_not_found.html", username=username)
    return render_template("wiki.html", username=username, content=Markup(content))
