from flask import Flask, render_template, request, jsonify
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from waitress import serve
from werkzeug.middleware.proxy_fix import ProxyFix

from personal_wiki import config
from personal_wiki.logger import setup_logger
from personal_wiki.limiter import limiter
from personal_wiki.storage import MemoryWikiStorage, PsqlWikiStorage
from personal_wiki.wiki_store import WikiStore

from personal_wiki.website.wiki_router import wiki_route
ROUTE_LIST = [
    wiki_route,
]


class PersonalWiki:
    def __init__(self, storage=None, config_overrides: dict = None):
        self.app = Flask(
            __name__,
            template_folder=config.TEMPLATE_DIR,
            static_folder=config.STATIC_DIR,
        )

        self.init_attributes(config_overrides or {})
        self.init_limiter()
        self.init_wiki_store(storage)

        # Blueprint registration
        for route in ROUTE_LIST:
            self.app.register_blueprint(route)

        self.set_routes()
        self.app.logger.info("Personal wiki initialized")

    def init_attributes(self, config_overrides: dict):
        self.app.wsgi_app = ProxyFix(self.app.wsgi_app, x_for=1, x_proto=1, x_host=1)
        self.app.config['VERSION'] = '0.1.0'
        self.app.config['MAX_CONTENT_LENGTH'] = 1 * 1024 * 1024  # 1 MB
        self.app.config['LOG_DIR'] = config.LOG_DIR
        self.app.config['LOG_FILE'] = config.LOG_FILE
        self.app.config['LOG_LEVEL'] = config.LOG_LEVEL
        self.app.config['LOG_BACKUP_COUNT'] = config.LOG_BACKUP_COUNT
        self.app.config['CORS_ORIGIN'] = config.CORS_ORIGIN
        self.app.config['RATELIMIT_STORAGE_URI'] = config.RATELIMIT_STORAGE_URI
        self.app.config['WRITE_RATE_LIMIT'] = config.WRITE_RATE_LIMIT
        self.app.config['WIKI_STORAGE'] = config.WIKI_STORAGE
        self.app.config['PASSWORD_HASH_METHOD'] = config.PASSWORD_HASH_METHOD
        self.app.config.update(config_overrides)
        self.app = setup_logger(self.app)

    def init_limiter(self):
        try:
            limiter.init_app(self.app)
            self.app.logger.info(f"Limiter initialized with {self.app.config['RATELIMIT_STORAGE_URI']} storage")
        except Exception as e:
            self.app.logger.error(f"Error initializing limiter: {e}")
            self.app.logger.error("Attempting failover limiter setup")
            failover_limiter = Limiter(
                key_func=get_remote_address,
                default_limits=["50000 per day", "1000 per hour"],
                storage_uri="memory://",
            )
            failover_limiter.init_app(self.app)
            self.app.logger.info("Failover limiter initialized with in-memory storage")

    def init_wiki_store(self, storage=None):
        if storage is None:
            if self.app.config['WIKI_STORAGE'] == "memory":
                storage = MemoryWikiStorage()
            else:
                storage = PsqlWikiStorage(log=self.app.logger)
        self.wiki_store = WikiStore(
            storage=storage,
            log=self.app.logger,
            hash_method=self.app.config['PASSWORD_HASH_METHOD'],
        )
        self.app.extensions["wiki_store"] = self.wiki_store

    def set_routes(self):
        @self.app.before_request
        def before_request():
            client_ip = (
                request.headers.get("X-Forwarded-For") or
                request.remote_addr
            )
            self.app.logger.debug(f"Request from {client_ip} to {request.path}")

        @self.app.route("/", methods=["GET"])
        def index():
            return render_template("index.html")

        @self.app.route("/about", methods=["GET"])
        def about():
            return render_template("about.html")

        @self.app.route("/health", methods=["GET"])
        def health_check():
            return jsonify({"status": "ok"}), 200

        @self.app.errorhandler(404)
        def not_found_error(e):
            return render_template("404.html"), 404

        @self.app.errorhandler(500)
        def internal_error(e):
            self.app.logger.error(f"Internal server error: {e}")
            return render_template("500.html"), 500


if __name__ == "__main__":
    wiki = PersonalWiki()
    serve(wiki.app, host=config.WIKI_HOST, port=config.WIKI_PORT, threads=config.WIKI_THREADS)
