import logging

from flask import Flask, jsonify
from flask_jwt_extended import JWTManager
from flask_cors import CORS

from config import Config
from database import init_db
from errors import DomainError


logging.basicConfig(
    level=Config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.from_object(Config)
if not app.config.get('JWT_SECRET_KEY'):
    logger.warning("JWT_SECRET_KEY is not set, falling back to a development key")
    app.config['JWT_SECRET_KEY'] = 'dev-only-change-me'

app.config['JSON_SORT_KEYS'] = False

CORS(app, resources={r"/*": {"origins": Config.ALLOWED_ORIGINS}},
  supports_credentials=False,
  methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
  allow_headers=["Content-Type", "Accept", "Authorization"])

# auth(authentication) route
from routes.auth import auth_bp
app.register_blueprint(auth_bp)

# profile route (edit user's profile)
from routes.profile import profile_bp
app.register_blueprint(profile_bp)

# properties route
from routes.properties import properties_bp
app.register_blueprint(properties_bp)

from routes.booking import booking_bp
app.register_blueprint(booking_bp)

from routes.payments import payments_bp
app.register_blueprint(payments_bp)

from routes.reviews import reviews_bp
app.register_blueprint(reviews_bp)

from routes.messages import messages_bp
app.register_blueprint(messages_bp)

from routes.notifications import notifications_bp
app.register_blueprint(notifications_bp)

from routes.analytics import analytics_bp
app.register_blueprint(analytics_bp)


jwt = JWTManager(app)


@app.errorhandler(DomainError)
def handle_domain_error(e):
    logger.debug("%s: %s", type(e).__name__, e.message)
    return jsonify(e.to_dict()), e.status_code


with app.app_context():
    init_db()


@app.route('/')
def home():
    return jsonify({"status": "Rentals API is running"}), 200


if __name__ == '__main__':
    app.run(debug=Config.DEBUG)
