import json
import math
import sys
import time

from flask import Flask, jsonify, request
from flask_cors import CORS
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.exc import ArgumentError, OperationalError, SQLAlchemyError
from werkzeug.exceptions import BadRequest, InternalServerError

from product_service.config import load_config
from product_service.errors import NotFoundError, StoreError, ValidationError
from product_service.logs import configure_logging, logger
from product_service.model import db, init_schema, Product, ProductStore

INVALID_ID = "Invalid product ID"
INVALID_PAYLOAD = "Invalid request payload"

# signed 64-bit column range
INT_MIN = -2 ** 63
INT_MAX = 2 ** 63 - 1

# Prometheus metrics
REQUEST_COUNT = Counter('product_service_requests_total', 'Total requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('product_service_request_duration_seconds', 'Request duration')
PRODUCT_COUNT = Counter('product_service_products_total', 'Products written', ['operation'])


def parse_product_id(raw):
    """Path ids must be positive decimal integers."""
    if not (raw.isascii() and raw.isdigit()):
        raise ValidationError(INVALID_ID)
    product_id = int(raw)
    if not 1 <= product_id <= INT_MAX:
        raise ValidationError(INVALID_ID)
    return product_id


def read_json_body():
    """Parse the request body as JSON whatever its Content-Type."""
    try:
        return request.get_json(force=True)
    except BadRequest:
        raise ValidationError(INVALID_PAYLOAD)


def _field(data, key, types, default):
    value = data.get(key)
    if value is None:
        return default
    # bool is an int subclass but never a valid quantity or price
    if isinstance(value, bool) or not isinstance(value, types):
        raise ValidationError(INVALID_PAYLOAD)
    return value


def decode_product(data):
    """Turn a decoded JSON body into a transient Product.

    Missing or null fields take zero values, and a bare ``null`` body is an
    all-zero product; a body id is ignored.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError(INVALID_PAYLOAD)

    name = _field(data, "name", str, "")
    quantity = _field(data, "quantity", int, 0)
    if not INT_MIN <= quantity <= INT_MAX:
        raise ValidationError(INVALID_PAYLOAD)
    price = float(_field(data, "price", (int, float), 0.0))
    if not math.isfinite(price):
        raise ValidationError(INVALID_PAYLOAD)

    return Product(name=name, quantity=quantity, price=price)


def _respond(method, endpoint, status, payload, start_time):
    REQUEST_COUNT.labels(method, endpoint, str(status)).inc()
    REQUEST_DURATION.observe(time.time() - start_time)
    return jsonify(payload), status


def register_routes(app, store):
    # get all products
    @app.route("/products", methods=["GET"])
    def get_products():
        start_time = time.time()
        logger.info("Get all products request", extra={'endpoint': '/products'})

        try:
            products = store.list_all()
        except StoreError as e:
            logger.error("Error retrieving products", extra={'endpoint': '/products', 'status_code': 500})
            return _respond('GET', '/products', 500, {"error": e.message}, start_time)

        logger.info(f"Retrieved {len(products)} products", extra={'endpoint': '/products', 'status_code': 200})
        return _respond('GET', '/products', 200, [p.to_dict() for p in products], start_time)

    # create product
    @app.route("/product", methods=["POST"])
    def create_product():
        start_time = time.time()
        logger.info("Create product request", extra={'endpoint': '/product'})

        try:
            product = decode_product(read_json_body())
        except ValidationError as e:
            logger.warning("Rejected product payload", extra={'endpoint': '/product', 'status_code': 400})
            return _respond('POST', '/product', 400, {"error": e.message}, start_time)

        try:
            store.create(product)
        except StoreError as e:
            logger.error("Error creating product", extra={'endpoint': '/product', 'status_code': 500})
            return _respond('POST', '/product', 500, {"error": e.message}, start_time)

        PRODUCT_COUNT.labels('create').inc()
        logger.info("Product created successfully", extra={'endpoint': '/product', 'product_id': product.id, 'status_code': 201})
        return _respond('POST', '/product', 201, product.to_dict(), start_time)

    # get a single product
    @app.route("/product/<product_id>", methods=["GET"])
    def get_product(product_id):
        start_time = time.time()
        endpoint = '/product/<id>'
        logger.info(f"Get product request for product_id: {product_id}", extra={'endpoint': endpoint})

        try:
            product_id = parse_product_id(product_id)
        except ValidationError as e:
            return _respond('GET', endpoint, 400, {"error": e.message}, start_time)

        try:
            product = store.fetch(product_id)
        except NotFoundError as e:
            logger.warning("Product not found", extra={'endpoint': endpoint, 'product_id': product_id, 'status_code': 404})
            return _respond('GET', endpoint, 404, {"error": e.message}, start_time)
        except StoreError as e:
            logger.error("Error retrieving product", extra={'endpoint': endpoint, 'product_id': product_id, 'status_code': 500})
            return _respond('GET', endpoint, 500, {"error": e.message}, start_time)

        return _respond('GET', endpoint, 200, product.to_dict(), start_time)

    # update product
    @app.route("/product/<product_id>", methods=["PUT"])
    def update_product(product_id):
        start_time = time.time()
        endpoint = '/product/<id>'
        logger.info(f"Update product request for product_id: {product_id}", extra={'endpoint': endpoint})

        try:
            product_id = parse_product_id(product_id)
            product = decode_product(read_json_body())
        except ValidationError as e:
            return _respond('PUT', endpoint, 400, {"error": e.message}, start_time)

        try:
            store.update(product_id, product)
        except StoreError as e:
            logger.error("Error updating product", extra={'endpoint': endpoint, 'product_id': product_id, 'status_code': 500})
            return _respond('PUT', endpoint, 500, {"error": e.message}, start_time)

        PRODUCT_COUNT.labels('update').inc()
        logger.info("Product updated", extra={'endpoint': endpoint, 'product_id': product_id, 'status_code': 200})
        return _respond('PUT', endpoint, 200, {"result": "Payload modified"}, start_time)

    # delete product
    @app.route("/product/<product_id>", methods=["DELETE"])
    def delete_product(product_id):
        start_time = time.time()
        endpoint = '/product/<id>'
        logger.info(f"Delete product request for product_id: {product_id}", extra={'endpoint': endpoint})

        try:
            product_id = parse_product_id(product_id)
        except ValidationError as e:
            return _respond('DELETE', endpoint, 400, {"error": e.message}, start_time)

        try:
            store.delete(product_id)
        except StoreError as e:
            logger.error("Error deleting product", extra={'endpoint': endpoint, 'product_id': product_id, 'status_code': 500})
            return _respond('DELETE', endpoint, 500, {"error": e.message}, start_time)

        PRODUCT_COUNT.labels('delete').inc()
        logger.info("Product deleted", extra={'endpoint': endpoint, 'product_id': product_id, 'status_code': 200})
        return _respond('DELETE', endpoint, 200, {"result": "success"}, start_time)

    # health check
    @app.route("/health")
    def health():
        return "OK", 200

    # Prometheus metrics endpoint
    @app.route('/metrics')
    def metrics():
        resp = generate_latest()
        return resp, 200, {'Content-Type': CONTENT_TYPE_LATEST}


def _json_http_error(e):
    response = e.get_response()
    response.data = json.dumps({"error": e.description})
    response.content_type = "application/json"
    return response


def create_app(config=None, store=None):
    """Build the Flask application with ``store`` wired into its handlers.

    ``config`` defaults to the environment (see ``load_config``); ``store``
    defaults to a ProductStore over Flask-SQLAlchemy's session.
    """
    app = Flask(__name__)
    app.config.update(load_config() if config is None else config)
    configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

    # /products and /products/ route to the same handler
    app.url_map.strict_slashes = False

    try:
        db.init_app(app)
    except (ArgumentError, ImportError) as e:
        # malformed URL or missing DBAPI driver
        raise StoreError(f"Could not configure database: {e}") from e
    CORS(app)

    if store is None:
        store = ProductStore(db.session)
    app.extensions['product_store'] = store

    register_routes(app, store)
    app.register_error_handler(404, _json_http_error)
    app.register_error_handler(405, _json_http_error)
    app.register_error_handler(InternalServerError, _json_http_error)
    return app


def connect_database(app):
    """Bootstrap the products table, retrying while the database is down.

    Raises StoreError once every attempt has failed.
    """
    retries = max(1, app.config.get('DB_CONNECT_RETRIES', 10))
    delay = app.config.get('DB_CONNECT_DELAY', 2)
    last_error = None

    with app.app_context():
        for attempt in range(1, retries + 1):
            try:
                init_schema()
                logger.info("Database connection established")
                return
            except OperationalError as e:
                last_error = e
                logger.warning(f"Database unavailable (attempt {attempt}/{retries}), retrying in {delay} seconds...")
                if attempt < retries:
                    time.sleep(delay)
            except SQLAlchemyError as e:
                raise StoreError(f"Could not connect to database: {e}") from e

    raise StoreError(f"Could not connect to database: {last_error}")


def main():
    try:
        app = create_app()
        connect_database(app)
    except StoreError as e:
        logger.critical(e.message)
        sys.exit(1)

    logger.info(f"Starting product service on port {app.config['PORT']}", extra={'endpoint': 'startup'})
    app.run(host=app.config['HOST'], port=app.config['PORT'], threaded=True)


if __name__ == "__main__":
    main()
