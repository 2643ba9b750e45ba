from app.routes import cart_bp, orders_bp, products_bp


def register_api_v1(app):
    """Register blueprint routes under the API version prefix."""
    app.register_blueprint(cart_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(products_bp)
