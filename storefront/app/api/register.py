from flask import Flask

from storefront.modules.auth.routes import bp as auth_bp
from storefront.modules.catalog.routes import bp as catalog_bp
from storefront.modules.cart.routes import bp as cart_bp
from storefront.modules.orders.routes import bp as orders_bp
from storefront.modules.admin.routes import bp as admin_bp


def register_api_blueprints(app: Flask) -> None:
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(catalog_bp, url_prefix="/api")
    app.register_blueprint(cart_bp, url_prefix="/api")
    app.register_blueprint(orders_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api")

    # Root API document
    @app.get("/api")
    def api_index():
        return {
            "name": "Storefront API",
            "version": "0.1.0",
            "endpoints": {
                "auth": ["/auth/signup", "/auth/signin", "/auth/signout", "/auth/session"],
                "catalog": ["/products", "/products/<id>"],
                "cart": ["/cart", "/cart/items", "/cart/items/<id>"],
                "orders": ["/payment", "/orders/<id>"],
                "messages": ["/messages"],
                "admin": ["/admin/stats"],
            },
        }, 200
