"""
Centralized Blueprint Registration
All blueprints MUST be registered inside register_all_blueprints(app)
"""


def register_all_blueprints(app):

    # Root
    from agritrace.routes.root.root_routes import root_bp
    app.register_blueprint(root_bp)

    # Users & auth
    from agritrace.routes.auth.auth_routes import auth_bp
    from agritrace.routes.users.user_routes import users_bp
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)

    # Farmer crops
    from agritrace.routes.crop.crop_routes import crop_bp
    app.register_blueprint(crop_bp)

    # Aggregator collections
    from agritrace.routes.aggregator.aggregator_routes import aggregator_bp
    app.register_blueprint(aggregator_bp)

    # Orders
    from agritrace.routes.order.order_routes import order_bp
    app.register_blueprint(order_bp)

    # Payments, dashboard, ledger info
    from agritrace.routes.payment.payment_routes import payments_bp
    from agritrace.routes.analytics.analytics_routes import analytics_bp
    from agritrace.routes.blockchain.blockchain_routes import blockchain_bp
    app.register_blueprint(payments_bp)
    app.register_blueprint(analytics_bp)
    app.register_blueprint(blockchain_bp)

    # QR + traceability
    from agritrace.routes.qr.qr_routes import qr_bp
    app.register_blueprint(qr_bp)

    # Uploaded files
    from agritrace.routes.media.media_routes import media_bp
    app.register_blueprint(media_bp)

    app.logger.info("All blueprints registered")
