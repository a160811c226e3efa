def register_blueprints(app):
    from truthnode.routes.health import health_bp
    from truthnode.routes.users import users_bp
    from truthnode.routes.articles import articles_bp
    from truthnode.routes.verification import verification_bp
    from truthnode.routes.rewards import rewards_bp
    from truthnode.routes.community import community_bp
    from truthnode.routes.admin import admin_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(users_bp, url_prefix='/api')
    app.register_blueprint(articles_bp, url_prefix='/api')
    app.register_blueprint(verification_bp, url_prefix='/api')
    app.register_blueprint(rewards_bp, url_prefix='/api')
    app.register_blueprint(community_bp, url_prefix='/api')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
