# ==============================================================================
# feecom/__init__.py
# ------------------------------------------------------------------------------
# Application factory for creating and configuring the Flask app instance.
# ==============================================================================

import os
import json
import logging

import click
from flask import Flask
from config import Config
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Initialize extensions globally to be accessible by other modules
db = SQLAlchemy()
migrate = Migrate()

def create_app(config_class=Config):
    """
    Application factory function. Creates and configures the Flask application.

    Args:
        config_class (class): The configuration class to use.

    Returns:
        Flask: The configured Flask application instance.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)

    # Configure logging
    logging.basicConfig(level=app.config.get('LOG_LEVEL', 'INFO'),
                        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    # Ensure the instance folder exists for the SQLite database
    os.makedirs(app.instance_path, exist_ok=True)

    # Initialize extensions with the application instance
    db.init_app(app)
    migrate.init_app(app, db)

    # Register blueprints with the application
    from feecom.main import bp as main_bp
    app.register_blueprint(main_bp, url_prefix='/api')

    register_commands(app)

    app.logger.info('Fee-Commission Calculator startup complete')
    return app


def register_commands(app):
    """Registers the `flask` CLI commands for the engine."""

    @app.cli.command('init-db')
    def init_db():
        """Creates the database tables."""
        from feecom import models  # noqa: F401
        db.create_all()
        click.echo('Database tables created.')

    @app.cli.command('calculate')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    @click.option('--scheme-type', default='Regular', show_default=True,
                  help='Regular, Drop Point or EMI Biller.')
    @click.option('--submitted-by', default='cli', show_default=True)
    def calculate(path, scheme_type, submitted_by):
        """Runs a fee-commission calculation for a local .xlsx file."""
        from feecom.calculator.errors import FeeCommissionError
        from feecom.services import submit_calculation

        with open(path, 'rb') as f:
            content = f.read()
        try:
            record = submit_calculation(content, os.path.basename(path), scheme_type, submitted_by)
        except FeeCommissionError as e:
            raise click.ClickException(e.message)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint='--scheme-type')
        click.echo(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))

    @app.cli.command('history')
    @click.option('--query', '-q', default=None, help='Biller name substring.')
    @click.option('--limit', '-n', type=int, default=None)
    def history(query, limit):
        """Lists past calculations, newest first."""
        from feecom.services import list_calculations

        try:
            summaries = list_calculations(query, limit)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint='--limit')
        for item in summaries:
            click.echo(f"{item['created_at']}  {item['id']}  {item['biller_name']}  "
                       f"({item['scheme_type']}, by {item['submitted_by']})  {item['file_name']}")
        if not summaries:
            click.echo('No calculations found.')
