"""
Liveness and readiness checks. No authentication, no CORS.
"""
from datetime import datetime
import logging

from flask import Blueprint, jsonify
from sqlalchemy.exc import SQLAlchemyError

from docspot.extensions import db

logger = logging.getLogger(__name__)

health_bp = Blueprint('health', __name__, url_prefix='/health')

SERVICE_NAME = 'docspot-api'


def _health_payload(status, **extra):
    return {
        'status': status,
        'service': SERVICE_NAME,
        'timestamp': datetime.utcnow().isoformat(),
        **extra,
    }


def _database_error():
    """None when the database answers, otherwise the error text"""
    try:
        db.session.execute(db.text('SELECT 1'))
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Database unreachable: %s", e)
        return str(e)
    return None


@health_bp.route('', methods=['GET'])
@health_bp.route('/ping', methods=['GET'])
@health_bp.route('/live', methods=['GET'])
def liveness():
    """The process is up; the database is not consulted"""
    return jsonify(_health_payload('alive')), 200


@health_bp.route('/ready', methods=['GET'])
def readiness():
    error = _database_error()
    if error:
        return jsonify(_health_payload('not_ready', database=f'error: {error}')), 503
    return jsonify(_health_payload('ready', database='connected')), 200
