"""Feature Routes - public feature flag lookups."""

from app.api import bp
from app.api_auth import api_success
from app.services import FeatureService


@bp.route('/features', methods=['GET'])
def list_feature_status():
    """Enabled state of every known feature, keyed by name."""
    return api_success(FeatureService.status_map())


@bp.route('/features/<name>', methods=['GET'])
def get_feature(name):
    return api_success({'name': name, 'enabled': FeatureService.is_enabled(name)})
