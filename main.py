from flask import Flask, request, jsonify
from flask_cors import CORS
from revshare import EngineConfig, SettlementError, SettlementProcessor
import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes (dashboards and webhook relays call the API cross-origin)
CORS(app)

# Initialize the settlement processor
processor = SettlementProcessor(config=EngineConfig.from_env())


def _body():
    data = request.get_json(force=True, silent=True)
    if data is None:
        raise ValueError("No input data provided")
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


@app.errorhandler(SettlementError)
def handle_settlement_error(e):
    """Engine errors carry their own HTTP status."""
    if e.retryable:
        logger.error(f"Store error: {e.message}")
    else:
        logger.warning(f"{e.error_type}: {e.message}")
    return jsonify({
        "error": e.message,
        "error_type": e.error_type,
        "retryable": e.retryable,
        "status": "failed"
    }), e.status_code


@app.errorhandler(ValueError)
def handle_value_error(e):
    # Malformed input that never reached the engine
    logger.error(f"Validation error: {str(e)}")
    return jsonify({
        "error": str(e),
        "status": "validation_failed"
    }), 400


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Revenue-Share Settlement API",
        "version": "1.0",
        "endpoints": {
            "create_collaboration": "/collaborations [POST]",
            "get_collaboration": "/collaborations/<id> [GET]",
            "update_revenue_share": "/collaborations/<id>/revenue_share [PUT]",
            "change_status": "/collaborations/<id>/status [POST]",
            "calculate": "/collaborations/<id>/calculate [POST]",
            "distribute": "/collaborations/<id>/distribute [POST]",
            "collaboration_distributions": "/collaborations/<id>/distributions [GET]",
            "analytics": "/collaborations/<id>/analytics [GET]",
            "engagement": "/collaborations/<id>/engagement [POST]",
            "participant_distributions": "/participants/<user_id>/distributions [GET]",
            "participant_collaborations": "/participants/<user_id>/collaborations [GET]",
            "distribution_status": "/distributions/<id>/status [POST]",
            "templates": "/templates [GET, POST]",
            "marketplace_collaboration": "/marketplace/templates/<id>/collaboration [POST]",
            "marketplace_collaborators": "/marketplace/templates/<id>/collaborators [POST]",
            "marketplace_sale": "/marketplace/templates/<id>/sales [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


# =============================================================================
# Collaborations
# =============================================================================

@app.route("/collaborations", methods=["POST"])
def create_collaboration():
    data = _body()
    logger.info(f"Creating collaboration: {data.get('title', 'Untitled')}")
    return jsonify(processor.create_collaboration_from_dict(data)), 201


@app.route("/collaborations/<collaboration_id>", methods=["GET"])
def get_collaboration(collaboration_id):
    return jsonify(processor.get_collaboration_as_dict(collaboration_id)), 200


@app.route("/collaborations/<collaboration_id>/revenue_share", methods=["PUT"])
def update_revenue_share(collaboration_id):
    return jsonify(processor.update_revenue_share_from_dict(collaboration_id, _body())), 200


@app.route("/collaborations/<collaboration_id>/status", methods=["POST"])
def change_status(collaboration_id):
    return jsonify(processor.change_status_from_dict(collaboration_id, _body())), 200


@app.route("/collaborations/<collaboration_id>/calculate", methods=["POST"])
def calculate(collaboration_id):
    return jsonify(processor.calculate_from_dict(collaboration_id, _body())), 200


@app.route("/collaborations/<collaboration_id>/distribute", methods=["POST"])
def distribute(collaboration_id):
    """
    Settle a revenue event. The idempotency key comes from the
    Idempotency-Key header or the idempotency_key body field.
    """
    data = _body()
    key = request.headers.get("Idempotency-Key")
    logger.info(f"Settlement requested for {collaboration_id} (key={key or data.get('idempotency_key')})")
    result = processor.distribute_from_dict(collaboration_id, data, idempotency_key=key)
    return jsonify(result), 201


@app.route("/collaborations/<collaboration_id>/distributions", methods=["GET"])
def collaboration_distributions(collaboration_id):
    processor.registry.get(collaboration_id)
    rows = processor.ledger.list_by_collaboration(collaboration_id)
    return jsonify(processor.output_builder.distributions(rows)), 200


@app.route("/collaborations/<collaboration_id>/analytics", methods=["GET"])
def collaboration_analytics(collaboration_id):
    return jsonify(processor.analytics_as_dict(collaboration_id)), 200


@app.route("/collaborations/<collaboration_id>/engagement", methods=["POST"])
def record_engagement(collaboration_id):
    """Analytics feed webhook: additive views/engagement for one participant."""
    data = _body()
    performance = processor.tracker.record_engagement_event(
        collaboration_id,
        data.get("participant_id"),
        data.get("views", 0),
        data.get("engagement", 0),
    )
    return jsonify(processor.output_builder.performance(performance)), 200


# =============================================================================
# Participants / distributions
# =============================================================================

@app.route("/participants/<user_id>/distributions", methods=["GET"])
def participant_distributions(user_id):
    rows = processor.ledger.list_by_participant(user_id)
    return jsonify(processor.output_builder.distributions(rows)), 200


@app.route("/participants/<user_id>/collaborations", methods=["GET"])
def participant_collaborations(user_id):
    collaborations = processor.registry.list_for_user(user_id)
    return jsonify([processor.output_builder.collaboration(c) for c in collaborations]), 200


@app.route("/distributions/<distribution_id>/status", methods=["POST"])
def distribution_status(distribution_id):
    """Payment rail callback: pending -> paid | failed."""
    return jsonify(processor.distribution_status_from_dict(distribution_id, _body())), 200


# =============================================================================
# Templates
# =============================================================================

@app.route("/templates", methods=["POST"])
def create_template():
    return jsonify(processor.create_template_from_dict(_body())), 201


@app.route("/templates", methods=["GET"])
def list_templates():
    return jsonify(processor.list_templates_as_dict(request.args.get("category"))), 200


@app.route("/marketplace/templates/<template_id>/collaboration", methods=["POST"])
def create_template_collaboration(template_id):
    return jsonify(processor.create_template_collaboration_from_dict(template_id, _body())), 201


@app.route("/marketplace/templates/<template_id>/collaborators", methods=["POST"])
def add_template_collaborator(template_id):
    return jsonify(processor.add_template_collaborator_from_dict(template_id, _body())), 200


@app.route("/marketplace/templates/<template_id>/sales", methods=["POST"])
def split_sale(template_id):
    return jsonify(processor.split_sale_from_dict(template_id, _body())), 200


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
